"""Sync coordinator: optimistic local writes, queued remote delivery, reconcile."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Coroutine, Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from mediasync import log
from mediasync.core.connectivity import ConnectivityMonitor
from mediasync.core.history import HistoryLog
from mediasync.core.local_store import LocalStore
from mediasync.core.merge import merge_records
from mediasync.core.queue import MutationQueue
from mediasync.core.remote import RemoteStore
from mediasync.exceptions import (
    RemoteError,
    RemoteRejectedError,
    RemoteUnavailableError,
)
from mediasync.models.schemas.collection import (
    CollectionDraft,
    CollectionPatch,
    SmartCollection,
)
from mediasync.models.schemas.history import HistoryAction, HistoryEvent
from mediasync.models.schemas.media import (
    MediaDraft,
    MediaItem,
    MediaPatch,
    ensure_utc,
    utcnow,
)
from mediasync.models.schemas.mutation import (
    MutationMessage,
    MutationOperation,
    SyncCollection,
)
from mediasync.models.schemas.sync import SyncStatus

__all__ = ["LAST_SYNC_KEY", "SyncCoordinator"]

LAST_SYNC_KEY = "last_sync_at"
HISTORY_COLLECTION = "history"

# Fields recomputed on every local write; sent along with every remote update
_DERIVED_MEDIA_FIELDS = (
    "normalized_title",
    "progress",
    "completion_percent",
    "completed_at",
    "updated_at",
)

Subscriber = Callable[[list[MediaItem]], Any]
SyncTarget = tuple[SyncCollection, str]


def _next_timestamp(previous: datetime | None) -> datetime:
    """Current time, never earlier than the previous write."""
    now = utcnow()
    if previous is not None and ensure_utc(previous) > now:
        return ensure_utc(previous)
    return now


def classify_update(
    before: MediaItem, after: MediaItem, changed: Iterable[str]
) -> tuple[HistoryAction, dict[str, Any] | None, dict[str, Any] | None]:
    """Pick the history action for an update.

    Priority: status change, progress update, (un)favorite, (un)archive, generic.

    Args:
        before (MediaItem): The item before the update
        after (MediaItem): The item as stored after the update
        changed (Iterable[str]): Names of the fields the caller set

    Returns:
        tuple: The action, its value payload and its previous value payload
    """
    changed = set(changed)
    old = before.model_dump(mode="json")
    new = after.model_dump(mode="json")

    def differs(key: str) -> bool:
        return key in changed and new[key] != old[key]

    if differs("status"):
        return (
            HistoryAction.STATUS_CHANGE,
            {"status": new["status"]},
            {"status": old["status"]},
        )
    if differs("progress"):
        return (
            HistoryAction.PROGRESS_UPDATE,
            {
                "progress": new["progress"],
                "completion_percent": new["completion_percent"],
            },
            {
                "progress": old["progress"],
                "completion_percent": old["completion_percent"],
            },
        )
    if differs("is_favorite"):
        action = (
            HistoryAction.FAVORITED if new["is_favorite"] else HistoryAction.UNFAVORITED
        )
        return (
            action,
            {"is_favorite": new["is_favorite"]},
            {"is_favorite": old["is_favorite"]},
        )
    if differs("is_archived"):
        action = (
            HistoryAction.ARCHIVED if new["is_archived"] else HistoryAction.UNARCHIVED
        )
        return (
            action,
            {"is_archived": new["is_archived"]},
            {"is_archived": old["is_archived"]},
        )
    return HistoryAction.UPDATED, {key: new[key] for key in sorted(changed)}, None


class SyncCoordinator:
    """Entry point of the application layer into the synchronization engine.

    Mutations are applied to the local store first and return without waiting
    on the network. The matching remote write then runs as a background task, or
    goes straight to the mutation queue when offline. ``fetch()`` drains the queue
    and merges a fresh remote pull into the local store.
    """

    def __init__(
        self,
        store: LocalStore,
        history: HistoryLog,
        queue: MutationQueue,
        remote: RemoteStore | None,
        connectivity: ConnectivityMonitor,
        *,
        dead_letter_after: int = 5,
        mirror_history: bool = True,
        history_pull_limit: int = 50,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store (LocalStore): Durable local copy of the library
            history (HistoryLog): Append-only event log
            queue (MutationQueue): Durable log of unconfirmed remote writes
            remote (RemoteStore | None): Remote store client; None runs local-only
                and keeps every write queued
            connectivity (ConnectivityMonitor): Online flag
            dead_letter_after (int): Rejections before a message is dead-lettered
            mirror_history (bool): Copy history events to the remote best-effort
            history_pull_limit (int): Remote history events pulled per fetch
        """
        self.store = store
        self.history = history
        self.queue = queue
        self.remote = remote
        self.connectivity = connectivity
        self.dead_letter_after = dead_letter_after
        self.mirror_history = mirror_history
        self.history_pull_limit = history_pull_limit

        self.media: list[MediaItem] = []
        self.collections: list[SmartCollection] = []
        self._subscribers: list[Subscriber] = []

        self._tasks: set[asyncio.Task] = set()  # Prevents early GC
        self._chains: dict[SyncTarget, asyncio.Task] = {}
        self._inflight_deletes: dict[SyncTarget, int] = {}
        self._delete_watchers: list[tuple[SyncCollection, set[str]]] = []
        self._reconciling = 0

        self.last_synced_at: datetime | None = None
        raw_last_sync = self.store.get_value(LAST_SYNC_KEY)
        if raw_last_sync:
            try:
                self.last_synced_at = ensure_utc(datetime.fromisoformat(raw_last_sync))
            except ValueError:
                log.warning(f"Ignoring invalid stored sync time $$'{raw_last_sync}'$$")

    @property
    def online(self) -> bool:
        """Whether remote calls should be attempted right now."""
        return self.remote is not None and self.connectivity.is_online

    # Publishing

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a listener for published media lists.

        Args:
            callback (Subscriber): Sync or async callable receiving the list

        Returns:
            Callable[[], None]: Function that unregisters the listener
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    async def publish(self, media: list[MediaItem]) -> None:
        """Make ``media`` the current list and notify subscribers."""
        self.media = list(media)
        for callback in list(self._subscribers):
            try:
                res = callback(self.media)
                if inspect.isawaitable(res):
                    await res
            except Exception:
                log.error("Media subscriber failed", exc_info=True)

    async def _publish_local(self) -> list[MediaItem]:
        media = self.store.get_all()
        await self.publish(media)
        return media

    # Media operations

    async def add(self, draft: MediaDraft | dict[str, Any]) -> MediaItem:
        """Create a media item locally and schedule its remote insert.

        Args:
            draft (MediaDraft | dict[str, Any]): The user-supplied fields

        Returns:
            MediaItem: The stored item with its new id and timestamps
        """
        if not isinstance(draft, MediaDraft):
            draft = MediaDraft.model_validate(draft)

        now = utcnow()
        item = MediaItem.model_validate(
            {**draft.model_dump(), "created_at": now, "updated_at": now}
        )
        stored = self.store.put(item, now)
        log.info(f"Added $$'{stored.title}'$$ ($$'{stored.id}'$$)")

        self._record_history(
            HistoryEvent(
                media_id=stored.id,
                action_type=HistoryAction.ADDED,
                value={
                    "title": stored.title,
                    "type": str(stored.type),
                    "status": str(stored.status),
                },
                created_at=now,
            )
        )
        self._dispatch(
            MutationMessage(
                collection=SyncCollection.MEDIA,
                operation=MutationOperation.INSERT,
                target_id=stored.id,
                payload=stored.model_dump(mode="json"),
            )
        )
        await self._publish_local()
        return stored

    async def update(
        self, media_id: str, fields: MediaPatch | dict[str, Any]
    ) -> MediaItem:
        """Apply a partial update locally and schedule its remote update.

        Args:
            media_id (str): The item to update
            fields (MediaPatch | dict[str, Any]): Fields to set

        Returns:
            MediaItem: The stored item after the update

        Raises:
            MediaItemNotFoundError: If the item does not exist locally
        """
        patch = fields if isinstance(fields, MediaPatch) else MediaPatch(**fields)
        current = self.store.require(media_id)
        changes = patch.changes()

        now = _next_timestamp(current.updated_at)
        updated = MediaItem.model_validate(
            {**current.model_dump(), **changes, "id": current.id, "updated_at": now}
        )
        stored = self.store.put(updated, now)

        stored_json = stored.model_dump(mode="json")
        action, value, previous = classify_update(current, stored, changes)
        log.info(f"Updated $$'{stored.title}'$$ ({action})")

        self._record_history(
            HistoryEvent(
                media_id=stored.id,
                action_type=action,
                value=value,
                previous_value=previous,
                created_at=now,
            )
        )

        remote_fields = {
            key: stored_json[key] for key in (*changes, *_DERIVED_MEDIA_FIELDS)
        }
        self._dispatch(
            MutationMessage(
                collection=SyncCollection.MEDIA,
                operation=MutationOperation.UPDATE,
                target_id=stored.id,
                payload=remote_fields,
            )
        )
        await self._publish_local()
        return stored

    async def delete(self, media_id: str) -> None:
        """Delete a media item locally and schedule its remote delete.

        A ``deleted`` history event capturing the title and type is appended
        before the item is removed.

        Raises:
            MediaItemNotFoundError: If the item does not exist locally
        """
        current = self.store.require(media_id)

        self._record_history(
            HistoryEvent(
                media_id=current.id,
                action_type=HistoryAction.DELETED,
                previous_value={"title": current.title, "type": str(current.type)},
            )
        )
        self.store.delete(media_id)
        log.info(f"Deleted $$'{current.title}'$$ ($$'{current.id}'$$)")

        self._dispatch(
            MutationMessage(
                collection=SyncCollection.MEDIA,
                operation=MutationOperation.DELETE,
                target_id=current.id,
            )
        )
        await self._publish_local()

    async def fetch(self) -> list[MediaItem]:
        """Reconcile media with the remote store.

        Publishes the local list right away, then (when online) drains the
        queue, pulls the remote set and persists the merge. A failing pull leaves
        the local list as published. When the pull is empty but the local store
        is not, local items are uploaded to the remote.

        Items whose delete is queued, dead-lettered or still in flight at any
        point of the cycle are excluded from the merge.

        Returns:
            list[MediaItem]: The published list
        """
        local = await self._publish_local()
        if not self.online:
            log.debug("Offline, serving local media only")
            return local

        self._reconciling += 1
        try:
            with self._watch_deletes(SyncCollection.MEDIA) as watched:
                await self.drain()
                try:
                    rows = await self.remote.select(
                        str(SyncCollection.MEDIA), order="updated_at.desc"
                    )
                except RemoteError as e:
                    log.warning(
                        f"Could not pull remote media, keeping local copy: {e}"
                    )
                    return local

                remote_items = self._parse_rows(rows, MediaItem, "media")
                if not rows:
                    await self._upload_local_only(
                        SyncCollection.MEDIA, self.store.get_all()
                    )
                pending_deletes = self._unconfirmed_deletes(
                    SyncCollection.MEDIA, watched
                )
                merged = merge_records(
                    self.store.get_all(), remote_items, pending_deletes
                )
                self.store.put_many(merged)
            self._mark_synced()
            log.success(
                f"Reconciled media $${{remote: {len(remote_items)}, "
                f"merged: {len(merged)}, pending_deletes: {len(pending_deletes)}}}$$"
            )
            return await self._publish_local()
        finally:
            self._reconciling -= 1

    # Collection operations

    async def add_collection(
        self, draft: CollectionDraft | dict[str, Any]
    ) -> SmartCollection:
        """Create a collection locally and schedule its remote insert."""
        if not isinstance(draft, CollectionDraft):
            draft = CollectionDraft.model_validate(draft)
        now = utcnow()
        collection = SmartCollection.model_validate(
            {**draft.model_dump(), "created_at": now, "updated_at": now}
        )
        self.store.put_collection(collection)
        log.info(f"Created collection $$'{collection.title}'$$")

        self._dispatch(
            MutationMessage(
                collection=SyncCollection.SMART_COLLECTIONS,
                operation=MutationOperation.INSERT,
                target_id=collection.id,
                payload=collection.model_dump(mode="json"),
            )
        )
        self.collections = self.store.get_collections()
        return collection

    async def update_collection(
        self, collection_id: str, fields: CollectionPatch | dict[str, Any]
    ) -> SmartCollection:
        """Apply a partial update to a collection.

        Raises:
            CollectionNotFoundError: If the collection does not exist locally
        """
        patch = (
            fields if isinstance(fields, CollectionPatch) else CollectionPatch(**fields)
        )
        current = self.store.require_collection(collection_id)
        changes = patch.changes()
        now = _next_timestamp(current.updated_at)
        updated = SmartCollection.model_validate(
            {**current.model_dump(), **changes, "id": current.id, "updated_at": now}
        )
        self.store.put_collection(updated)

        stored_json = updated.model_dump(mode="json")
        self._dispatch(
            MutationMessage(
                collection=SyncCollection.SMART_COLLECTIONS,
                operation=MutationOperation.UPDATE,
                target_id=updated.id,
                payload={key: stored_json[key] for key in (*changes, "updated_at")},
            )
        )
        self.collections = self.store.get_collections()
        return updated

    async def delete_collection(self, collection_id: str) -> None:
        """Delete a collection locally and schedule its remote delete.

        Raises:
            CollectionNotFoundError: If the collection does not exist locally
        """
        current = self.store.require_collection(collection_id)
        self.store.delete_collection(collection_id)
        log.info(f"Deleted collection $$'{current.title}'$$")

        self._dispatch(
            MutationMessage(
                collection=SyncCollection.SMART_COLLECTIONS,
                operation=MutationOperation.DELETE,
                target_id=current.id,
            )
        )
        self.collections = self.store.get_collections()

    async def add_media_to_collection(
        self, collection_id: str, media_id: str
    ) -> SmartCollection:
        """Append a media id to a collection if it is not already a member."""
        current = self.store.require_collection(collection_id)
        if media_id in current.media_ids:
            return current
        return await self.update_collection(
            collection_id, {"media_ids": [*current.media_ids, media_id]}
        )

    async def remove_media_from_collection(
        self, collection_id: str, media_id: str
    ) -> SmartCollection:
        """Remove a media id from a collection if it is a member."""
        current = self.store.require_collection(collection_id)
        if media_id not in current.media_ids:
            return current
        return await self.update_collection(
            collection_id,
            {"media_ids": [mid for mid in current.media_ids if mid != media_id]},
        )

    async def fetch_collections(self) -> list[SmartCollection]:
        """Reconcile collections with the remote store, like ``fetch()``."""
        self.collections = self.store.get_collections()
        if not self.online:
            return self.collections

        self._reconciling += 1
        try:
            with self._watch_deletes(SyncCollection.SMART_COLLECTIONS) as watched:
                await self.drain()
                try:
                    rows = await self.remote.select(
                        str(SyncCollection.SMART_COLLECTIONS), order="updated_at.desc"
                    )
                except RemoteError as e:
                    log.warning(f"Could not pull remote collections: {e}")
                    return self.collections

                remote_collections = self._parse_rows(
                    rows, SmartCollection, "collection"
                )
                if not rows:
                    await self._upload_local_only(
                        SyncCollection.SMART_COLLECTIONS, self.store.get_collections()
                    )
                pending_deletes = self._unconfirmed_deletes(
                    SyncCollection.SMART_COLLECTIONS, watched
                )
                merged = merge_records(
                    self.store.get_collections(), remote_collections, pending_deletes
                )
                self.store.put_collections(merged)
            self.collections = self.store.get_collections()
            return self.collections
        finally:
            self._reconciling -= 1

    @contextmanager
    def _watch_deletes(self, collection: SyncCollection) -> Iterator[set[str]]:
        """Collect ids of deletes that are unconfirmed at any point of a cycle.

        Seeded with queued and in-flight deletes; deletes dispatched while the
        block runs are added as they happen.
        """
        watched = self.queue.pending_target_ids(
            collection, MutationOperation.DELETE, include_dead=True
        )
        watched.update(
            target for kind, target in self._inflight_deletes if kind == collection
        )
        watcher = (collection, watched)
        self._delete_watchers.append(watcher)
        try:
            yield watched
        finally:
            self._delete_watchers = [
                w for w in self._delete_watchers if w is not watcher
            ]

    def _unconfirmed_deletes(
        self, collection: SyncCollection, watched: set[str]
    ) -> set[str]:
        ids = self.queue.pending_target_ids(
            collection, MutationOperation.DELETE, include_dead=True
        )
        return ids | watched

    async def _upload_local_only(
        self,
        collection: SyncCollection,
        records: Sequence[MediaItem | SmartCollection],
    ) -> int:
        """Upsert local records to a remote that returned nothing.

        Records with a queued, dead-lettered or in-flight write are left to that
        write. If the remote becomes unavailable the remaining records are queued
        as inserts; rejected records are only logged.

        Returns:
            int: Number of uploaded records
        """
        busy = self.queue.pending_target_ids(collection, include_dead=True)
        busy.update(target for kind, target in self._chains if kind == collection)
        messages = [
            MutationMessage(
                collection=collection,
                operation=MutationOperation.INSERT,
                target_id=record.id,
                payload=record.model_dump(mode="json"),
            )
            for record in records
            if record.id not in busy
        ]
        if not messages:
            return 0

        log.info(
            f"Remote {collection} is empty, uploading "
            f"$${{local: {len(messages)}}}$$ record(s)"
        )
        uploaded = 0
        for index, message in enumerate(messages):
            try:
                await self._apply(message)
            except RemoteUnavailableError as e:
                log.warning(f"Remote unavailable, queueing remaining uploads: {e}")
                for remaining in messages[index:]:
                    self.queue.append(remaining)
                break
            except RemoteRejectedError as e:
                log.warning(
                    f"Remote rejected upload of $$'{message.target_id}'$$: {e}"
                )
                continue
            uploaded += 1
        return uploaded

    async def reconcile(self) -> list[MediaItem]:
        """Run a full cycle: media, then collections."""
        media = await self.fetch()
        await self.fetch_collections()
        return media

    # History

    def _record_history(self, event: HistoryEvent) -> None:
        self.history.append(event)
        if self.mirror_history and self.online:
            self._spawn(self._mirror_history(event))

    async def _mirror_history(self, event: HistoryEvent) -> None:
        try:
            await self.remote.insert(HISTORY_COLLECTION, event.model_dump(mode="json"))
        except RemoteError as e:
            log.debug(f"History event $$'{event.id}'$$ not mirrored: {e}")

    async def fetch_history(
        self, limit: int | None = None, media_id: str | None = None
    ) -> list[HistoryEvent]:
        """Return local history, newest first, after pulling missing remote events.

        Args:
            limit (int | None): Maximum number of events; defaults to the pull limit
            media_id (str | None): Restrict the result to one media item
        """
        limit = limit or self.history_pull_limit
        if self.online:
            try:
                rows = await self.remote.select(
                    HISTORY_COLLECTION,
                    order="created_at.desc",
                    limit=self.history_pull_limit,
                )
                inserted = self.history.insert_missing(
                    self._parse_rows(rows, HistoryEvent, "history")
                )
                if inserted:
                    log.debug(f"Pulled $${{history_events: {inserted}}}$$")
            except RemoteError as e:
                log.warning(f"Could not pull remote history: {e}")

        if media_id is not None:
            return self.history.for_media(media_id)[:limit]
        return self.history.recent(limit)

    # Queue delivery

    def _dispatch(self, message: MutationMessage) -> None:
        """Send a mutation in the background, or queue it.

        Messages are queued synchronously when offline or when the queue already
        holds a pending message for the same target. Background writes for the
        same target are chained so they reach the remote in issue order.
        """
        key = (message.collection, message.target_id)
        is_delete = message.operation == MutationOperation.DELETE
        if is_delete:
            for collection, watched in self._delete_watchers:
                if collection == message.collection:
                    watched.add(message.target_id)

        if not self.online or self.queue.has_pending(*key):
            self.queue.append(message)
            return

        previous = self._chains.get(key)
        task = self._spawn(self._deliver(message, previous))
        self._chains[key] = task
        if is_delete:
            self._inflight_deletes[key] = self._inflight_deletes.get(key, 0) + 1

        def _release(done: asyncio.Task) -> None:
            if self._chains.get(key) is done:
                del self._chains[key]
            if is_delete:
                remaining = self._inflight_deletes.get(key, 1) - 1
                if remaining > 0:
                    self._inflight_deletes[key] = remaining
                else:
                    self._inflight_deletes.pop(key, None)

        task.add_done_callback(_release)

    async def _deliver(
        self, message: MutationMessage, previous: asyncio.Task | None
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        if not self.online or self.queue.has_pending(
            message.collection, message.target_id
        ):
            self.queue.append(message)
            return

        try:
            await self._apply(message)
            log.debug(f"Remote write $$'{message}'$$ confirmed")
        except RemoteError as e:
            log.warning(f"Remote write $$'{message}'$$ failed, queued for retry: {e}")
            self.queue.append(message)
        except Exception:
            log.error(f"Remote write $$'{message}'$$ raised, queued", exc_info=True)
            self.queue.append(message)

    async def _apply(self, message: MutationMessage) -> None:
        collection = str(message.collection)
        match message.operation:
            case MutationOperation.INSERT:
                await self.remote.insert(collection, message.payload)
            case MutationOperation.UPDATE:
                await self.remote.update(
                    collection, message.target_id, message.payload
                )
            case MutationOperation.DELETE:
                await self.remote.delete(collection, message.target_id)

    async def drain(self) -> int:
        """Replay pending mutations in enqueue order.

        A message is removed only after the remote confirmed it. An unavailable
        remote stops the drain. A rejection is recorded on the message and the
        drain moves on, skipping later messages for the same target so per-target
        order holds. Messages that an overlapping drain already delivered are
        skipped.

        Returns:
            int: Number of delivered messages
        """
        if not self.online:
            return 0

        delivered = 0
        blocked: set[tuple[SyncCollection, str]] = set()
        for message in self.queue.drain():
            key = (message.collection, message.target_id)
            if key in blocked:
                continue
            if self.queue.get(message.id) is None:
                continue

            try:
                await self._apply(message)
            except RemoteUnavailableError as e:
                log.warning(f"Remote unavailable, stopping queue drain: {e}")
                break
            except RemoteRejectedError as e:
                blocked.add(key)
                self.queue.record_failure(message.id, str(e), self.dead_letter_after)
                log.warning(f"Remote rejected $$'{message}'$$: {e}")
                continue

            if self.queue.remove(message.id):
                delivered += 1

        if delivered:
            log.info(f"Delivered {delivered} queued mutation(s)")
        return delivered

    # Lifecycle and status

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_for_background(self) -> None:
        """Wait until every background remote write has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _mark_synced(self) -> None:
        self.last_synced_at = utcnow()
        self.store.set_value(LAST_SYNC_KEY, self.last_synced_at.isoformat())

    def status(self) -> SyncStatus:
        """Snapshot of connectivity, activity and queue sizes."""
        return SyncStatus(
            online=self.online,
            syncing=self._reconciling > 0 or bool(self._tasks),
            pending_count=self.queue.pending_count(),
            dead_count=self.queue.dead_count(),
            last_synced_at=self.last_synced_at,
        )

    async def reset(self) -> None:
        """Wipe all local data (logout)."""
        await self.wait_for_background()
        self.store.wipe()
        self.last_synced_at = None
        self.collections = []
        await self.publish([])

    def _parse_rows[T: BaseModel](
        self, rows: Iterable[dict[str, Any]], model: type[T], kind: str
    ) -> list[T]:
        parsed: list[T] = []
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError as e:
                log.warning(
                    f"Skipping invalid remote {kind} row "
                    f"$$'{row.get('id') if isinstance(row, dict) else row}'$$: "
                    f"{e.error_count()} validation error(s)"
                )
        return parsed

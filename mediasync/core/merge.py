"""Reconciliation of the local and remote record sets."""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Protocol

__all__ = ["merge_records"]


class _Identified(Protocol):
    id: str


def merge_records[T: _Identified](
    local: Iterable[T], remote: Iterable[T], pending_delete_ids: Collection[str]
) -> list[T]:
    """Merge a remote pull into the local set.

    Remote records win for every id they contain, except ids with a queued
    delete, which are dropped. Local records the remote has never seen (and that
    are not pending deletion) are kept, so an empty pull never empties the local
    set. Matching is by id only.

    Args:
        local (Iterable[T]): Records currently in the local store
        remote (Iterable[T]): Records pulled from the remote store, in remote order
        pending_delete_ids (Collection[str]): Ids with a queued delete

    Returns:
        list[T]: Remote records first (remote order), then local-only records
    """
    deleted = set(pending_delete_ids)
    merged: list[T] = []
    remote_ids: set[str] = set()
    for record in remote:
        if record.id in remote_ids:
            continue
        remote_ids.add(record.id)
        if record.id not in deleted:
            merged.append(record)

    merged.extend(
        record
        for record in local
        if record.id not in remote_ids and record.id not in deleted
    )
    return merged

"""API endpoints for media items."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel

from mediasync.models.schemas.history import HistoryEvent
from mediasync.models.schemas.media import MediaDraft, MediaItem, MediaPatch
from mediasync.web.state import get_app_state

__all__ = ["router"]


class OkResponse(BaseModel):
    ok: bool = True


class MediaListResponse(BaseModel):
    items: list[MediaItem]
    total: int


router = APIRouter()


@router.get("", response_model=MediaListResponse)
async def list_media(
    refresh: bool = Query(False, description="Reconcile with the remote first"),
) -> MediaListResponse:
    """List media items, most recently updated first.

    Args:
        refresh (bool): Run a reconcile before answering.

    Returns:
        MediaListResponse: The published media list.
    """
    coordinator = get_app_state().require_service().coordinator
    if refresh:
        items = await coordinator.fetch()
    else:
        items = coordinator.store.get_all()
    return MediaListResponse(items=items, total=len(items))


@router.get("/query", response_model=MediaListResponse)
async def query_media(
    field: str = Query(..., description="Indexed field to query"),
    lower: str | None = Query(None, description="Inclusive lower bound"),
    upper: str | None = Query(None, description="Inclusive upper bound"),
    equals: str | None = Query(None, description="Exact value"),
    descending: bool = Query(False),
    limit: int | None = Query(None, ge=1, le=1000),
) -> MediaListResponse:
    """Query media items by a single indexed field.

    Numeric, boolean and datetime bounds are parsed from their string form.

    Returns:
        MediaListResponse: The matching items.

    Raises:
        UnsupportedQueryFieldError: If the field is not queryable.
    """
    store = get_app_state().require_service().coordinator.store
    items = store.range_query(
        field,
        lower=_parse_value(field, lower),
        upper=_parse_value(field, upper),
        equals=_parse_value(field, equals),
        descending=descending,
        limit=limit,
    )
    return MediaListResponse(items=items, total=len(items))


_TEXT_FIELDS = frozenset({"title", "normalized_title", "type", "status"})


def _parse_value(
    field: str, raw: str | None
) -> str | int | float | bool | datetime | None:
    if raw is None or field in _TEXT_FIELDS:
        return raw
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return raw


@router.get("/{media_id}", response_model=MediaItem)
async def get_media(media_id: str) -> MediaItem:
    """Return a single media item.

    Raises:
        MediaItemNotFoundError: If the item does not exist.
    """
    return get_app_state().require_service().coordinator.store.require(media_id)


@router.post("", response_model=MediaItem, status_code=201)
async def add_media(draft: MediaDraft) -> MediaItem:
    """Add a media item. The remote insert happens in the background."""
    return await get_app_state().require_service().coordinator.add(draft)


@router.patch("/{media_id}", response_model=MediaItem)
async def update_media(media_id: str, patch: MediaPatch) -> MediaItem:
    """Apply a partial update to a media item.

    Raises:
        MediaItemNotFoundError: If the item does not exist.
    """
    return await get_app_state().require_service().coordinator.update(
        media_id, patch
    )


@router.delete("/{media_id}", response_model=OkResponse)
async def delete_media(media_id: str) -> OkResponse:
    """Delete a media item.

    Raises:
        MediaItemNotFoundError: If the item does not exist.
    """
    await get_app_state().require_service().coordinator.delete(media_id)
    return OkResponse()


@router.get("/{media_id}/history", response_model=list[HistoryEvent])
async def media_history(media_id: str) -> list[HistoryEvent]:
    """Return the history of a single media item, newest first."""
    return get_app_state().require_service().coordinator.history.for_media(media_id)

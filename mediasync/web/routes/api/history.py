"""API endpoints for the media history timeline."""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from mediasync.models.schemas.history import HistoryEvent
from mediasync.web.state import get_app_state

__all__ = ["router"]


class HistoryResponse(BaseModel):
    items: list[HistoryEvent]


router = APIRouter()


@router.get("", response_model=HistoryResponse)
async def history(
    limit: int = Query(50, ge=1, le=500),
    media_id: str | None = Query(None, description="Restrict to one media item"),
) -> HistoryResponse:
    """Return history events newest first, pulling missing remote events first.

    Args:
        limit (int): The maximum number of events to return.
        media_id (str | None): Optional media item filter.

    Returns:
        HistoryResponse: The history events.
    """
    coordinator = get_app_state().require_service().coordinator
    items = await coordinator.fetch_history(limit=limit, media_id=media_id)
    return HistoryResponse(items=items)

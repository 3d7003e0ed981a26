"""API endpoints for export, import and local data reset."""

from typing import Any

from fastapi import APIRouter, Body
from pydantic import BaseModel

from mediasync.core.backup import export_document, import_document
from mediasync.models.schemas.sync import ExportDocument
from mediasync.web.state import get_app_state

__all__ = ["router"]


class OkResponse(BaseModel):
    ok: bool = True


class ImportResponse(BaseModel):
    media: int
    collections: int


router = APIRouter()


@router.get("/export", response_model=ExportDocument)
async def export_library() -> ExportDocument:
    """Export the local media and collections."""
    store = get_app_state().require_service().coordinator.store
    return export_document(store)


@router.post("/import", response_model=ImportResponse)
async def import_library(payload: dict[str, Any] = Body(...)) -> ImportResponse:
    """Replace the local media and collections with an export document.

    Raises:
        BackupParseError: If the payload is not a valid export document.
    """
    coordinator = get_app_state().require_service().coordinator
    document = import_document(coordinator.store, payload)
    await coordinator.publish(coordinator.store.get_all())
    return ImportResponse(
        media=len(document.media), collections=len(document.collections)
    )


@router.post("/reset", response_model=OkResponse)
async def reset_local_data() -> OkResponse:
    """Wipe all local data (logout)."""
    await get_app_state().require_service().reset()
    return OkResponse()

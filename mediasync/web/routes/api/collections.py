"""API endpoints for smart collections."""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from mediasync.models.schemas.collection import (
    CollectionDraft,
    CollectionPatch,
    SmartCollection,
)
from mediasync.web.state import get_app_state

__all__ = ["router"]


class OkResponse(BaseModel):
    ok: bool = True


router = APIRouter()


@router.get("", response_model=list[SmartCollection])
async def list_collections(refresh: bool = Query(False)) -> list[SmartCollection]:
    """List collections, optionally reconciling with the remote first."""
    coordinator = get_app_state().require_service().coordinator
    if refresh:
        return await coordinator.fetch_collections()
    return coordinator.store.get_collections()


@router.get("/{collection_id}", response_model=SmartCollection)
async def get_collection(collection_id: str) -> SmartCollection:
    """Return a single collection.

    Raises:
        CollectionNotFoundError: If the collection does not exist.
    """
    store = get_app_state().require_service().coordinator.store
    return store.require_collection(collection_id)


@router.post("", response_model=SmartCollection, status_code=201)
async def add_collection(draft: CollectionDraft) -> SmartCollection:
    """Create a collection."""
    return await get_app_state().require_service().coordinator.add_collection(draft)


@router.patch("/{collection_id}", response_model=SmartCollection)
async def update_collection(
    collection_id: str, patch: CollectionPatch
) -> SmartCollection:
    """Apply a partial update to a collection."""
    coordinator = get_app_state().require_service().coordinator
    return await coordinator.update_collection(collection_id, patch)


@router.delete("/{collection_id}", response_model=OkResponse)
async def delete_collection(collection_id: str) -> OkResponse:
    """Delete a collection."""
    await get_app_state().require_service().coordinator.delete_collection(
        collection_id
    )
    return OkResponse()


@router.put("/{collection_id}/media/{media_id}", response_model=SmartCollection)
async def add_member(collection_id: str, media_id: str) -> SmartCollection:
    """Add a media item to a collection."""
    coordinator = get_app_state().require_service().coordinator
    return await coordinator.add_media_to_collection(collection_id, media_id)


@router.delete("/{collection_id}/media/{media_id}", response_model=SmartCollection)
async def remove_member(collection_id: str, media_id: str) -> SmartCollection:
    """Remove a media item from a collection."""
    coordinator = get_app_state().require_service().coordinator
    return await coordinator.remove_media_from_collection(collection_id, media_id)

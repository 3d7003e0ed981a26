"""API status endpoints."""

from datetime import datetime

from fastapi.routing import APIRouter
from pydantic import BaseModel

from mediasync import __version__
from mediasync.models.schemas.sync import SyncStatus
from mediasync.web.state import get_app_state

__all__ = ["ConnectivityRequest", "StatusResponse", "router"]


class StatusResponse(BaseModel):
    """Sync status plus process information exposed to the application layer."""

    version: str
    started_at: datetime
    ready: bool
    sync: SyncStatus | None = None
    next_sync_at: datetime | None = None


class ConnectivityRequest(BaseModel):
    online: bool


router = APIRouter()


def build_status() -> StatusResponse:
    """Collect the current status snapshot."""
    state = get_app_state()
    service = state.service
    if service is None or not service.initialized:
        return StatusResponse(
            version=__version__, started_at=state.started_at, ready=False
        )
    return StatusResponse(
        version=__version__,
        started_at=state.started_at,
        ready=True,
        sync=service.coordinator.status(),
        next_sync_at=service.scheduler.next_sync_at if service.scheduler else None,
    )


@router.get("", response_model=StatusResponse)
async def status() -> StatusResponse:
    """Get the status of the application.

    Returns:
        StatusResponse: The status of the application.
    """
    return build_status()


@router.put("/connectivity", response_model=SyncStatus)
async def set_connectivity(body: ConnectivityRequest) -> SyncStatus:
    """Set the connectivity flag reported by the application layer.

    Going online triggers a reconcile through the scheduler.
    """
    service = get_app_state().require_service()
    service.connectivity.set_online(body.online)
    return service.coordinator.status()

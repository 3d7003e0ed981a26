"""API endpoints to trigger reconciliation and manage the mutation queue."""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from mediasync.models.schemas.mutation import MutationMessage
from mediasync.web.state import get_app_state

__all__ = ["router"]


class OkResponse(BaseModel):
    ok: bool = True


class DrainResponse(BaseModel):
    delivered: int
    pending: int


class RequeueResponse(BaseModel):
    requeued: int


router = APIRouter()


@router.post("", response_model=OkResponse)
async def sync_now() -> OkResponse:
    """Run a reconcile cycle now.

    Raises:
        ServiceNotInitializedError: If the sync service is not running.
    """
    service = get_app_state().require_service()
    await service.scheduler.trigger_sync()
    return OkResponse(ok=True)


@router.post("/drain", response_model=DrainResponse)
async def drain_queue() -> DrainResponse:
    """Replay pending mutations without pulling remote data."""
    coordinator = get_app_state().require_service().coordinator
    delivered = await coordinator.drain()
    return DrainResponse(
        delivered=delivered, pending=coordinator.queue.pending_count()
    )


@router.get("/queue", response_model=list[MutationMessage])
async def pending_queue() -> list[MutationMessage]:
    """List pending mutations in delivery order."""
    return get_app_state().require_service().coordinator.queue.drain()


@router.get("/dead-letters", response_model=list[MutationMessage])
async def dead_letters() -> list[MutationMessage]:
    """List mutations that were rejected too often."""
    return get_app_state().require_service().coordinator.queue.dead_letters()


@router.post("/dead-letters/requeue", response_model=RequeueResponse)
async def requeue_dead_letters(
    message_id: str | None = Query(None, description="Requeue only this message"),
) -> RequeueResponse:
    """Move dead letters back to the pending queue.

    Raises:
        MutationNotFoundError: If ``message_id`` is not a dead letter.
    """
    queue = get_app_state().require_service().coordinator.queue
    return RequeueResponse(requeued=queue.requeue(message_id))


@router.delete("/queue/{message_id}", response_model=MutationMessage)
async def discard_mutation(message_id: str) -> MutationMessage:
    """Drop a queued mutation without delivering it.

    Raises:
        MutationNotFoundError: If the message does not exist.
    """
    return get_app_state().require_service().coordinator.queue.discard(message_id)

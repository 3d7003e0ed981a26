"""Websocket endpoint for periodic status snapshots."""

import asyncio

from fastapi.routing import APIRouter
from fastapi.websockets import WebSocket, WebSocketDisconnect

from mediasync.web.routes.api.status import build_status

__all__ = ["router"]

router = APIRouter()


@router.websocket("")
async def status_ws(ws: WebSocket) -> None:
    """Websocket endpoint for periodic status snapshots.

    Args:
        ws (WebSocket): The WebSocket connection instance.
    """
    await ws.accept()
    try:
        while True:
            snapshot = build_status()
            await ws.send_json(snapshot.model_dump(mode="json"))

            # Refresh faster while a reconcile or background write is running
            refresh = 0.5 if snapshot.sync and snapshot.sync.syncing else 5.0
            await asyncio.sleep(refresh)
    except WebSocketDisconnect:
        pass

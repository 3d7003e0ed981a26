"""Websocket routes."""

from fastapi import APIRouter

from mediasync.web.routes.ws.status import router as status_router

__all__ = ["router"]

router = APIRouter()

router.include_router(status_router, prefix="/status", tags=["status"])

"""API routes."""

from fastapi.routing import APIRouter

from mediasync.web.routes.api.backup import router as backup_router
from mediasync.web.routes.api.collections import router as collections_router
from mediasync.web.routes.api.history import router as history_router
from mediasync.web.routes.api.media import router as media_router
from mediasync.web.routes.api.status import router as status_router
from mediasync.web.routes.api.sync import router as sync_router

__all__ = ["router"]

router = APIRouter()


router.include_router(media_router, prefix="/media", tags=["media"])
router.include_router(
    collections_router, prefix="/collections", tags=["collections"]
)
router.include_router(history_router, prefix="/history", tags=["history"])
router.include_router(sync_router, prefix="/sync", tags=["sync"])
router.include_router(status_router, prefix="/status", tags=["status"])
router.include_router(backup_router, prefix="/backup", tags=["backup"])

"""Route aggregators for the web application."""

from fastapi.routing import APIRouter

from mediasync.web.routes.api import router as api_router
from mediasync.web.routes.ws import router as ws_router

__all__ = ["router"]

router = APIRouter()

router.include_router(api_router, prefix="/api", tags=[])
router.include_router(ws_router, prefix="/ws", tags=[])

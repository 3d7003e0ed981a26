"""FastAPI application factory and setup."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi.applications import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

from mediasync import __version__, log
from mediasync.core.service import SyncService
from mediasync.exceptions import MediaSyncError
from mediasync.web.routes import router
from mediasync.web.state import get_app_state

__all__ = ["create_app"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan context manager.

    Args:
        app (FastAPI): The FastAPI application instance.

    Returns:
        AsyncGenerator: The application lifespan context manager.
    """
    service: SyncService | None = app.extra.get("service")
    started_here = False
    if service is None:
        log.info("Web: No sync service passed; external lifecycle management expected")
    else:
        get_app_state().set_service(service)
        if not service.is_running:
            await service.start()
            started_here = True
            log.success("Web: Sync service started for web API")
    try:
        yield
    finally:
        await get_app_state().shutdown()
        if service is not None and started_here:
            await service.stop()


def create_app(service: SyncService | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        service (SyncService | None): The sync service instance.

    Returns:
        FastAPI: The created FastAPI application.
    """
    app = FastAPI(title="MediaSync", lifespan=lifespan, version=__version__)

    if service:
        app.extra["service"] = service

    app.include_router(router)

    @app.exception_handler(MediaSyncError)
    async def domain_exception_handler(
        request: Request, exc: MediaSyncError
    ) -> JSONResponse:
        """Handle MediaSync errors with structured JSON responses.

        Args:
            request (Request): The incoming HTTP request.
            exc (MediaSyncError): The exception instance.

        Returns:
            JSONResponse: Structured JSON response with error details.
        """
        cls = exc.__class__
        payload = {
            "error": cls.__name__,
            "detail": str(exc) or cls.__doc__ or "",
            "path": request.url.path,
        }
        return JSONResponse(status_code=cls.status_code, content=payload)

    return app

"""MediaSync Main Application."""

import asyncio
import signal
import sys

import uvicorn
from pydantic import ValidationError

from mediasync import MEDIASYNC_HEADER, log
from mediasync.config.settings import get_config
from mediasync.core.service import SyncService
from mediasync.exceptions import MediaSyncError
from mediasync.web.app import create_app


def _setup_signal_handlers_for_service(service: SyncService) -> None:
    """Install SIGINT/SIGTERM handlers that request service shutdown."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.get_event_loop()

    def _on_signal(sig):
        name = signal.Signals(sig).name if sig else "UNKNOWN"
        log.info(f"MediaSync: Received {name} signal, initiating graceful shutdown...")
        try:
            service.request_shutdown()
        except Exception:
            log.debug(
                "Failed to request service shutdown from signal handler",
                exc_info=True,
            )

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _on_signal(s))
        except NotImplementedError:
            # Fallback for environments that don't support add_signal_handler
            signal.signal(sig, lambda s, f: _on_signal(s))


def validate_configuration() -> bool:
    """Load the application configuration and log a summary of it.

    Returns:
        bool: True if configuration is valid, False otherwise
    """
    try:
        config = get_config()
        log.info(f"MediaSync: Configuration: {config!s}")
        if not config.remote.configured:
            log.warning(
                "MediaSync: No remote store configured, running in local-only mode"
            )
        return True
    except ValidationError as e:
        log.error(f"MediaSync: Configuration validation failed: {e}")
        return False
    except ValueError as e:
        log.error(f"MediaSync: Configuration value error: {e}")
        return False
    except OSError as e:
        log.error(f"MediaSync: File system error during configuration: {e}")
        return False


async def run() -> int:
    """Main application entry point.

    Initializes the sync service and runs it until shutdown.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    service: SyncService | None = None
    server_task: asyncio.Task | None = None

    ret = 0
    try:
        log.info("\n" + MEDIASYNC_HEADER)

        if not validate_configuration():
            return 1
        config = get_config()

        service = SyncService(config)
        await service.initialize()
        await service.start()

        _setup_signal_handlers_for_service(service)

        if config.web.enabled:
            app = create_app(service)
            uv_config = uvicorn.Config(
                app,
                host=config.web.host,
                port=config.web.port,
                log_config=None,
                loop="asyncio",
                proxy_headers=True,
                forwarded_allow_ips="*",
            )

            server = uvicorn.Server(uv_config)
            # Use `_serve()` so uvicorn doesn't install its own signal handlers
            server_task = asyncio.create_task(server._serve())

            log.success(
                "MediaSync: API started at "
                f"\033[92mhttp://{config.web.host}:{config.web.port} "
                "(ctrl+c to stop)\033[0m"
            )

            await service.wait_for_completion()

            server.should_exit = True
            await server_task
        else:
            await service.wait_for_completion()
    except KeyboardInterrupt:
        log.info("MediaSync: Keyboard interrupt received, shutting down...")
    except MediaSyncError as e:
        log.error(f"MediaSync: {e}")
        return 1
    except OSError as e:
        log.error(f"MediaSync: File system error: {e}")
        return 1
    except asyncio.CancelledError:
        log.info("MediaSync: Application cancelled")
        return 0
    except Exception as e:
        log.error(f"MediaSync: Unexpected application error: {e}", exc_info=True)
        return 1
    finally:
        if service:
            log.info("MediaSync: Shutting down application...")
            try:
                await service.stop()
                log.success("MediaSync: Application shutdown complete")
            except asyncio.CancelledError:
                log.info("MediaSync: Shutdown cancelled")
                ret = 1
            except Exception as e:
                log.error(f"MediaSync: Error during shutdown: {e}", exc_info=True)
                ret = 1
    return ret


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv (list[str] | None): Command-line arguments (unused).

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        log.info("MediaSync: Application interrupted")
        return 0
    except Exception as e:
        log.error(f"MediaSync: Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

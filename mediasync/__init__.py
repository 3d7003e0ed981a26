"""MediaSync: offline-first media library synchronization."""

from mediasync.utils.logging import Logger, get_logger
from mediasync.utils.terminal import supports_utf8
from mediasync.utils.version import (
    get_docker_status,
    get_git_hash,
    get_pyproject_version,
)

__license__ = "MIT"
__version__ = get_pyproject_version()
__git_hash__ = get_git_hash()


if supports_utf8():
    MEDIASYNC_HEADER = f"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                               M E D I A S Y N C                               ║
╠═══════════════════════════════════════════════════════════════════════════════╣
║                                                                               ║
║  Version: {__version__:<68}║
║  Git Hash: {__git_hash__:<67}║
║  Docker: {"Yes" if get_docker_status() else "No":<69}║
║  License: {__license__:<68}║
║                                                                               ║
╚═══════════════════════════════════════════════════════════════════════════════╝
    """.strip()
else:
    MEDIASYNC_HEADER = f"""
+-------------------------------------------------------------------------------+
|                               M E D I A S Y N C                               |
+-------------------------------------------------------------------------------+
|                                                                               |
|  Version: {__version__:<68}|
|  Git Hash: {__git_hash__:<67}|
|  Docker: {"Yes" if get_docker_status() else "No":<69}|
|  License: {__license__:<68}|
|                                                                               |
+-------------------------------------------------------------------------------+
    """.strip()

log: Logger = get_logger()

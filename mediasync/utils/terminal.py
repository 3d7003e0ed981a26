"""Terminal capability detection."""

import locale
import os
import sys
from functools import lru_cache

import colorama

__all__ = ["supports_color", "supports_utf8"]


@lru_cache(maxsize=1)
def supports_utf8() -> bool:
    """Check whether the attached terminal can render UTF-8 box characters.

    Returns:
        bool: True if stdout (or the preferred locale) uses a UTF encoding.
    """
    encoding = getattr(sys.stdout, "encoding", None) or locale.getpreferredencoding(
        False
    )
    return encoding.lower().startswith("utf")


@lru_cache(maxsize=1)
def supports_color() -> bool:
    """Check whether ANSI color sequences should be emitted.

    Honors the ``NO_COLOR`` convention and only colors interactive terminals.
    On Windows, colors are only used when colorama already patched the console
    or the host is a known ANSI capable terminal.

    Returns:
        bool: True if the terminal supports color, False otherwise
    """
    if os.environ.get("NO_COLOR"):
        return False

    is_a_tty = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
    if not is_a_tty:
        return False

    if sys.platform == "win32":
        return (
            getattr(colorama, "fixed_windows_console", False)
            or "ANSICON" in os.environ
            or "WT_SESSION" in os.environ
            or os.environ.get("TERM_PROGRAM") == "vscode"
        )

    return os.environ.get("TERM") != "dumb"

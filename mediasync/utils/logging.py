"""Logging utilities module."""

import logging
import re
import sys
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import ClassVar

import colorama
from colorama import Fore, Style

__all__ = ["CleanFormatter", "ColorFormatter", "Logger", "get_logger"]

QUOTED_PATTERN = re.compile(r"\$\$'((?:[^']|'(?!\$\$))*)'\$\$")
BRACED_PATTERN = re.compile(r"\$\$\{(.*?)\}\$\$")

LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColorFormatter(logging.Formatter):
    """Formatter that adds ANSI colors to console output.

    Levels are colored by severity. Values wrapped in ``$$'...'$$`` markers are
    highlighted (media titles, ids) and values wrapped in ``$${...}$$`` markers
    are dimmed (payload dumps, counters).
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "SUCCESS": Fore.GREEN + Style.BRIGHT,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a record with color codes, restoring the record afterwards.

        Args:
            record (logging.LogRecord): Log record to format

        Returns:
            str: Color-formatted log message
        """
        orig_msg = record.msg
        orig_levelname = record.levelname
        record.levelname = (
            f"{self.COLORS.get(record.levelname, '')}{record.levelname}"
            f"{Style.RESET_ALL}"
        )

        if isinstance(record.msg, str):
            record.msg = QUOTED_PATTERN.sub(
                f"{Fore.LIGHTBLUE_EX}'\\1'{Style.RESET_ALL}", record.msg
            )
            record.msg = BRACED_PATTERN.sub(
                f"{Style.DIM}{{\\1}}{Style.RESET_ALL}", record.msg
            )

        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.msg = orig_msg


class CleanFormatter(logging.Formatter):
    """Formatter that strips the highlighting markers.

    Used for the log file and for terminals without color support.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a record without the ``$$`` markers.

        Args:
            record (logging.LogRecord): Log record to format

        Returns:
            str: Clean log message
        """
        if not isinstance(record.msg, str):
            return super().format(record)

        orig_msg = record.msg
        record.msg = QUOTED_PATTERN.sub("'\\1'", record.msg)
        record.msg = BRACED_PATTERN.sub("{\\1}", record.msg)
        try:
            return super().format(record)
        finally:
            record.msg = orig_msg


class Logger(logging.Logger):
    """Logger that prefixes messages with the calling class and adds SUCCESS."""

    SUCCESS = logging.INFO + 5

    def __init__(self, name, level=logging.NOTSET):
        """Initialize the logger and register the SUCCESS level name."""
        super().__init__(name, level)

        if logging.getLevelName(self.SUCCESS) != "SUCCESS":
            logging.addLevelName(self.SUCCESS, "SUCCESS")

    def _log(
        self,
        level,
        msg,
        args,
        exc_info=None,
        extra=None,
        stack_info=False,
        stacklevel=1,
    ):
        """Prefix the message with the class name of the caller, if any."""
        try:
            # Frame 0 is _log, frame 1 the public level method, frame 2 the caller
            frame = sys._getframe(2)
            class_name = None
            if "self" in frame.f_locals:
                obj = frame.f_locals["self"]
                if not isinstance(obj, logging.Logger):
                    class_name = obj.__class__.__name__
            elif "cls" in frame.f_locals:
                cls = frame.f_locals["cls"]
                if isinstance(cls, type):
                    class_name = cls.__name__

            if class_name and isinstance(msg, str):
                msg = f"{class_name}: {msg}"
        except (ValueError, KeyError, AttributeError):
            pass

        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )

    def success(self, msg, *args, **kwargs):
        """Log a message with SUCCESS level."""
        self.log(self.SUCCESS, msg, *args, **kwargs)

    def setup(
        self,
        log_level: str,
        log_dir: str | None = None,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        """Attach console and (optionally) rotating file handlers.

        Args:
            log_level (str): Logging level ('DEBUG', 'INFO', 'SUCCESS', etc.)
            log_dir (str | None): Directory for the rotating log file.
            max_bytes (int): Size at which the log file is rotated.
            backup_count (int): Number of rotated files to keep.
        """
        has_color_support = False
        try:
            from mediasync.utils.terminal import supports_color

            if supports_color():
                if sys.platform == "win32":
                    colorama.just_fix_windows_console()
                has_color_support = True
        except (AttributeError, ImportError, OSError):
            has_color_support = False

        level = str(log_level).upper()
        level_value = self.SUCCESS if level == "SUCCESS" else getattr(logging, level)
        self.setLevel(level_value)

        for handler in self.handlers[:]:
            self.removeHandler(handler)
            handler.close()

        log_format = (
            "%(asctime)s - %(name)s - %(levelname)s\t%(filename)s:%(lineno)d\t"
            "%(message)s"
            if level_value <= logging.DEBUG
            else "%(asctime)s - %(name)s - %(levelname)s\t%(message)s"
        )

        formatter_cls = ColorFormatter if has_color_support else CleanFormatter
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter_cls(log_format, datefmt=LOG_DATE_FORMAT))
        console_handler.setLevel(level_value)
        self.addHandler(console_handler)

        if log_dir is not None:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_path / f"{self.name}.{level}.log",
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(
                CleanFormatter(log_format, datefmt=LOG_DATE_FORMAT)
            )
            file_handler.setLevel(level_value)
            self.addHandler(file_handler)


logging.setLoggerClass(Logger)


def _get_logger(
    log_name: str, log_level: str = "INFO", log_dir: str | Path | None = None
) -> Logger:
    """Get a configured Logger instance.

    Args:
        log_name (str): Name of the logger and base name for the log file.
        log_level (str): Logging level. Defaults to "INFO".
        log_dir (str | Path | None): Directory where log files will be stored.

    Returns:
        Logger: Configured logger instance
    """
    logger = logging.getLogger(log_name)
    if not isinstance(logger, Logger):
        logger = Logger(log_name)

    logger.setup(str(log_level), str(log_dir) if log_dir is not None else None)
    return logger


@lru_cache(maxsize=1)
def get_logger() -> Logger:
    """Get the main application logger.

    Returns:
        Logger: Main application logger instance
    """
    from mediasync.config.settings import get_config

    config = get_config()

    return _get_logger(
        log_name="MediaSync",
        log_level=str(config.log_level),
        log_dir=config.data_path / "logs",
    )

"""Logging setup for podmenu.

Everything logs under the ``podmenu`` logger. Engine modules use plain
``logging.getLogger(__name__)`` and never print, so a status-bar host that
embeds the engine only gets the rotating log file (plus stderr when asked).
CLI commands use ``get_logger``, whose messages are also echoed to a Rich
console.

Environment Variables:
    PODMENU_DEBUG=1          Debug level and echo debug messages
    PODMENU_LOG_LEVEL=DEBUG  Level for the podmenu logger
    PODMENU_LOG_FILE=/path   Log file location
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from podmenu.paths import HostPaths

LOGGER_NAME = "podmenu"

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

console = Console()

_configured = False
_debug = False
_stderr_only = False

# level -> (rich style, prefix mark)
_ECHO_STYLES = {
    logging.DEBUG: ("dim", "[DEBUG]"),
    logging.INFO: ("blue", ""),
    SUCCESS: ("green", "✓"),
    logging.WARNING: ("yellow", "⚠"),
    logging.ERROR: ("red", "✗"),
}


def _debug_from_env() -> bool:
    return os.environ.get("PODMENU_DEBUG", "").lower() in ("1", "true", "yes")


def is_debug_mode() -> bool:
    return _debug or _debug_from_env()


def _file_handler(path: Path) -> Optional[logging.Handler]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
        )
    except OSError:
        # Read-only home or similar; run without a log file
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def configure_logging(
    debug: bool = False,
    stderr: bool = False,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Attach handlers to the podmenu logger.

    Called by the CLI entry point, or once by a host embedding the engine.
    Repeated calls do nothing unless ``force`` is set.

    Args:
        debug: Debug level and console echo of debug messages
        stderr: Also log plain lines to stderr and echo without Rich markup
        level: Level name overriding PODMENU_LOG_LEVEL
        log_file: Log file overriding PODMENU_LOG_FILE
        force: Replace handlers from an earlier call
    """
    global _configured, _debug, _stderr_only

    if _configured and not force:
        return

    _debug = debug or _debug_from_env()
    _stderr_only = stderr

    level_name = (level or os.environ.get("PODMENU_LOG_LEVEL") or ("DEBUG" if _debug else "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = _file_handler(log_file or HostPaths.log_file())
    if handler is not None:
        logger.addHandler(handler)

    if stderr:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(numeric_level)
        stream.setFormatter(logging.Formatter("%(name)s: %(levelname)s: %(message)s"))
        logger.addHandler(stream)

    _configured = True
    logger.debug(f"Logging configured: level={level_name} debug={_debug} stderr={stderr}")


class CliLogger:
    """Logs a message and echoes it to the console, styled by level."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, echo: bool, exc: Optional[Exception] = None) -> None:
        self.logger.log(level, message, exc_info=exc)
        if not echo:
            return
        if _stderr_only:
            print(f"{logging.getLevelName(level)}: {message}", file=sys.stderr)
            return
        style, mark = _ECHO_STYLES[level]
        text = escape(f"{mark} {message}" if mark else message)
        console.print(f"[{style}]{text}[/{style}]")

    def debug(self, message: str, echo: Optional[bool] = None) -> None:
        self._emit(logging.DEBUG, message, is_debug_mode() if echo is None else echo)

    def info(self, message: str, echo: bool = True) -> None:
        self._emit(logging.INFO, message, echo)

    def success(self, message: str, echo: bool = True) -> None:
        self._emit(SUCCESS, message, echo)

    def warning(self, message: str, echo: bool = True) -> None:
        self._emit(logging.WARNING, message, echo)

    def error(self, message: str, exc: Optional[Exception] = None, echo: bool = True) -> None:
        if exc is not None:
            message = f"{message}: {exc}"
        self._emit(logging.ERROR, message, echo, exc)


def get_logger(name: str) -> CliLogger:
    """Return a console-echoing logger, configuring logging on first use."""
    if not _configured:
        configure_logging()
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return CliLogger(name)

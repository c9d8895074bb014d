# uisync/logconfig.py
"""
@file logconfig.py
@brief SUCCESS log level and console/file handlers for the ``uisync`` logger tree.

Library modules log through ``logging.getLogger(__name__)``; nothing is
printed until an application calls ``setup_logging()`` or configures the
``uisync`` logger itself.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

ROOT_LOGGER_NAME = "uisync"

# Leading marker per level, so passes and failures stand out in a long run.
LEVEL_MARKERS: Dict[int, str] = {
    logging.DEBUG: "[.]",
    logging.INFO: "[i]",
    SUCCESS: "[+]",
    logging.WARNING: "[!]",
    logging.ERROR: "[x]",
    logging.CRITICAL: "[X]",
}

THREADED_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)-8s] [%(threadName)-16.16s] %(marker)s %(name)s: %(message)s"
PLAIN_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)-8s] %(marker)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_TAG = "_uisync_handler"


def _marker_for(levelno: int) -> str:
    best = "[?]"
    for level in sorted(LEVEL_MARKERS):
        if levelno >= level:
            best = LEVEL_MARKERS[level]
    return best


class SyncLogFormatter(logging.Formatter):
    """Timestamp, level, optional thread name and a level marker before each message."""

    def __init__(self, include_thread: bool = True):
        super().__init__(THREADED_FORMAT if include_thread else PLAIN_FORMAT, datefmt=DATE_FORMAT)
        self.include_thread = include_thread

    def format(self, record: logging.LogRecord) -> str:
        record.marker = _marker_for(record.levelno)
        return super().format(record)


def _tagged(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    handler.setFormatter(SyncLogFormatter(include_thread=True))
    return handler


def setup_logging(
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_file: Optional[Path] = None,
) -> None:
    """
    Attach console and optional file handlers to the ``uisync`` logger.

    Calling it again is a no-op while handlers from an earlier call are
    still attached. A log file that cannot be opened is reported on the
    console and skipped.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if any(getattr(h, _HANDLER_TAG, False) for h in root_logger.handlers):
        return

    root_logger.setLevel(min(console_level, file_level))

    console_handler = _tagged(logging.StreamHandler(sys.stdout))
    console_handler.setLevel(console_level)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = _tagged(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        except OSError as e:
            root_logger.warning("Could not create log file %s: %s", log_file, e)
        else:
            file_handler.setLevel(file_level)
            root_logger.addHandler(file_handler)

    root_logger.debug("Logging initialized. Log file: %s", log_file)


def log_success(logger: logging.Logger, msg: str, *args) -> None:
    """Log at the SUCCESS level."""
    logger.log(SUCCESS, msg, *args)

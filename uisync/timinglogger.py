# uisync/timinglogger.py
"""
@file timinglogger.py
@brief Opt-in structured timing events for wait observability.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

_STATUS_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class TimingLogger:
    """Thread-safe timing logger writing key=value records."""

    def __init__(self, name: str = "uisync.timing") -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._logger = logging.getLogger(name)

    def enable(self) -> None:
        """Enable logging."""
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        """Disable logging."""
        with self._lock:
            self._enabled = False

    def is_enabled(self) -> bool:
        """Return True if logging is enabled."""
        return self._enabled

    def log(
        self,
        *,
        event: str,
        description: Optional[str] = None,
        status: str = "info",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Emit a timing log event."""
        if not self._enabled:
            return

        parts = [f"event={event}"]
        if description:
            parts.append(f"description={description}")
        for key, value in (metadata or {}).items():
            parts.append(f"{key}={value}")

        self._logger.log(_STATUS_LEVELS.get(status.lower(), logging.INFO), " ".join(parts))


TIMING_LOGGER = TimingLogger()

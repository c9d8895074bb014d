# uisync/exceptions.py
"""
@file exceptions.py
@brief Error taxonomy shared by the session registry, conditions and waits.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Type


class ErrorKind(str, Enum):
    """Failure kinds a wait or session operation can end with."""

    SESSION_INIT = "session_init"
    SESSION_NOT_BOUND = "session_not_bound"
    WAIT_TIMEOUT = "wait_timeout"
    ELEMENT_NOT_INTERACTABLE = "element_not_interactable"
    STALE_HANDLE = "stale_handle"
    TRANSPORT = "transport"
    INVALID_LOCATOR = "invalid_locator"
    NO_ENABLED_OPTION = "no_enabled_option"


class UISyncError(Exception):
    """Base exception for the framework."""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ConfigError(UISyncError):
    """Raised when the YAML configuration is invalid."""


class SessionInitError(UISyncError):
    """Raised when the underlying browser session could not be created."""

    kind = ErrorKind.SESSION_INIT


class SessionNotBoundError(UISyncError):
    """Raised when no ACTIVE session is bound to the calling context."""

    kind = ErrorKind.SESSION_NOT_BOUND


class WaitTimeoutError(UISyncError):
    """
    Raised when a condition is never satisfied within its timeout.

    Attributes:
        label: Human-readable description of what was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of condition evaluations made
        elapsed_time: Actual elapsed time in seconds
    """

    kind = ErrorKind.WAIT_TIMEOUT

    def __init__(
        self,
        message: str,
        *,
        label: Optional[str] = None,
        timeout: Optional[float] = None,
        attempt_count: Optional[int] = None,
        elapsed_time: Optional[float] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause)
        self.label = label
        self.timeout = timeout
        self.attempt_count = attempt_count
        self.elapsed_time = elapsed_time

    def __str__(self) -> str:
        base_msg = super().__str__()

        details = []
        if self.cause is not None:
            details.append(f"Last error: {type(self.cause).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")

        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg


class ElementNotInteractableError(UISyncError):
    """Raised when a target exists but cannot be interacted with."""

    kind = ErrorKind.ELEMENT_NOT_INTERACTABLE


class StaleHandleError(UISyncError):
    """Raised when a previously resolved element reference is no longer valid."""

    kind = ErrorKind.STALE_HANDLE


class TransportError(UISyncError):
    """Raised on a remote-communication fault with the browser."""

    kind = ErrorKind.TRANSPORT


class InvalidLocatorError(UISyncError):
    """Raised when a locator is malformed or rejected by the browser."""

    kind = ErrorKind.INVALID_LOCATOR


class NoEnabledOptionError(UISyncError):
    """Raised when the bounded random selector exhausts its attempts."""

    kind = ErrorKind.NO_ENABLED_OPTION

    def __init__(self, message: str, attempts: int = 0, option_count: int = 0):
        super().__init__(message)
        self.attempts = attempts
        self.option_count = option_count


class WaitCancelledError(UISyncError):
    """Raised when a blocking wait is cancelled through its cancel event."""


_ERRORS_BY_KIND: Dict[ErrorKind, Type[UISyncError]] = {
    ErrorKind.SESSION_INIT: SessionInitError,
    ErrorKind.SESSION_NOT_BOUND: SessionNotBoundError,
    ErrorKind.WAIT_TIMEOUT: WaitTimeoutError,
    ErrorKind.ELEMENT_NOT_INTERACTABLE: ElementNotInteractableError,
    ErrorKind.STALE_HANDLE: StaleHandleError,
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.INVALID_LOCATOR: InvalidLocatorError,
    ErrorKind.NO_ENABLED_OPTION: NoEnabledOptionError,
}


def error_class_for(kind: ErrorKind) -> Type[UISyncError]:
    return _ERRORS_BY_KIND[kind]


def error_for(
    kind: ErrorKind,
    message: str,
    cause: Optional[BaseException] = None,
) -> UISyncError:
    """Build the exception instance matching an error kind."""
    cls = error_class_for(kind)
    if cls is WaitTimeoutError:
        return WaitTimeoutError(message, cause=cause)
    if cls is NoEnabledOptionError:
        error = NoEnabledOptionError(message)
        error.cause = cause
        return error
    return cls(message, cause=cause)

"""
uisync - synchronization layer for driving browser sessions from parallel tests.

This package provides:
- SessionRegistry: one browser session per execution context
- Conditions: visibility, clickability, alert, page-ready and collection checks
- Waits: the polling engine (poll, wait_for, fluent_wait, pause)
- Selector: bounded random choice of an enabled option
- Actions: log-and-continue action facade
- Exceptions: the shared error taxonomy
"""

from uisync.actions import Actions
from uisync.conditions import (
    AlertPresence,
    Clickability,
    CollectionClickable,
    Condition,
    ConditionResult,
    PageReadyState,
    Predicate,
    Visibility,
)
from uisync.config import TimeConfig, TimeoutSettings
from uisync.exceptions import (
    ConfigError,
    ElementNotInteractableError,
    ErrorKind,
    InvalidLocatorError,
    NoEnabledOptionError,
    SessionInitError,
    SessionNotBoundError,
    StaleHandleError,
    TransportError,
    UISyncError,
    WaitCancelledError,
    WaitTimeoutError,
)
from uisync.locator import Locator, Strategy
from uisync.logconfig import setup_logging
from uisync.properties import PropertyStore
from uisync.registry import REGISTRY, SessionRegistry, acquire, current, release
from uisync.selector import MAX_TRIES, Selection, select_random_enabled
from uisync.session import BrowserKind, Session, SessionState
from uisync.waits import PollPolicy, WaitOutcome, fluent_wait, pause, poll, wait_for

__all__ = [
    "Actions",
    "AlertPresence",
    "Clickability",
    "CollectionClickable",
    "Condition",
    "ConditionResult",
    "PageReadyState",
    "Predicate",
    "Visibility",
    "TimeConfig",
    "TimeoutSettings",
    "ConfigError",
    "ElementNotInteractableError",
    "ErrorKind",
    "InvalidLocatorError",
    "NoEnabledOptionError",
    "SessionInitError",
    "SessionNotBoundError",
    "StaleHandleError",
    "TransportError",
    "UISyncError",
    "WaitCancelledError",
    "WaitTimeoutError",
    "Locator",
    "Strategy",
    "setup_logging",
    "PropertyStore",
    "REGISTRY",
    "SessionRegistry",
    "acquire",
    "current",
    "release",
    "MAX_TRIES",
    "Selection",
    "select_random_enabled",
    "BrowserKind",
    "Session",
    "SessionState",
    "PollPolicy",
    "WaitOutcome",
    "fluent_wait",
    "pause",
    "poll",
    "wait_for",
]

__version__ = "1.0.0"

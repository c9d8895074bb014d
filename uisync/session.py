# uisync/session.py
"""
@file session.py
@brief Browser session value object and the default WebDriver factory.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Hashable, Optional
from uuid import uuid4

from selenium import webdriver

from .exceptions import TransportError

logger = logging.getLogger(__name__)

HEADLESS_ARGUMENT = "--headless"


class BrowserKind(str, Enum):
    """
    Supported browsers.

    SAFARI allows a single WebDriver instance at a time, so it cannot back
    parallel contexts. SAFARI and EXPLORER have no headless mode.
    """

    CHROME = "chrome"
    FIREFOX = "firefox"
    EDGE = "edge"
    SAFARI = "safari"
    EXPLORER = "explorer"
    CHROME_HEADLESS = "chrome_headless"
    FIREFOX_HEADLESS = "firefox_headless"
    EDGE_HEADLESS = "edge_headless"

    @property
    def headless(self) -> bool:
        return self.value.endswith("_headless")


class SessionState(str, Enum):
    # UNBOUND describes a context with no session; a Session object is
    # ACTIVE from creation until terminate().
    UNBOUND = "unbound"
    ACTIVE = "active"
    TERMINATED = "terminated"


class Session:
    """
    One live browser session owned by exactly one execution context.

    The handle is the underlying WebDriver. Only the owning context
    mutates the session; the registry only stores it.
    """

    def __init__(self, handle: Any, kind: BrowserKind, context_id: Optional[Hashable] = None):
        self.handle = handle
        self.kind = BrowserKind(kind)
        self.context_id = context_id
        self.session_id = str(uuid4())[:8]
        self.created_at = time.time()
        self._state = SessionState.ACTIVE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    def terminate(self) -> None:
        """
        Quit the browser and mark the session TERMINATED.

        @throws TransportError if the browser could not be quit cleanly;
                the session is TERMINATED either way.
        """
        with self._state_lock:
            if self._state is SessionState.TERMINATED:
                return
            handle = self.handle
            self._state = SessionState.TERMINATED

        if handle is None:
            return
        try:
            handle.quit()
        except Exception as e:
            raise TransportError(f"Failed to quit {self.kind.value} session {self.session_id}: {e}", cause=e) from e

    def __repr__(self) -> str:
        return (
            f"Session(id={self.session_id!r}, kind={self.kind.value!r}, "
            f"state={self._state.value!r}, context={self.context_id!r})"
        )


def create_driver(kind: BrowserKind) -> Any:
    """Create a local WebDriver for ``kind``."""
    kind = BrowserKind(kind)

    if kind is BrowserKind.CHROME:
        return webdriver.Chrome()
    if kind is BrowserKind.FIREFOX:
        return webdriver.Firefox()
    if kind is BrowserKind.EDGE:
        return webdriver.Edge()
    if kind is BrowserKind.SAFARI:
        return webdriver.Safari()
    if kind is BrowserKind.EXPLORER:
        return webdriver.Ie()
    if kind is BrowserKind.CHROME_HEADLESS:
        options = webdriver.ChromeOptions()
        options.add_argument(HEADLESS_ARGUMENT)
        return webdriver.Chrome(options=options)
    if kind is BrowserKind.FIREFOX_HEADLESS:
        options = webdriver.FirefoxOptions()
        options.add_argument(HEADLESS_ARGUMENT)
        return webdriver.Firefox(options=options)
    if kind is BrowserKind.EDGE_HEADLESS:
        options = webdriver.EdgeOptions()
        options.add_argument(HEADLESS_ARGUMENT)
        return webdriver.Edge(options=options)

    raise ValueError(f"Driver definition unclear: '{kind}'. Please select a valid BrowserKind.")

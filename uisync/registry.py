# uisync/registry.py
"""
@file registry.py
@brief Binds at most one browser session to each execution context.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Hashable, List, Optional

from selenium.common.exceptions import WebDriverException

from .config import TimeConfig
from .exceptions import SessionInitError, SessionNotBoundError, TransportError
from .logconfig import log_success
from .session import BrowserKind, Session, create_driver

logger = logging.getLogger(__name__)

DriverFactory = Callable[[BrowserKind], Any]
SessionSetup = Callable[[Any], None]


def default_setup(driver: Any) -> None:
    """
    Post-creation setup: maximize the window and apply the implicit wait.

    A window manager refusing to maximize is only logged; failing to set
    the implicit wait is a setup failure.
    """
    try:
        driver.maximize_window()
    except WebDriverException as e:
        logger.warning("Could not maximize browser window: %s", e)

    implicit_wait = TimeConfig.current().implicit_wait
    if implicit_wait > 0:
        driver.implicitly_wait(implicit_wait)
        logger.info("Implicit wait set to %ss", implicit_wait)


class _ThreadToken:
    """Identity of one thread's default context, dropped with the thread."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<thread {self.name}>"


class SessionRegistry:
    """
    Thread-safe map from execution context to its single Session.

    The context is the calling thread unless an explicit ``context`` token
    is passed, e.g. a worker id or an asyncio task. The lock only guards the
    map; browser creation and teardown run outside of it so one slow start
    never blocks other contexts.

    Sessions are released explicitly. A context that ends without calling
    ``release()`` leaks its browser; ``release_all()`` still reaches it.
    A thread's default context is keyed by a thread-local token rather
    than the thread ident, so a new thread never inherits a session
    leaked by a finished one.
    """

    def __init__(
        self,
        factory: DriverFactory = create_driver,
        setup: Optional[SessionSetup] = default_setup,
    ):
        self._factory = factory
        self._setup = setup
        self._lock = threading.Lock()
        self._sessions: Dict[Hashable, Session] = {}
        self._local = threading.local()

    def _context_id(self, context: Optional[Hashable]) -> Hashable:
        if context is not None:
            return context
        token = getattr(self._local, "token", None)
        if token is None:
            token = self._local.token = _ThreadToken(threading.current_thread().name)
        return token

    def _live(self, ctx: Hashable) -> Optional[Session]:
        """Bound ACTIVE session of ``ctx``; a dead binding is dropped. Caller holds the lock."""
        session = self._sessions.get(ctx)
        if session is not None and not session.is_active:
            logger.warning("Dropping %s session %s of context %s: %s",
                           session.kind.value, session.session_id, ctx, session.state.value)
            del self._sessions[ctx]
            return None
        return session

    def acquire(self, kind: BrowserKind, context: Optional[Hashable] = None) -> Session:
        """
        Bind a new session of ``kind`` to the context, unless an ACTIVE one is bound.

        A bound session is returned unchanged even when its kind differs
        from ``kind``; the mismatch is logged. A bound session that is no
        longer ACTIVE is discarded and replaced.

        @throws SessionInitError if the browser could not be created or set up
        """
        kind = BrowserKind(kind)
        ctx = self._context_id(context)

        with self._lock:
            existing = self._live(ctx)
        if existing is not None:
            if existing.kind is not kind:
                logger.warning(
                    "Context %s already owns a %s session; ignoring request for %s",
                    ctx, existing.kind.value, kind.value,
                )
            return existing

        session = self._create(kind, ctx)

        with self._lock:
            winner = self._sessions.setdefault(ctx, session)
        if winner is not session:
            # Another caller bound the same token first.
            logger.warning("Context %s was bound concurrently; discarding duplicate session", ctx)
            self._terminate_quietly(session)
            return winner

        log_success(logger, "%s session %s bound to context %s", kind.value, session.session_id, ctx)
        return session

    def _create(self, kind: BrowserKind, ctx: Hashable) -> Session:
        try:
            driver = self._factory(kind)
        except Exception as e:
            logger.error("Failed to create %s session: %s", kind.value, e)
            raise SessionInitError(f"Failed to create {kind.value} session: {e}", cause=e) from e

        if driver is None:
            raise SessionInitError(f"Driver factory returned no handle for {kind.value}")

        try:
            if self._setup is not None:
                self._setup(driver)
        except BaseException as e:
            self._quit_driver(driver)
            if not isinstance(e, Exception):
                raise
            logger.error("Setup of %s session failed: %s", kind.value, e)
            raise SessionInitError(f"Setup of {kind.value} session failed: {e}", cause=e) from e

        return Session(driver, kind, context_id=ctx)

    def current(self, context: Optional[Hashable] = None) -> Session:
        """
        Return the ACTIVE session bound to the context.

        @throws SessionNotBoundError if nothing is bound or the bound
                session was terminated
        """
        ctx = self._context_id(context)
        with self._lock:
            session = self._live(ctx)
        if session is None:
            raise SessionNotBoundError(f"No active session bound to context {ctx}. Call acquire() first.")
        return session

    def is_bound(self, context: Optional[Hashable] = None) -> bool:
        ctx = self._context_id(context)
        with self._lock:
            return self._live(ctx) is not None

    def release(self, context: Optional[Hashable] = None) -> None:
        """Terminate and unbind the context's session. Never raises."""
        ctx = self._context_id(context)
        with self._lock:
            session = self._sessions.pop(ctx, None)

        if session is None:
            logger.warning("No session bound to context %s; nothing to release.", ctx)
            return

        self._terminate_quietly(session)
        log_success(logger, "%s session %s released", session.kind.value, session.session_id)

    def release_all(self) -> int:
        """Release every bound session. Returns the number released."""
        with self._lock:
            sessions: List[Session] = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            self._terminate_quietly(session)
        if sessions:
            logger.info("Released %d session(s)", len(sessions))
        return len(sessions)

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    @contextmanager
    def bound_session(
        self,
        kind: BrowserKind,
        context: Optional[Hashable] = None,
    ) -> Generator[Session, None, None]:
        """Acquire a session for the block and release it afterwards."""
        session = self.acquire(kind, context=context)
        try:
            yield session
        finally:
            self.release(context=context)

    @staticmethod
    def _terminate_quietly(session: Session) -> None:
        try:
            session.terminate()
        except TransportError as e:
            logger.error("%s", e)

    @staticmethod
    def _quit_driver(driver: Any) -> None:
        try:
            driver.quit()
        except Exception as e:
            logger.error("Failed to quit half-initialized driver: %s", e)


REGISTRY = SessionRegistry()


def acquire(kind: BrowserKind, context: Optional[Hashable] = None) -> Session:
    return REGISTRY.acquire(kind, context=context)


def current(context: Optional[Hashable] = None) -> Session:
    return REGISTRY.current(context=context)


def release(context: Optional[Hashable] = None) -> None:
    REGISTRY.release(context=context)

# uisync/waits.py
"""
@file waits.py
@brief Condition-polling engine: every blocking wait goes through poll().
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, FrozenSet, Generic, Iterable, Optional, TypeVar

from .conditions import Condition, ResultTag
from .config import TimeConfig
from .exceptions import (
    ErrorKind,
    SessionNotBoundError,
    UISyncError,
    WaitCancelledError,
    WaitTimeoutError,
    error_for,
)
from .timinglogger import TIMING_LOGGER

if TYPE_CHECKING:
    from .registry import SessionRegistry
    from .session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0
# Fixed tick for explicit waits, same as WebDriverWait's poll frequency.
EXPLICIT_POLL_INTERVAL = 0.5


def _now() -> float:
    """Monotonic time source for deterministic timeout calculations."""
    return time.monotonic()


def _sleep(seconds: float, cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is None:
        time.sleep(seconds)
        return
    if cancel_event.wait(seconds):
        raise WaitCancelledError("Wait cancelled")


@dataclass(frozen=True)
class PollPolicy:
    """
    Timing and error policy of a single wait.

    @param timeout Total budget in seconds; 0 means a single evaluation
    @param interval Sleep between evaluations in seconds, must be positive
    @param ignorable_errors Failure kinds treated like "not yet"
    @param label Description attached to logs and timeout errors
    @param cancel_event Optional event that aborts the wait when set
    """
    timeout: float = DEFAULT_TIMEOUT
    interval: float = EXPLICIT_POLL_INTERVAL
    ignorable_errors: FrozenSet[ErrorKind] = field(default_factory=frozenset)
    label: Optional[str] = None
    cancel_event: Optional[threading.Event] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.timeout < 0:
            raise ValueError(f"timeout must not be negative, got {self.timeout}")
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        object.__setattr__(self, "ignorable_errors", frozenset(ErrorKind(k) for k in self.ignorable_errors))


class OutcomeTag(str, Enum):
    SUCCESS = "success"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(frozen=True)
class WaitOutcome(Generic[T]):
    """Result of one wait: success with a value, timeout, or terminal failure."""
    tag: OutcomeTag
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    cause: Optional[BaseException] = None
    label: str = "condition"
    timeout: float = 0.0
    attempts: int = 0
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.tag is OutcomeTag.SUCCESS

    @property
    def timed_out(self) -> bool:
        return self.tag is OutcomeTag.TIMED_OUT

    @property
    def failed(self) -> bool:
        return self.tag is OutcomeTag.FAILED

    def to_error(self) -> Optional[UISyncError]:
        """The exception describing this outcome, or None on success."""
        if self.tag is OutcomeTag.TIMED_OUT:
            return WaitTimeoutError(
                f"Timed out waiting for {self.label} after {self.timeout}s",
                label=self.label,
                timeout=self.timeout,
                attempt_count=self.attempts,
                elapsed_time=self.elapsed,
                cause=self.cause,
            )
        if self.tag is OutcomeTag.FAILED:
            detail = f": {self.cause}" if self.cause is not None else ""
            return error_for(
                self.error_kind,
                f"Waiting for {self.label} failed with {self.error_kind.value}{detail}",
                cause=self.cause,
            )
        return None

    def unwrap(self) -> T:
        """Return the value or raise the matching exception."""
        error = self.to_error()
        if error is not None:
            if error.cause is not None:
                raise error from error.cause
            raise error
        return self.value


def poll(session: Session, condition: Condition[T], policy: PollPolicy) -> WaitOutcome[T]:
    """
    Evaluate ``condition`` until it is satisfied, fails terminally or time runs out.

    The condition is evaluated at least once. A satisfied result returns at
    once, without a trailing sleep. A failure whose kind is not in
    ``policy.ignorable_errors`` returns at once. Otherwise the engine sleeps
    ``min(interval, remaining)`` and evaluates again, returning TIMED_OUT
    once ``elapsed >= timeout``. A session that is not ACTIVE fails with
    SESSION_NOT_BOUND at the next evaluation point.
    """
    label = policy.label or condition.description
    start_time = _now()
    attempt_count = 0
    last_cause: Optional[BaseException] = None

    def outcome(tag: OutcomeTag, **kwargs: Any) -> WaitOutcome[T]:
        return WaitOutcome(
            tag=tag,
            label=label,
            timeout=policy.timeout,
            attempts=attempt_count,
            elapsed=_now() - start_time,
            **kwargs,
        )

    if TIMING_LOGGER.is_enabled():
        TIMING_LOGGER.log(
            event="wait_start",
            description=label,
            metadata={"timeout_s": policy.timeout, "interval_s": policy.interval},
        )

    while True:
        if session is None or not session.is_active:
            logger.error("Session is not active while waiting for %s", label)
            return outcome(OutcomeTag.FAILED, error_kind=ErrorKind.SESSION_NOT_BOUND)

        attempt_count += 1
        result = condition.evaluate(session)

        if result.tag is ResultTag.SATISFIED:
            done = outcome(OutcomeTag.SUCCESS, value=result.value)
            logger.debug("%s satisfied after %d attempt(s), %.3fs", label, attempt_count, done.elapsed)
            if TIMING_LOGGER.is_enabled():
                TIMING_LOGGER.log(
                    event="wait_success",
                    description=label,
                    status="success",
                    metadata={"attempts": attempt_count, "elapsed_s": round(done.elapsed, 3)},
                )
            return done

        if result.tag is ResultTag.FAILED:
            if result.error_kind not in policy.ignorable_errors:
                failed = outcome(OutcomeTag.FAILED, error_kind=result.error_kind, cause=result.cause)
                logger.error(
                    "Waiting for %s failed with %s after %d attempt(s): %s",
                    label, result.error_kind.value, attempt_count, result.cause,
                )
                if TIMING_LOGGER.is_enabled():
                    TIMING_LOGGER.log(
                        event="wait_failed",
                        description=label,
                        status="error",
                        metadata={"kind": result.error_kind.value, "attempts": attempt_count},
                    )
                return failed
            last_cause = result.cause

        elapsed = _now() - start_time
        time_left = policy.timeout - elapsed
        if time_left <= 0:
            break
        _sleep(min(policy.interval, time_left), policy.cancel_event)

    timed_out = outcome(OutcomeTag.TIMED_OUT, cause=last_cause)
    logger.warning(
        "Timed out waiting for %s after %ss (%d attempts)",
        label, policy.timeout, attempt_count,
    )
    if TIMING_LOGGER.is_enabled():
        TIMING_LOGGER.log(
            event="wait_timeout",
            description=label,
            status="warning",
            metadata={
                "timeout_s": policy.timeout,
                "attempts": attempt_count,
                "elapsed_s": round(timed_out.elapsed, 3),
            },
        )
    return timed_out


def _session_or_current(session: Optional[Session], registry: Optional[SessionRegistry]) -> Session:
    if session is not None:
        return session
    if registry is None:
        from .registry import REGISTRY
        registry = REGISTRY
    return registry.current()


def wait_for(
    condition: Condition[T],
    timeout: Optional[float] = None,
    session: Optional[Session] = None,
    registry: Optional[SessionRegistry] = None,
    cancel_event: Optional[threading.Event] = None,
) -> WaitOutcome[T]:
    """
    Explicit wait with the library's fixed poll tick.

    ``timeout`` defaults to the configured explicit wait. Without a
    ``session`` the calling context's session is used; with none bound the
    outcome is FAILED(SESSION_NOT_BOUND).
    """
    if timeout is None:
        timeout = TimeConfig.current().explicit_wait.timeout
    policy = PollPolicy(
        timeout=timeout,
        interval=EXPLICIT_POLL_INTERVAL,
        label=condition.description,
        cancel_event=cancel_event,
    )
    return _poll_current(condition, policy, session, registry)


def fluent_wait(
    condition: Condition[T],
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    label: Optional[str] = None,
    ignoring: Iterable[ErrorKind] = (),
    session: Optional[Session] = None,
    registry: Optional[SessionRegistry] = None,
    cancel_event: Optional[threading.Event] = None,
) -> WaitOutcome[T]:
    """
    Wait with a caller-chosen poll interval and a diagnostic label.

    ``ignoring`` lists failure kinds to keep polling through, e.g.
    ``{ErrorKind.STALE_HANDLE}`` while a list re-renders.
    """
    settings = TimeConfig.current().fluent_wait
    policy = PollPolicy(
        timeout=timeout if timeout is not None else settings.timeout,
        interval=interval if interval is not None else settings.interval,
        ignorable_errors=frozenset(ignoring),
        label=label or condition.description,
        cancel_event=cancel_event,
    )
    return _poll_current(condition, policy, session, registry)


def _poll_current(
    condition: Condition[T],
    policy: PollPolicy,
    session: Optional[Session],
    registry: Optional[SessionRegistry],
) -> WaitOutcome[T]:
    try:
        bound = _session_or_current(session, registry)
    except SessionNotBoundError as e:
        label = policy.label or condition.description
        logger.error("Cannot wait for %s: %s", label, e)
        return WaitOutcome(
            tag=OutcomeTag.FAILED,
            error_kind=ErrorKind.SESSION_NOT_BOUND,
            cause=e,
            label=label,
            timeout=policy.timeout,
        )
    return poll(bound, condition, policy)


def pause(seconds: float, cancel_event: Optional[threading.Event] = None) -> None:
    """
    Block the calling context for a fixed duration.

    Prefer a condition wait; this is for deliberate delays only.
    """
    if seconds <= 0:
        return
    _sleep(seconds, cancel_event)
    logger.debug("Paused thread for %s second(s)", seconds)

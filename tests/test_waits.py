# tests/test_waits.py
"""
Tests for the condition-polling engine.
"""

import math
import threading
import time

import pytest
from selenium.common.exceptions import StaleElementReferenceException

import uisync.waits as waits
from uisync.conditions import Condition, ConditionResult, Predicate, Visibility
from uisync.config import TimeConfig
from uisync.exceptions import (
    ErrorKind,
    StaleHandleError,
    TransportError,
    WaitCancelledError,
    WaitTimeoutError,
)
from uisync.session import BrowserKind
from uisync.waits import (
    EXPLICIT_POLL_INTERVAL,
    OutcomeTag,
    PollPolicy,
    fluent_wait,
    pause,
    poll,
    wait_for,
)


class Scripted(Condition):
    """Condition replaying a fixed list of results, then repeating the last."""

    description = "scripted condition"

    def __init__(self, *results):
        self.results = list(results)
        self.evaluations = 0

    def evaluate(self, session):
        index = min(self.evaluations, len(self.results) - 1)
        self.evaluations += 1
        return self.results[index]


def satisfied_on(k, value="done"):
    return Scripted(*([ConditionResult.not_yet()] * (k - 1) + [ConditionResult.satisfied(value)]))


@pytest.fixture
def sleeps(monkeypatch):
    """Record sleeps instead of blocking."""
    recorded = []
    monkeypatch.setattr(waits, "_sleep", lambda seconds, cancel_event: recorded.append(seconds))
    return recorded


class TestPollPolicy:
    """Tests for PollPolicy validation."""

    def test_defaults(self):
        """Should default to 30s timeout and 0.5s interval."""
        policy = PollPolicy()
        assert policy.timeout == 30.0
        assert policy.interval == 0.5
        assert policy.ignorable_errors == frozenset()

    def test_rejects_non_positive_interval(self):
        """Should reject a zero interval."""
        with pytest.raises(ValueError):
            PollPolicy(timeout=1, interval=0)

    def test_rejects_negative_timeout(self):
        """Should reject a negative timeout."""
        with pytest.raises(ValueError):
            PollPolicy(timeout=-1, interval=0.1)

    def test_interval_may_exceed_timeout(self):
        """An interval longer than the timeout is allowed."""
        policy = PollPolicy(timeout=0.1, interval=5)
        assert policy.interval == 5

    def test_coerces_ignorable_error_values(self):
        """Should accept error kind values as strings."""
        policy = PollPolicy(ignorable_errors={"stale_handle"})
        assert policy.ignorable_errors == frozenset({ErrorKind.STALE_HANDLE})


class TestPoll:
    """Tests for the poll() loop."""

    def test_returns_immediately_when_satisfied(self, session, sleeps):
        """Should evaluate once and never sleep."""
        condition = satisfied_on(1, value="hello")
        outcome = poll(session, condition, PollPolicy(timeout=5, interval=0.1))

        assert outcome.ok
        assert outcome.value == "hello"
        assert outcome.attempts == 1
        assert condition.evaluations == 1
        assert sleeps == []

    @pytest.mark.parametrize("k", [2, 3, 7])
    def test_evaluates_exactly_k_times(self, session, sleeps, k):
        """Should stop at the first satisfied evaluation, sleeping between evaluations only."""
        condition = satisfied_on(k)
        outcome = poll(session, condition, PollPolicy(timeout=30, interval=0.25))

        assert outcome.tag is OutcomeTag.SUCCESS
        assert condition.evaluations == k
        assert outcome.attempts == k
        assert sleeps == [0.25] * (k - 1)

    def test_times_out(self, session):
        """Should time out near the deadline after at least floor(T/I) evaluations."""
        timeout, interval = 0.3, 0.1
        condition = Scripted(ConditionResult.not_yet())

        start = time.monotonic()
        outcome = poll(session, condition, PollPolicy(timeout=timeout, interval=interval))
        elapsed = time.monotonic() - start

        assert outcome.timed_out
        assert outcome.value is None
        assert elapsed >= timeout
        assert elapsed < timeout + interval + 0.2
        assert condition.evaluations >= math.floor(timeout / interval)
        assert outcome.attempts == condition.evaluations

    def test_final_sleep_is_clamped_to_remaining_time(self, session, monkeypatch):
        """The last sleep should not overshoot the deadline."""
        clock = {"now": 0.0}
        recorded = []

        def fake_sleep(seconds, cancel_event):
            recorded.append(seconds)
            clock["now"] += seconds

        monkeypatch.setattr(waits, "_now", lambda: clock["now"])
        monkeypatch.setattr(waits, "_sleep", fake_sleep)

        outcome = poll(session, Scripted(ConditionResult.not_yet()), PollPolicy(timeout=1.0, interval=0.375))

        assert outcome.timed_out
        assert recorded == [0.375, 0.375, 0.25]
        assert outcome.attempts == 4
        assert outcome.elapsed == pytest.approx(1.0)

    def test_zero_timeout_evaluates_once(self, session, sleeps):
        """A zero timeout should still evaluate the condition once."""
        condition = Scripted(ConditionResult.not_yet())
        outcome = poll(session, condition, PollPolicy(timeout=0, interval=0.1))

        assert outcome.timed_out
        assert condition.evaluations == 1
        assert sleeps == []

    def test_zero_timeout_can_succeed(self, session, sleeps):
        """A zero timeout with an already true condition succeeds."""
        outcome = poll(session, satisfied_on(1), PollPolicy(timeout=0, interval=0.1))
        assert outcome.ok

    def test_stale_handle_is_terminal(self, session, sleeps):
        """A stale handle on the first evaluation should fail after exactly one evaluation."""
        cause = StaleElementReferenceException("gone")
        condition = Scripted(ConditionResult.failed(ErrorKind.STALE_HANDLE, cause))

        outcome = poll(session, condition, PollPolicy(timeout=10, interval=0.1))

        assert outcome.failed
        assert outcome.error_kind is ErrorKind.STALE_HANDLE
        assert outcome.cause is cause
        assert condition.evaluations == 1
        assert sleeps == []

    def test_not_interactable_is_terminal(self, session, sleeps):
        """A disabled target should not be polled until the timeout."""
        condition = Scripted(ConditionResult.failed(ErrorKind.ELEMENT_NOT_INTERACTABLE))
        outcome = poll(session, condition, PollPolicy(timeout=10, interval=0.1))

        assert outcome.error_kind is ErrorKind.ELEMENT_NOT_INTERACTABLE
        assert condition.evaluations == 1

    def test_ignorable_error_keeps_polling(self, session, sleeps):
        """Ignored failure kinds should behave like not-yet."""
        condition = Scripted(
            ConditionResult.failed(ErrorKind.STALE_HANDLE),
            ConditionResult.failed(ErrorKind.STALE_HANDLE),
            ConditionResult.satisfied("ok"),
        )
        policy = PollPolicy(timeout=10, interval=0.1, ignorable_errors={ErrorKind.STALE_HANDLE})

        outcome = poll(session, condition, policy)

        assert outcome.ok
        assert condition.evaluations == 3

    def test_ignored_error_becomes_timeout_cause(self, session):
        """The last ignored failure should be reported as the timeout cause."""
        cause = StaleElementReferenceException("gone")
        condition = Scripted(ConditionResult.failed(ErrorKind.STALE_HANDLE, cause))
        policy = PollPolicy(timeout=0, interval=0.1, ignorable_errors={ErrorKind.STALE_HANDLE})

        outcome = poll(session, condition, policy)

        assert outcome.timed_out
        assert outcome.cause is cause

    def test_inactive_session_fails_without_evaluating(self, session, sleeps):
        """A terminated session should fail with SESSION_NOT_BOUND before any evaluation."""
        session.terminate()
        condition = satisfied_on(1)

        outcome = poll(session, condition, PollPolicy(timeout=5, interval=0.1))

        assert outcome.failed
        assert outcome.error_kind is ErrorKind.SESSION_NOT_BOUND
        assert condition.evaluations == 0

    def test_session_terminated_mid_wait(self, session, sleeps):
        """Termination should be noticed at the next evaluation point."""
        def check(s):
            if len(sleeps) == 1:
                s.terminate()
            return False

        condition = Predicate(check, "terminating check")
        outcome = poll(session, condition, PollPolicy(timeout=10, interval=0.1))

        assert outcome.error_kind is ErrorKind.SESSION_NOT_BOUND
        assert outcome.attempts == 2

    def test_label_defaults_to_condition_description(self, session, sleeps):
        """Outcome label should fall back to the condition description."""
        outcome = poll(session, satisfied_on(1), PollPolicy())
        assert outcome.label == "scripted condition"

    def test_cancel_event_aborts_wait(self, session):
        """Setting the cancel event should raise WaitCancelledError."""
        cancel = threading.Event()
        cancel.set()
        policy = PollPolicy(timeout=10, interval=5, cancel_event=cancel)

        start = time.monotonic()
        with pytest.raises(WaitCancelledError):
            poll(session, Scripted(ConditionResult.not_yet()), policy)
        assert time.monotonic() - start < 1.0

    def test_predicate_errors_propagate(self, session):
        """Exceptions from a custom predicate are not swallowed."""
        def boom(s):
            raise ValueError("boom")

        with pytest.raises(ValueError):
            poll(session, Predicate(boom), PollPolicy(timeout=1, interval=0.1))

    def test_element_appears_later(self, session, driver, make_element, monkeypatch):
        """Visibility should succeed once the element is added."""
        sleeps = []

        def appear_on_second_sleep(seconds, cancel_event):
            sleeps.append(seconds)
            if len(sleeps) == 2:
                driver.add("css selector", "#late", make_element("late"))

        monkeypatch.setattr(waits, "_sleep", appear_on_second_sleep)
        outcome = poll(session, Visibility("css=#late"), PollPolicy(timeout=10, interval=0.1))

        assert outcome.ok
        assert outcome.value.id == "late"
        assert outcome.attempts == 3

    def test_rerendered_element_is_found_again(self, session, driver, make_element, monkeypatch):
        """A stale lookup result is retried until the re-rendered element shows up."""
        old = driver.add("css selector", "#row", make_element("old-row"))
        old.stale = True

        def rerender(seconds, cancel_event):
            driver.elements[("css selector", "#row")] = [make_element("new-row")]

        monkeypatch.setattr(waits, "_sleep", rerender)
        outcome = poll(session, Visibility("css=#row"), PollPolicy(timeout=10, interval=0.1))

        assert outcome.ok
        assert outcome.value.id == "new-row"
        assert outcome.attempts == 2

    def test_client_fault_ends_wait(self, session, driver, sleeps):
        """A refused connection to the driver fails the wait after one evaluation."""
        fault = ConnectionRefusedError(111, "Connection refused")
        driver.transport_fault = fault

        outcome = poll(session, Visibility("css=#x"), PollPolicy(timeout=10, interval=0.1))

        assert outcome.failed
        assert outcome.error_kind is ErrorKind.TRANSPORT
        assert outcome.cause is fault
        assert outcome.attempts == 1
        assert sleeps == []
        with pytest.raises(TransportError):
            outcome.unwrap()


class TestWaitOutcome:
    """Tests for turning outcomes into values or exceptions."""

    def test_unwrap_success(self, session, sleeps):
        """Should return the carried value."""
        assert poll(session, satisfied_on(1, value=42), PollPolicy()).unwrap() == 42

    def test_unwrap_timeout(self, session, sleeps):
        """Should raise WaitTimeoutError with metadata."""
        outcome = poll(session, Scripted(ConditionResult.not_yet()), PollPolicy(timeout=0, label="spinner gone"))

        with pytest.raises(WaitTimeoutError) as exc_info:
            outcome.unwrap()

        error = exc_info.value
        assert error.label == "spinner gone"
        assert error.timeout == 0
        assert error.attempt_count == 1
        assert "spinner gone" in str(error)
        assert "Attempts: 1" in str(error)

    def test_unwrap_failure(self, session, sleeps):
        """Should raise the exception class matching the error kind."""
        cause = StaleElementReferenceException("gone")
        outcome = poll(session, Scripted(ConditionResult.failed(ErrorKind.STALE_HANDLE, cause)), PollPolicy())

        with pytest.raises(StaleHandleError) as exc_info:
            outcome.unwrap()
        assert exc_info.value.cause is cause

    def test_to_error_is_none_on_success(self, session, sleeps):
        assert poll(session, satisfied_on(1), PollPolicy()).to_error() is None


class TestWaitFor:
    """Tests for the explicit wait."""

    def test_uses_fixed_interval(self, session, registry, sleeps):
        """Explicit waits tick at the fixed library interval."""
        outcome = wait_for(satisfied_on(3), timeout=30, registry=registry)

        assert outcome.ok
        assert sleeps == [EXPLICIT_POLL_INTERVAL, EXPLICIT_POLL_INTERVAL]

    def test_defaults_to_configured_timeout(self, session, registry, sleeps):
        """Timeout should come from the explicit_wait setting."""
        with TimeConfig.override(explicit_wait={"timeout": 0}):
            outcome = wait_for(Scripted(ConditionResult.not_yet()), registry=registry)

        assert outcome.timed_out
        assert outcome.timeout == 0

    def test_explicit_session_wins(self, session, sleeps):
        """A passed session is used without consulting the registry."""
        outcome = wait_for(satisfied_on(1), session=session)
        assert outcome.ok

    def test_unbound_context_fails(self, registry, sleeps):
        """Without a bound session the outcome is SESSION_NOT_BOUND."""
        condition = satisfied_on(1)
        outcome = wait_for(condition, timeout=1, registry=registry)

        assert outcome.failed
        assert outcome.error_kind is ErrorKind.SESSION_NOT_BOUND
        assert condition.evaluations == 0

    def test_other_context_session_is_not_used(self, registry, sleeps):
        """A session bound to another context is invisible to this one."""
        registry.acquire(BrowserKind.CHROME, context="worker-2")
        outcome = wait_for(satisfied_on(1), timeout=1, registry=registry)
        assert outcome.error_kind is ErrorKind.SESSION_NOT_BOUND


class TestFluentWait:
    """Tests for the fluent wait."""

    def test_uses_custom_interval(self, session, registry, sleeps):
        """Should sleep for the caller's interval."""
        outcome = fluent_wait(satisfied_on(3), timeout=30, interval=0.2, registry=registry)

        assert outcome.ok
        assert sleeps == [0.2, 0.2]

    def test_defaults_to_configured_interval(self, session, registry, sleeps):
        """Interval should come from the fluent_wait setting."""
        fluent_wait(satisfied_on(2), timeout=30, registry=registry)
        assert sleeps == [TimeConfig.current().fluent_wait.interval]

    def test_label_in_timeout_error(self, session, registry, sleeps):
        """The diagnostic label should appear in the timeout error."""
        outcome = fluent_wait(
            Scripted(ConditionResult.not_yet()),
            timeout=0,
            interval=0.1,
            label="order table loaded",
            registry=registry,
        )

        with pytest.raises(WaitTimeoutError, match="order table loaded"):
            outcome.unwrap()

    def test_ignoring_errors(self, session, registry, sleeps):
        """Listed kinds should be polled through."""
        condition = Scripted(
            ConditionResult.failed(ErrorKind.TRANSPORT),
            ConditionResult.satisfied("ok"),
        )
        outcome = fluent_wait(
            condition, timeout=5, interval=0.1, ignoring={ErrorKind.TRANSPORT}, registry=registry,
        )

        assert outcome.ok
        assert condition.evaluations == 2


class TestPause:
    """Tests for the fixed-duration pause."""

    def test_pauses(self):
        """Should block for roughly the requested time."""
        start = time.monotonic()
        pause(0.1)
        assert time.monotonic() - start >= 0.1

    def test_non_positive_is_noop(self, sleeps):
        """Zero or negative durations should not sleep."""
        pause(0)
        pause(-1)
        assert sleeps == []

    def test_cancelled_pause(self):
        """A set cancel event should abort the pause."""
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(WaitCancelledError):
            pause(10, cancel_event=cancel)

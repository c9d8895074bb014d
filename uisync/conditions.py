# uisync/conditions.py
"""
@file conditions.py
@brief Conditions evaluated by the polling engine, and the built-in catalog.

A condition never decides how long to wait. It inspects the session once
and reports one of three results:

- NOT_YET: try again after the poll interval
- SATISFIED: done, carrying the value the wait returns
- FAILED: stop now, carrying the error kind

Each condition owns the decision of which remote failures mean "not yet"
and which are terminal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Generic, List, Optional, TypeVar, Union

from selenium.common.exceptions import (
    InvalidSelectorException,
    NoAlertPresentException,
    NoSuchElementException,
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver.remote.webelement import WebElement
from urllib3.exceptions import HTTPError as HTTPClientError

from .exceptions import ErrorKind
from .locator import Locator, LocatorLike, as_locator

if TYPE_CHECKING:
    from .session import Session

T = TypeVar("T")

Target = Union[Locator, WebElement, Any]


class ResultTag(str, Enum):
    NOT_YET = "not_yet"
    SATISFIED = "satisfied"
    FAILED = "failed"


@dataclass(frozen=True)
class ConditionResult(Generic[T]):
    tag: ResultTag
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    cause: Optional[BaseException] = None

    @classmethod
    def not_yet(cls) -> ConditionResult:
        return cls(ResultTag.NOT_YET)

    @classmethod
    def satisfied(cls, value: T) -> ConditionResult[T]:
        return cls(ResultTag.SATISFIED, value=value)

    @classmethod
    def failed(cls, kind: ErrorKind, cause: Optional[BaseException] = None) -> ConditionResult:
        return cls(ResultTag.FAILED, error_kind=kind, cause=cause)

    @property
    def is_satisfied(self) -> bool:
        return self.tag is ResultTag.SATISFIED

    @property
    def is_failed(self) -> bool:
        return self.tag is ResultTag.FAILED


NOT_YET: ConditionResult = ConditionResult.not_yet()


class Condition(ABC, Generic[T]):
    """Predicate over a session, evaluated once per poll tick."""

    description: str = "condition"

    @abstractmethod
    def evaluate(self, session: Session) -> ConditionResult[T]:
        """Inspect the session once and classify the outcome."""

    def __str__(self) -> str:
        return self.description


def _coerce_target(target: Any) -> Target:
    if isinstance(target, (Locator, str, dict)):
        return as_locator(target)
    return target


def _describe(target: Target) -> str:
    if isinstance(target, Locator):
        return str(target)
    return f"element {getattr(target, 'id', target)}"


def _resolve(session: Session, target: Target) -> Any:
    if isinstance(target, Locator):
        return session.handle.find_element(*target.to_selenium())
    return target


def _has_area(element: Any) -> bool:
    size = element.size or {}
    return size.get("width", 0) > 0 and size.get("height", 0) > 0


def _is_rendered(element: Any) -> bool:
    return bool(element.is_displayed()) and _has_area(element)


# Raised by the WebDriver HTTP client, outside the WebDriverException tree,
# once the driver service or remote end is gone.
TRANSPORT_FAULTS = (OSError, HTTPClientError)


def _terminal(error: WebDriverException) -> ConditionResult:
    if isinstance(error, InvalidSelectorException):
        return ConditionResult.failed(ErrorKind.INVALID_LOCATOR, error)
    return ConditionResult.failed(ErrorKind.TRANSPORT, error)


def _transport(error: BaseException) -> ConditionResult:
    return ConditionResult.failed(ErrorKind.TRANSPORT, error)


def _on_stale(target: Target, error: StaleElementReferenceException) -> ConditionResult:
    # A locator is looked up again next tick; only a caller's handle is dead for good.
    if isinstance(target, Locator):
        return NOT_YET
    return ConditionResult.failed(ErrorKind.STALE_HANDLE, error)


class Visibility(Condition[Any]):
    """
    Target rendered with a non-zero size.

    Not yet while the target cannot be found or is hidden. Satisfied with
    the resolved element. A stale element handed in by the caller is
    terminal; one resolved from a locator is looked up again.
    """

    def __init__(self, target: Union[LocatorLike, WebElement]):
        self.target = _coerce_target(target)
        self.description = f"visibility of {_describe(self.target)}"

    def evaluate(self, session: Session) -> ConditionResult[Any]:
        try:
            element = _resolve(session, self.target)
            if _is_rendered(element):
                return ConditionResult.satisfied(element)
            return NOT_YET
        except NoSuchElementException:
            return NOT_YET
        except StaleElementReferenceException as e:
            return _on_stale(self.target, e)
        except WebDriverException as e:
            return _terminal(e)
        except TRANSPORT_FAULTS as e:
            return _transport(e)


class Clickability(Visibility):
    """
    Visible and enabled target.

    A visible but disabled target fails with ELEMENT_NOT_INTERACTABLE when
    ``disabled_is_terminal`` is set (the default); otherwise it is polled
    until it becomes enabled.
    """

    def __init__(self, target: Union[LocatorLike, WebElement], disabled_is_terminal: bool = True):
        super().__init__(target)
        self.disabled_is_terminal = disabled_is_terminal
        self.description = f"clickability of {_describe(self.target)}"

    def evaluate(self, session: Session) -> ConditionResult[Any]:
        result = super().evaluate(session)
        if not result.is_satisfied:
            return result

        element = result.value
        try:
            if element.is_enabled():
                return result
        except StaleElementReferenceException as e:
            return _on_stale(self.target, e)
        except WebDriverException as e:
            return _terminal(e)
        except TRANSPORT_FAULTS as e:
            return _transport(e)

        if self.disabled_is_terminal:
            return ConditionResult.failed(ErrorKind.ELEMENT_NOT_INTERACTABLE)
        return NOT_YET


class AlertPresence(Condition[Any]):
    """A JavaScript alert, confirm or prompt is open. Satisfied with the Alert."""

    description = "alert to be present"

    def evaluate(self, session: Session) -> ConditionResult[Any]:
        try:
            return ConditionResult.satisfied(session.handle.switch_to.alert)
        except NoAlertPresentException:
            return NOT_YET
        except (WebDriverException,) + TRANSPORT_FAULTS as e:
            return _transport(e)


class PageReadyState(Condition[str]):
    """``document.readyState`` equals ``expected``."""

    READY_STATE_SCRIPT = "return document.readyState"

    def __init__(self, expected: str = "complete"):
        self.expected = expected
        self.description = f"document.readyState to be '{expected}'"

    def evaluate(self, session: Session) -> ConditionResult[str]:
        try:
            state = session.handle.execute_script(self.READY_STATE_SCRIPT)
        except (WebDriverException,) + TRANSPORT_FAULTS as e:
            return _transport(e)
        if state == self.expected:
            return ConditionResult.satisfied(state)
        return NOT_YET


class CollectionClickable(Condition[List[Any]]):
    """
    Every element matching the locator is clickable.

    Not yet while nothing matches, any match is hidden or disabled, or a
    match went stale during the check. Satisfied with the matches in
    document order.
    """

    def __init__(self, locator: LocatorLike):
        self.locator = as_locator(locator)
        self.description = f"all elements located by {self.locator} to be clickable"

    def evaluate(self, session: Session) -> ConditionResult[List[Any]]:
        try:
            elements = list(session.handle.find_elements(*self.locator.to_selenium()))
            if not elements:
                return NOT_YET
            for element in elements:
                if not (_is_rendered(element) and element.is_enabled()):
                    return NOT_YET
            return ConditionResult.satisfied(elements)
        except StaleElementReferenceException as e:
            return _on_stale(self.locator, e)
        except WebDriverException as e:
            return _terminal(e)
        except TRANSPORT_FAULTS as e:
            return _transport(e)


class Predicate(Condition[Any]):
    """
    Caller-defined check: ``fn(session)`` returning a truthy value satisfies.

    Exceptions raised by ``fn`` are not classified and propagate.
    """

    def __init__(self, fn: Callable[[Session], Any], description: str = "predicate"):
        self.fn = fn
        self.description = description

    def evaluate(self, session: Session) -> ConditionResult[Any]:
        value = self.fn(session)
        if value:
            return ConditionResult.satisfied(value)
        return NOT_YET

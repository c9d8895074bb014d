# uisync/locator.py
"""
@file locator.py
@brief Strategy + value descriptors used to resolve elements in a session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from selenium.webdriver.common.by import By

from .exceptions import InvalidLocatorError


class Strategy(str, Enum):
    ID = "id"
    CSS = "css"
    XPATH = "xpath"
    NAME = "name"
    TEXT = "text"
    PARTIAL_TEXT = "partial_text"
    TAG = "tag"
    CLASS = "class"


_BY: Dict[Strategy, str] = {
    Strategy.ID: By.ID,
    Strategy.CSS: By.CSS_SELECTOR,
    Strategy.XPATH: By.XPATH,
    Strategy.NAME: By.NAME,
    Strategy.PARTIAL_TEXT: By.PARTIAL_LINK_TEXT,
    Strategy.TAG: By.TAG_NAME,
    Strategy.CLASS: By.CLASS_NAME,
}


def _xpath_literal(text: str) -> str:
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in parts) + ")"


@dataclass(frozen=True)
class Locator:
    """
    Immutable element descriptor.

    @param strategy How ``value`` is interpreted (id, css, xpath, ...)
    @param value Non-blank selector text
    """
    strategy: Strategy
    value: str

    def __post_init__(self) -> None:
        try:
            strategy = Strategy(self.strategy)
        except ValueError:
            allowed = ", ".join(s.value for s in Strategy)
            raise InvalidLocatorError(
                f"Unknown locator strategy '{self.strategy}'. Allowed: {allowed}"
            ) from None
        object.__setattr__(self, "strategy", strategy)

        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidLocatorError(f"Locator value must be a non-blank string, got: {self.value!r}")

    @classmethod
    def parse(cls, text: str) -> Locator:
        """Parse the ``strategy=value`` shorthand, e.g. ``css=.submit``."""
        if not isinstance(text, str) or "=" not in text:
            raise InvalidLocatorError(f"Expected 'strategy=value', got: {text!r}")
        strategy, value = text.split("=", 1)
        return cls(strategy.strip().lower(), value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Locator:
        if not isinstance(data, dict):
            raise InvalidLocatorError(f"Locator must be a dict, got: {type(data).__name__}")
        unknown = set(data.keys()) - {"strategy", "value"}
        if unknown:
            raise InvalidLocatorError(f"Unknown locator keys: {sorted(unknown)}")
        if "strategy" not in data or "value" not in data:
            raise InvalidLocatorError("Locator requires 'strategy' and 'value'")
        return cls(data["strategy"], data["value"])

    def to_selenium(self) -> Tuple[str, str]:
        """Return the ``(By, value)`` pair understood by WebDriver."""
        if self.strategy is Strategy.TEXT:
            return By.XPATH, f"//*[normalize-space(.)={_xpath_literal(self.value.strip())}]"
        return _BY[self.strategy], self.value

    def __str__(self) -> str:
        return f"{self.strategy.value}={self.value}"


LocatorLike = Union[Locator, str, Dict[str, Any]]


def as_locator(value: LocatorLike) -> Locator:
    """Coerce a Locator, ``strategy=value`` string or dict into a Locator."""
    if isinstance(value, Locator):
        return value
    if isinstance(value, str):
        return Locator.parse(value)
    if isinstance(value, dict):
        return Locator.from_dict(value)
    raise InvalidLocatorError(f"Cannot build a locator from {type(value).__name__}")

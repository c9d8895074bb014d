# tests/conftest.py
"""
Shared fixtures: in-memory WebDriver doubles and a fresh registry.
"""

import threading

import pytest
from selenium.common.exceptions import (
    InvalidSelectorException,
    NoAlertPresentException,
    NoSuchElementException,
    StaleElementReferenceException,
    WebDriverException,
)

from uisync.config import TimeConfig
from uisync.context import ActionContextManager
from uisync.registry import SessionRegistry
from uisync.session import BrowserKind
from uisync.timinglogger import TIMING_LOGGER


class FakeElement:
    """Element double with switchable state."""

    def __init__(
        self,
        name="element",
        displayed=True,
        enabled=True,
        width=10,
        height=10,
        text="",
        attributes=None,
        css=None,
    ):
        self.id = name
        self.displayed = displayed
        self.enabled = enabled
        self.width = width
        self.height = height
        self.text = text
        self.attributes = attributes or {}
        self.css = css or {}
        self.stale = False
        self.fault = None
        self.clicks = 0
        self.typed = []
        self.cleared = 0

    def _check(self):
        if self.stale:
            raise StaleElementReferenceException("stale element reference")
        if self.fault is not None:
            raise self.fault

    def is_displayed(self):
        self._check()
        return self.displayed

    def is_enabled(self):
        self._check()
        return self.enabled

    @property
    def size(self):
        self._check()
        return {"width": self.width, "height": self.height}

    def click(self):
        self._check()
        self.clicks += 1

    def send_keys(self, text):
        self._check()
        self.typed.append(text)

    def clear(self):
        self._check()
        self.cleared += 1

    def get_attribute(self, name):
        self._check()
        return self.attributes.get(name)

    def value_of_css_property(self, name):
        self._check()
        return self.css.get(name, "")

    def __repr__(self):
        return f"FakeElement({self.id!r})"


class FakeAlert:
    def __init__(self, text="alert"):
        self.text = text
        self.accepted = False
        self.dismissed = False

    def accept(self):
        self.accepted = True

    def dismiss(self):
        self.dismissed = True


class _SwitchTo:
    def __init__(self, driver):
        self._driver = driver

    @property
    def alert(self):
        if self._driver.transport_fault is not None:
            raise self._driver.transport_fault
        if self._driver.alert is None:
            raise NoAlertPresentException("no such alert")
        return self._driver.alert


class FakeDriver:
    """WebDriver double keyed by (by, value) pairs."""

    def __init__(self, kind=None):
        self.kind = kind
        self.elements = {}
        self.invalid_selectors = set()
        self.ready_state = "complete"
        self.alert = None
        self.transport_fault = None
        self.quit_calls = 0
        self.quit_error = None
        self.maximized = False
        self.implicit_wait = None
        self.find_calls = 0
        self.switch_to = _SwitchTo(self)

    def add(self, by, value, *elements):
        self.elements.setdefault((by, value), []).extend(elements)
        return elements[0] if len(elements) == 1 else list(elements)

    def find_elements(self, by, value):
        self.find_calls += 1
        if self.transport_fault is not None:
            raise self.transport_fault
        if value in self.invalid_selectors:
            raise InvalidSelectorException(f"invalid selector: {value}")
        return list(self.elements.get((by, value), []))

    def find_element(self, by, value):
        matches = self.find_elements(by, value)
        if not matches:
            raise NoSuchElementException(f"no such element: {by}={value}")
        return matches[0]

    def execute_script(self, script, *args):
        if self.transport_fault is not None:
            raise self.transport_fault
        return self.ready_state

    def maximize_window(self):
        self.maximized = True

    def implicitly_wait(self, seconds):
        self.implicit_wait = seconds

    def quit(self):
        self.quit_calls += 1
        if self.quit_error is not None:
            raise self.quit_error


class DriverFactory:
    """Counts driver creations; thread-safe."""

    def __init__(self, error=None):
        self.error = error
        self.created = []
        self._lock = threading.Lock()

    def __call__(self, kind):
        if self.error is not None:
            raise self.error
        driver = FakeDriver(kind)
        with self._lock:
            self.created.append(driver)
        return driver


@pytest.fixture(autouse=True)
def _reset_state():
    TimeConfig.reset_to_defaults()
    ActionContextManager.clear()
    TIMING_LOGGER.disable()
    yield
    TimeConfig.reset_to_defaults()


@pytest.fixture
def factory():
    return DriverFactory()


@pytest.fixture
def registry(factory):
    reg = SessionRegistry(factory=factory)
    yield reg
    reg.release_all()


@pytest.fixture
def session(registry):
    return registry.acquire(BrowserKind.CHROME_HEADLESS)


@pytest.fixture
def driver(session):
    return session.handle


@pytest.fixture
def make_element():
    return FakeElement


@pytest.fixture
def make_alert():
    return FakeAlert


@pytest.fixture
def transport_error():
    return WebDriverException("connection refused")

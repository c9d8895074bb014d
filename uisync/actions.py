# uisync/actions.py
"""
@file actions.py
@brief Thin action facade: wait through the engine, perform one call, log.

Every action is local to the call. A failed wait or remote error is logged
and the action returns a null/empty result instead of raising, so one
broken step does not abort the whole run.
"""

from __future__ import annotations

import logging
import random
from typing import Any, List, Optional, Union

from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.select import Select

from .conditions import (
    AlertPresence,
    Clickability,
    CollectionClickable,
    Condition,
    PageReadyState,
    Visibility,
)
from .config import TimeConfig
from .context import tracked_action
from .locator import LocatorLike
from .registry import REGISTRY, SessionRegistry
from .selector import select_random_enabled
from .session import Session
from .waits import PollPolicy, pause, poll

logger = logging.getLogger(__name__)

TargetLike = Union[LocatorLike, WebElement]


class Actions:
    """
    Keyword action library over the calling context's session.

    Targets are locators (``Locator``, ``"css=.btn"`` or a dict) or
    element handles. ``timeout`` overrides the configured wait for one call.
    """

    def __init__(self, registry: Optional[SessionRegistry] = None):
        self.registry = registry or REGISTRY

    def _session(self) -> Session:
        return self.registry.current()

    def _await(self, condition: Condition, setting: str, timeout: Optional[float] = None) -> Any:
        config = getattr(TimeConfig.current(), setting)
        policy = PollPolicy(
            timeout=timeout if timeout is not None else config.timeout,
            interval=config.interval,
            label=condition.description,
        )
        return poll(self._session(), condition, policy).unwrap()

    def _clickable(self, target: TargetLike, timeout: Optional[float]) -> Any:
        return self._await(Clickability(target), "clickable_wait", timeout)

    def _visible(self, target: TargetLike, timeout: Optional[float]) -> Any:
        return self._await(Visibility(target), "visibility_wait", timeout)

    # --- Clicks ---

    @tracked_action("click", fallback=False)
    def click(self, target: TargetLike, timeout: Optional[float] = None) -> bool:
        self._clickable(target, timeout).click()
        pause(TimeConfig.current().after_click_pause)
        return True

    @tracked_action("double_click", fallback=False)
    def double_click(self, target: TargetLike, timeout: Optional[float] = None) -> bool:
        element = self._clickable(target, timeout)
        ActionChains(self._session().handle).double_click(element).perform()
        return True

    @tracked_action("right_click", fallback=False)
    def right_click(self, target: TargetLike, timeout: Optional[float] = None) -> bool:
        element = self._clickable(target, timeout)
        ActionChains(self._session().handle).context_click(element).perform()
        return True

    @tracked_action("click_by_index", fallback=False)
    def click_by_index(self, target: LocatorLike, index: int, timeout: Optional[float] = None) -> bool:
        """Click the ``index``-th element (document order) matching the locator."""
        elements: List[Any] = self._await(CollectionClickable(target), "collection_wait", timeout)
        elements[index].click()
        return True

    @tracked_action("hover", fallback=False)
    def hover(self, target: TargetLike, timeout: Optional[float] = None) -> bool:
        element = self._visible(target, timeout)
        ActionChains(self._session().handle).move_to_element(element).perform()
        return True

    @tracked_action("scroll_to", fallback=False)
    def scroll_to(self, target: TargetLike, timeout: Optional[float] = None) -> bool:
        element = self._visible(target, timeout)
        ActionChains(self._session().handle).scroll_to_element(element).perform()
        return True

    # --- Text input ---

    @tracked_action("type_text", fallback=False)
    def type_text(self, target: TargetLike, text: str, timeout: Optional[float] = None) -> bool:
        self._visible(target, timeout).send_keys(text)
        return True

    @tracked_action("clear_and_type", fallback=False)
    def clear_and_type(self, target: TargetLike, text: str, timeout: Optional[float] = None) -> bool:
        element = self._clickable(target, timeout)
        element.clear()
        element.send_keys(text)
        return True

    @tracked_action("clear", fallback=False)
    def clear(self, target: TargetLike, timeout: Optional[float] = None) -> bool:
        self._clickable(target, timeout).clear()
        return True

    # --- Reads ---

    @tracked_action("get_text", fallback="")
    def get_text(self, target: TargetLike, timeout: Optional[float] = None) -> str:
        return self._visible(target, timeout).text

    @tracked_action("get_attribute", fallback="")
    def get_attribute(self, target: TargetLike, name: str, timeout: Optional[float] = None) -> str:
        value = self._visible(target, timeout).get_attribute(name)
        if value is None or not str(value).strip():
            logger.error("Attribute '%s' of %s is blank or does not exist", name, target)
            return ""
        return value

    @tracked_action("get_css_value", fallback="")
    def get_css_value(self, target: TargetLike, name: str, timeout: Optional[float] = None) -> str:
        value = self._visible(target, timeout).value_of_css_property(name)
        if value is None or not str(value).strip():
            logger.error("CSS value '%s' of %s is blank or does not exist", name, target)
            return ""
        return value

    # --- Dropdowns ---

    @tracked_action("select_by_index", fallback=False)
    def select_by_index(self, target: TargetLike, index: int, timeout: Optional[float] = None) -> bool:
        dropdown = Select(self._clickable(target, timeout))
        dropdown.select_by_index(index)
        return True

    @tracked_action("select_random_option", fallback=None)
    def select_random_option(
        self,
        target: TargetLike,
        timeout: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> Optional[str]:
        """Select a random enabled option; returns its visible text."""
        dropdown = Select(self._clickable(target, timeout))
        choice = select_random_enabled(dropdown.options, rng=rng)
        dropdown.select_by_index(choice.index)
        return choice.option.text

    # --- Alerts and page state ---

    @tracked_action("accept_alert", fallback=False, has_target=False)
    def accept_alert(self, timeout: Optional[float] = None) -> bool:
        self._await(AlertPresence(), "alert_wait", timeout).accept()
        return True

    @tracked_action("dismiss_alert", fallback=False, has_target=False)
    def dismiss_alert(self, timeout: Optional[float] = None) -> bool:
        self._await(AlertPresence(), "alert_wait", timeout).dismiss()
        return True

    @tracked_action("wait_for_page_load", fallback=False, has_target=False)
    def wait_for_page_load(self, timeout: Optional[float] = None) -> bool:
        self._await(PageReadyState(), "page_load", timeout)
        return True

# uisync/config.py
"""
@file config.py
@brief Wait timeouts in effect for the calling thread.

``TimeConfig.current()`` resolves, in order:

1. the innermost ``TimeConfig.override()`` block on this thread
2. the run config installed on this thread
3. the process default
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from .timings import PAUSE_FIELDS, TIMEOUT_FIELDS, build_preset_values, list_presets

if TYPE_CHECKING:
    from .properties import PropertyStore

logger = logging.getLogger(__name__)

DEFAULT_PRESET = "default"


@dataclass
class TimeoutSettings:
    """Budget and poll tick of one kind of wait, in seconds."""
    timeout: float
    interval: float

    def with_overrides(
        self,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> TimeoutSettings:
        changes = {}
        if timeout is not None:
            changes["timeout"] = float(timeout)
        if interval is not None:
            changes["interval"] = float(interval)
        return replace(self, **changes)


def _settings_from(name: str, value: Any, base: Optional[TimeoutSettings]) -> TimeoutSettings:
    if isinstance(value, TimeoutSettings):
        return replace(value)
    if not isinstance(value, dict):
        raise ValueError(f"Invalid value for {name}: {value!r}")
    if base is None:
        return TimeoutSettings(timeout=float(value["timeout"]), interval=float(value["interval"]))
    return base.with_overrides(timeout=value.get("timeout"), interval=value.get("interval"))


class TimeConfig:
    """
    Snapshot of every wait setting.

    Each name in ``timings.TIMEOUT_FIELDS`` is a TimeoutSettings attribute
    (``config.clickable_wait.timeout``); each name in
    ``timings.PAUSE_FIELDS`` is a float attribute (``config.implicit_wait``).
    """

    _process_default: Optional[TimeConfig] = None
    _guard = threading.Lock()
    _thread = threading.local()

    def __init__(self, preset: Optional[str] = None):
        self.preset = preset or DEFAULT_PRESET
        self.update(build_preset_values(self.preset))

    def update(self, changes: Dict[str, Any]) -> None:
        """
        Apply field changes in place.

        Wait fields take a TimeoutSettings or a dict holding ``timeout``
        and/or ``interval``; pause fields take a number.

        @throws ValueError on an unknown field or malformed value
        """
        for name, value in changes.items():
            if name in TIMEOUT_FIELDS:
                setattr(self, name, _settings_from(name, value, getattr(self, name, None)))
            elif name in PAUSE_FIELDS:
                setattr(self, name, float(value))
            else:
                raise ValueError(f"Unknown TimeConfig field: {name}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in TIMEOUT_FIELDS:
            settings = getattr(self, name)
            data[name] = {"timeout": settings.timeout, "interval": settings.interval}
        for name in PAUSE_FIELDS:
            data[name] = getattr(self, name)
        return data

    def clone(self) -> TimeConfig:
        twin = TimeConfig(self.preset)
        twin.update(self.to_dict())
        return twin

    def __repr__(self) -> str:
        return f"TimeConfig(preset={self.preset!r})"

    # --- Builders ---

    @classmethod
    def build_from(
        cls,
        *,
        preset: str = DEFAULT_PRESET,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TimeConfig:
        config = cls(preset)
        config.update(overrides or {})
        return config

    @classmethod
    def from_properties(cls, store: PropertyStore) -> TimeConfig:
        """
        Build a config from a property store.

        Keys: ``timing.preset``, ``timeout.default`` (applies to every wait
        without its own key), ``timeout.<wait>``, ``interval.<wait>`` and
        the pause names (``implicit_wait``, ``after_click_pause``). Values
        that are not non-negative numbers, and intervals that are not
        positive, are logged and skipped.

        A file that has a ``timeout`` section without ``timeout.default``
        is expected to name every wait, so each missing ``timeout.<wait>``
        is reported; the same holds for an ``interval`` section.
        """
        preset = store.get_property("timing.preset", warn=False) or DEFAULT_PRESET
        if preset.lower() not in list_presets():
            logger.warning("Unknown timing preset '%s', using defaults", preset)
            preset = DEFAULT_PRESET
        config = cls(preset)

        fallback = _seconds(store, "timeout.default")
        expect_timeouts = fallback is None and store.has_section("timeout")
        expect_intervals = store.has_section("interval")
        changes: Dict[str, Any] = {}
        for name in TIMEOUT_FIELDS:
            timeout = _seconds(store, f"timeout.{name}", warn=expect_timeouts)
            interval = _seconds(store, f"interval.{name}", warn=expect_intervals, positive=True)
            if timeout is None:
                timeout = fallback
            if timeout is not None or interval is not None:
                changes[name] = {"timeout": timeout, "interval": interval}
        for name in PAUSE_FIELDS:
            seconds = _seconds(store, name)
            if seconds is not None:
                changes[name] = seconds

        config.update(changes)
        return config

    # --- Scoping ---

    @classmethod
    def default(cls) -> TimeConfig:
        """The process-wide config used when a thread installed none."""
        with cls._guard:
            if cls._process_default is None:
                cls._process_default = cls()
            return cls._process_default

    @classmethod
    def set_default(cls, config: TimeConfig) -> None:
        with cls._guard:
            cls._process_default = config

    @classmethod
    def install_run_config(cls, config: TimeConfig) -> None:
        """Use ``config`` for every wait on the calling thread."""
        cls._thread.run_config = config

    @classmethod
    def clear_run_config(cls) -> None:
        cls._thread.run_config = None

    @classmethod
    def _overrides(cls) -> List[TimeConfig]:
        if not hasattr(cls._thread, "overrides"):
            cls._thread.overrides = []
        return cls._thread.overrides

    @classmethod
    def current(cls) -> TimeConfig:
        stack = cls._overrides()
        if stack:
            return stack[-1]
        run_config = getattr(cls._thread, "run_config", None)
        if run_config is not None:
            return run_config
        return cls.default()

    @classmethod
    def apply_preset(cls, preset: str) -> None:
        """Install a fresh config built from ``preset`` on the calling thread."""
        cls.install_run_config(cls(preset))

    @classmethod
    @contextmanager
    def override(cls, **changes: Any) -> Iterator[TimeConfig]:
        """
        Change settings for the calling thread inside a ``with`` block.

        Example::

            with TimeConfig.override(alert_wait={"timeout": 2}):
                actions.accept_alert()
        """
        scoped = cls.current().clone()
        scoped.update(changes)
        stack = cls._overrides()
        stack.append(scoped)
        try:
            yield scoped
        finally:
            stack.pop()

    @classmethod
    def reset_to_defaults(cls) -> None:
        """Drop the process default and this thread's run config and overrides."""
        with cls._guard:
            cls._process_default = cls()
        cls._thread.run_config = None
        cls._thread.overrides = []


def _seconds(store: PropertyStore, key: str, warn: bool = False, positive: bool = False) -> Optional[float]:
    raw = store.get_property(key, warn=warn)
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Property '%s' is not a number: %r", key, raw)
        return None
    if positive and value <= 0:
        logger.warning("Property '%s' must be positive: %r", key, raw)
        return None
    if value < 0:
        logger.warning("Property '%s' must not be negative: %r", key, raw)
        return None
    return value


def available_presets() -> Dict[str, Dict[str, Any]]:
    return list_presets()

# uisync/timings.py
"""
@file timings.py
@brief Wait presets and defaults for browser synchronization.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict


TIMEOUT_FIELDS: Dict[str, Dict[str, Any]] = {
    "explicit_wait": {"timeout": 30.0, "interval": 0.5},
    "fluent_wait": {"timeout": 30.0, "interval": 1.0},
    "visibility_wait": {"timeout": 30.0, "interval": 0.5},
    "clickable_wait": {"timeout": 30.0, "interval": 0.5},
    "collection_wait": {"timeout": 30.0, "interval": 0.5},
    "alert_wait": {"timeout": 10.0, "interval": 0.5},
    "page_load": {"timeout": 30.0, "interval": 0.5},
}

PAUSE_FIELDS: Dict[str, float] = {
    # 0 disables implicit element lookup waiting inside the browser.
    "implicit_wait": 0.0,
    "after_click_pause": 0.0,
}

PRESET_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "fast": {
        "explicit_wait": {"timeout": 10.0, "interval": 0.25},
        "fluent_wait": {"timeout": 10.0, "interval": 0.5},
        "visibility_wait": {"timeout": 10.0, "interval": 0.25},
        "clickable_wait": {"timeout": 10.0, "interval": 0.25},
        "collection_wait": {"timeout": 10.0, "interval": 0.25},
        "alert_wait": {"timeout": 5.0, "interval": 0.25},
        "page_load": {"timeout": 15.0, "interval": 0.25},
    },
    "slow": {
        "explicit_wait": {"timeout": 60.0, "interval": 0.5},
        "fluent_wait": {"timeout": 60.0, "interval": 1.0},
        "visibility_wait": {"timeout": 60.0, "interval": 0.5},
        "clickable_wait": {"timeout": 60.0, "interval": 0.5},
        "collection_wait": {"timeout": 60.0, "interval": 0.5},
        "alert_wait": {"timeout": 20.0, "interval": 0.5},
        "page_load": {"timeout": 90.0, "interval": 1.0},
        "after_click_pause": 0.1,
    },
    "ci": {
        "explicit_wait": {"timeout": 45.0, "interval": 0.5},
        "fluent_wait": {"timeout": 45.0, "interval": 1.0},
        "visibility_wait": {"timeout": 45.0, "interval": 0.5},
        "clickable_wait": {"timeout": 45.0, "interval": 0.5},
        "collection_wait": {"timeout": 45.0, "interval": 0.5},
        "alert_wait": {"timeout": 15.0, "interval": 0.5},
        "page_load": {"timeout": 60.0, "interval": 1.0},
    },
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return {"default": {}, **PRESET_OVERRIDES}


def build_preset_values(preset: str) -> Dict[str, Any]:
    preset_key = (preset or "default").lower()
    values: Dict[str, Any] = {}
    values.update(deepcopy(TIMEOUT_FIELDS))
    values.update(deepcopy(PAUSE_FIELDS))

    if preset_key == "default":
        return values

    overrides = PRESET_OVERRIDES.get(preset_key)
    if overrides is None:
        raise ValueError(f"Unknown timing preset: {preset}")

    for key, value in overrides.items():
        if key in TIMEOUT_FIELDS:
            base = deepcopy(values[key])
            base.update(value)
            values[key] = base
        else:
            values[key] = value

    return values

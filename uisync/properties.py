# uisync/properties.py
"""
@file properties.py
@brief String-keyed property lookup backed by a YAML file.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterator, Optional

import yaml
from jsonschema import Draft202012Validator

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "uisync.yaml"
CONFIG_ENV_VAR = "UISYNC_CONFIG"
SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "properties.schema.json")


def _load_schema(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _flatten(data: Dict[str, Any], prefix: str = "") -> Iterator[tuple]:
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, f"{full_key}.")
        elif value is not None:
            yield full_key, value


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class PropertyStore:
    """
    Flat string properties loaded from YAML.

    Nested mappings are flattened to dotted keys, so::

        timeout:
          explicit_wait: 20

    is looked up as ``timeout.explicit_wait``. Null values count as absent.
    """

    def __init__(self, values: Optional[Dict[str, str]] = None, source: Optional[str] = None):
        self._values: Dict[str, str] = dict(values or {})
        self.source = source

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], source: Optional[str] = None) -> PropertyStore:
        """Validate a parsed mapping and build a store from it."""
        validator = Draft202012Validator(_load_schema(SCHEMA_PATH))
        errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        if errors:
            details = "; ".join(
                f"{'.'.join(str(p) for p in e.path) or '<root>'}: {e.message}" for e in errors
            )
            raise ConfigError(f"Invalid properties in {source or 'mapping'}: {details}")
        return cls({key: _to_text(value) for key, value in _flatten(data)}, source=source)

    @classmethod
    def load(cls, path: Optional[str] = None) -> PropertyStore:
        """
        Load properties from ``path``, ``$UISYNC_CONFIG`` or ``./uisync.yaml``.

        A missing file yields an empty store and a warning; an unreadable
        or malformed file raises ConfigError.
        """
        path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE
        path = os.path.abspath(path)
        if not os.path.exists(path):
            logger.warning("Configuration file not found: %s", path)
            return cls(source=path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading the configuration file {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must be a mapping at root: {path}")

        store = cls.from_mapping(data, source=path)
        logger.debug("Loaded %d properties from %s", len(store), path)
        return store

    def get_property(self, key: str, warn: bool = True) -> Optional[str]:
        """Return the value for ``key`` or None, logging a warning when absent."""
        value = self._values.get(key)
        if value is None and warn:
            logger.warning("Property with key '%s' is not found.", key)
        return value

    def has_section(self, name: str) -> bool:
        """True when any key lives under ``name.``."""
        prefix = f"{name}."
        return any(key.startswith(prefix) for key in self._values)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def keys(self):
        return sorted(self._values.keys())

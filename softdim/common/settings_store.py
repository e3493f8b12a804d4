"""
Persisted key-value settings store with per-key change notifications.

The store holds the seven user-facing brightness settings. Values are kept
in a YAML state file; every write that changes a value saves the file and
fires the callbacks connected to that key, synchronously and in connection
order. Enum-valued keys are kept as raw strings: parsing them is left to the
consumer so an unknown value is reported where it is used.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

__all__ = [
    "SettingsStore",
    "Subscription",
    "SubscriptionGroup",
    "SCHEMA",
    "KEY_MIN_BRIGHTNESS",
    "KEY_CURRENT_BRIGHTNESS",
    "KEY_MONITORS",
    "KEY_BUILTIN_MONITOR",
    "KEY_USE_BACKLIGHT",
    "KEY_PREVENT_UNREDIRECT",
    "KEY_DEBUG",
]

KEY_MIN_BRIGHTNESS = "min-brightness"
KEY_CURRENT_BRIGHTNESS = "current-brightness"
KEY_MONITORS = "monitors"
KEY_BUILTIN_MONITOR = "builtin-monitor"
KEY_USE_BACKLIGHT = "use-backlight"
KEY_PREVENT_UNREDIRECT = "prevent-unredirect"
KEY_DEBUG = "debug"

ChangeCallback = Callable[[str], None]


@dataclass(frozen=True)
class _KeySpec:
    """Type and default of one settings key."""

    value_type: type
    default: Any


SCHEMA: Dict[str, _KeySpec] = {
    KEY_MIN_BRIGHTNESS: _KeySpec(float, 0.1),
    KEY_CURRENT_BRIGHTNESS: _KeySpec(float, 1.0),
    KEY_MONITORS: _KeySpec(str, "all"),
    KEY_BUILTIN_MONITOR: _KeySpec(str, ""),
    KEY_USE_BACKLIGHT: _KeySpec(bool, False),
    KEY_PREVENT_UNREDIRECT: _KeySpec(str, "when-correcting"),
    KEY_DEBUG: _KeySpec(bool, False),
}

_BOOL_TOKENS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


@dataclass(frozen=True)
class Subscription:
    """Handle returned by `SettingsStore.changed_connect`."""

    key: str
    handler_id: int


class SubscriptionGroup:
    """
    Owns a set of subscriptions and releases all of them together.

    Usable as a context manager; `close()` is safe to call repeatedly.
    """

    def __init__(self) -> None:
        self._releasers: List[Callable[[], None]] = []

    def add(self, release: Callable[[], None]) -> None:
        """
        Register a release action for one subscription.

        Args:
            release: Zero-argument callable undoing the subscription.
        """
        self._releasers.append(release)

    def settings_connect(
        self, store: "SettingsStore", key: str, callback: ChangeCallback
    ) -> Subscription:
        """
        Connect a store callback and track its handle.

        Returns:
            The new subscription handle.
        """
        subscription = store.changed_connect(key, callback)
        self.add(lambda: store.changed_disconnect(subscription))
        return subscription

    def close(self) -> None:
        """Release every tracked subscription, newest first."""
        while self._releasers:
            release = self._releasers.pop()
            release()

    def __len__(self) -> int:
        return len(self._releasers)

    def __enter__(self) -> "SubscriptionGroup":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


class SettingsStore:
    """Schema-checked key-value store backed by a YAML state file."""

    def __init__(
        self,
        state_path: Optional[Path] = None,
        defaults: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize store with schema defaults.

        Args:
            state_path: YAML state file; None keeps the store in memory only.
            defaults: Overrides for schema defaults (from config.yml).
        """
        self._state_path: Optional[Path] = (
            Path(state_path).expanduser() if state_path is not None else None
        )
        self._values: Dict[str, Any] = {key: spec.default for key, spec in SCHEMA.items()}
        for key, value in (defaults or {}).items():
            self._values[key] = self.value_coerce(key, value)
        self._callbacks: Dict[int, tuple[str, ChangeCallback]] = {}
        self._next_handler_id: int = 1

    @property
    def state_path(self) -> Optional[Path]:
        """Path of the backing state file, if any"""
        return self._state_path

    @staticmethod
    def value_coerce(key: str, value: Any) -> Any:
        """
        Convert a raw value to the schema type of key.

        Args:
            key: Settings key.
            value: Raw value (YAML scalar or command-line string).

        Returns:
            Value of the key's schema type.

        Raises:
            KeyError: If key is not in the schema.
            ValueError: If value cannot be converted.
        """
        if key not in SCHEMA:
            raise KeyError(f"Unknown settings key '{key}'")
        value_type = SCHEMA[key].value_type

        if value_type is bool:
            if isinstance(value, bool):
                return value
            token = str(value).strip().lower()
            if token not in _BOOL_TOKENS:
                raise ValueError(f"Invalid boolean for '{key}': {value!r}")
            return _BOOL_TOKENS[token]

        if value_type is float:
            if isinstance(value, bool):
                raise ValueError(f"Invalid number for '{key}': {value!r}")
            try:
                number = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid number for '{key}': {value!r}") from exc
            if not math.isfinite(number):
                raise ValueError(f"Invalid number for '{key}': {value!r}")
            return number

        if value is None:
            return ""
        return str(value)

    def value_get(self, key: str) -> Any:
        """
        Read the current value of key.

        Raises:
            KeyError: If key is not in the schema.
        """
        if key not in SCHEMA:
            raise KeyError(f"Unknown settings key '{key}'")
        return self._values[key]

    def values_get(self) -> Dict[str, Any]:
        """Return a copy of all current values"""
        return dict(self._values)

    def value_set(self, key: str, value: Any) -> bool:
        """
        Write key, persist, and notify if the value changed.

        Args:
            key: Settings key.
            value: New value, coerced to the schema type.

        Returns:
            True if the stored value changed.
        """
        coerced = self.value_coerce(key, value)
        if self._values[key] == coerced:
            return False

        logger.debug("Setting %s: %r -> %r", key, self._values[key], coerced)
        self._values[key] = coerced
        self.state_save()
        self.changed_emit(key)
        return True

    def changed_connect(self, key: str, callback: ChangeCallback) -> Subscription:
        """
        Register callback for changes of key.

        Args:
            key: Settings key to watch.
            callback: Called with the key name after each change.

        Returns:
            Handle for `changed_disconnect`.
        """
        if key not in SCHEMA:
            raise KeyError(f"Unknown settings key '{key}'")
        handler_id = self._next_handler_id
        self._next_handler_id += 1
        self._callbacks[handler_id] = (key, callback)
        return Subscription(key=key, handler_id=handler_id)

    def changed_disconnect(self, subscription: Subscription) -> None:
        """Remove a callback; unknown handles are ignored."""
        self._callbacks.pop(subscription.handler_id, None)

    def subscriptions_count(self) -> int:
        """Number of connected callbacks"""
        return len(self._callbacks)

    def changed_emit(self, key: str) -> None:
        """Invoke every callback connected to key."""
        # Snapshot: callbacks may connect or disconnect while running.
        for handler_id, (watched_key, callback) in list(self._callbacks.items()):
            if watched_key != key or handler_id not in self._callbacks:
                continue
            callback(key)

    def state_load(self) -> None:
        """
        Load values from the state file without notifying.

        A missing file leaves current values in place. Unknown keys and
        invalid values in the file are logged and skipped.
        """
        for key, value in self._stateFile_read().items():
            self._values[key] = value

    def state_save(self) -> None:
        """Write all values to the state file, creating parent directories."""
        if self._state_path is None:
            return
        self._state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._state_path, "w") as f:
            yaml.safe_dump(self._values, f, default_flow_style=False, sort_keys=True)

    def file_reload(self) -> List[str]:
        """
        Re-read the state file and notify keys whose values differ.

        Returns:
            Keys that changed.
        """
        changed: List[str] = []
        for key, value in self._stateFile_read().items():
            if self._values[key] != value:
                self._values[key] = value
                changed.append(key)
        for key in changed:
            logger.debug("Setting %s reloaded from %s", key, self._state_path)
            self.changed_emit(key)
        return changed

    def _stateFile_read(self) -> Dict[str, Any]:
        """
        Parse and validate the state file.

        Returns:
            Valid key-value pairs found in the file.
        """
        if self._state_path is None or not self._state_path.exists():
            return {}
        with open(self._state_path, "r") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s: not a YAML dictionary", self._state_path)
            return {}

        values: Dict[str, Any] = {}
        for key, value in data.items():
            try:
                values[key] = self.value_coerce(key, value)
            except (KeyError, ValueError) as exc:
                logger.warning("Ignoring state file entry %s: %s", key, exc)
        return values

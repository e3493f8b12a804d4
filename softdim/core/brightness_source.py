"""
Brightness level source.

Resolves reads and writes of the current brightness level to whichever
backend is authoritative: the hardware backlight proxy when the
`use-backlight` setting is on and the proxy reports a valid percentage, the
stored `current-brightness` fraction otherwise. A proxy that has not
connected yet is treated exactly like hardware mode being off.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from softdim.common.settings import settings
from softdim.common.settings_store import (
    KEY_CURRENT_BRIGHTNESS,
    KEY_USE_BACKLIGHT,
    SettingsStore,
)
from softdim.core.protocols import BacklightProxy

logger = logging.getLogger(__name__)

__all__ = ["BrightnessSource", "roundHalfUp_get", "backlightPercent_fromLevel"]


def roundHalfUp_get(value: float) -> int:
    """Round to nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def backlightPercent_fromLevel(level: float) -> int:
    """
    Convert a brightness level to the percentage sent to the backlight.

    Args:
        level: Brightness level in [0.0, 1.0].

    Returns:
        `min(100, round(level * 100) + 1)`.
    """
    percent = roundHalfUp_get(level * settings.BACKLIGHT_PERCENT_MAX) + settings.BACKLIGHT_ROUNDING_BIAS
    return min(settings.BACKLIGHT_PERCENT_MAX, percent)


class BrightnessSource:
    """Reads and writes the authoritative brightness level."""

    def __init__(self, store: SettingsStore, backlight: Optional[BacklightProxy] = None) -> None:
        """
        Initialize brightness source.

        Args:
            store: Settings store holding `use-backlight` and `current-brightness`.
            backlight: Backlight proxy, or None when hardware control is not wired.
        """
        self._store = store
        self._backlight = backlight

    def hardwareMode_isRequested(self) -> bool:
        """Check the `use-backlight` policy flag"""
        return bool(self._store.value_get(KEY_USE_BACKLIGHT))

    def backlightPercent_get(self) -> Optional[int]:
        """Return the proxy's valid percentage, or None when unavailable"""
        if self._backlight is None:
            return None
        percent = self._backlight.brightness_get()
        if percent is None or percent < 0:
            return None
        return percent

    def hardwareMode_isActive(self) -> bool:
        """Check that hardware mode is requested and the proxy is usable"""
        return self.hardwareMode_isRequested() and self.backlightPercent_get() is not None

    def level_read(self) -> float:
        """
        Read the current brightness level.

        Returns:
            Backlight percentage / 100 in active hardware mode, otherwise
            the stored software fraction.
        """
        percent = self.backlightPercent_get() if self.hardwareMode_isRequested() else None
        if percent is not None:
            level = percent / float(settings.BACKLIGHT_PERCENT_MAX)
            logger.debug("level_read() by backlight = %s <- %s%%", level, percent)
            return level

        level = float(self._store.value_get(KEY_CURRENT_BRIGHTNESS))
        logger.debug("level_read() by setting = %s", level)
        return level

    def level_write(self, level: float) -> None:
        """
        Write a brightness level to the authoritative backend.

        Args:
            level: Brightness level in [0.0, 1.0].
        """
        if self.hardwareMode_isActive() and self._backlight is not None:
            percent = backlightPercent_fromLevel(level)
            logger.debug("level_write(%s) by backlight -> %s%%", level, percent)
            self._backlight.brightness_set(percent)
            return

        logger.debug("level_write(%s) by setting", level)
        self._store.value_set(KEY_CURRENT_BRIGHTNESS, level)

    def hardwareMode_switch(self) -> None:
        """
        Carry the level across a `use-backlight` toggle.

        Turning hardware mode on pushes the stored level to the proxy (a
        no-op write to the setting while the proxy is unavailable). Turning
        it off pulls a valid proxy value into the setting.
        """
        if self.hardwareMode_isRequested():
            level = float(self._store.value_get(KEY_CURRENT_BRIGHTNESS))
            logger.debug("hardwareMode_switch(): on, seeding backlight with %s", level)
            self.level_write(level)
            return

        percent = self.backlightPercent_get()
        if percent is None:
            logger.debug("hardwareMode_switch(): off, backlight unavailable, nothing to pull")
            return
        level = percent / float(settings.BACKLIGHT_PERCENT_MAX)
        logger.debug("hardwareMode_switch(): off, pulling %s from backlight", level)
        self.level_write(level)

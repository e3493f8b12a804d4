"""
Brightness controller.

Single writer of all derived state: reacts to brightness, topology and
policy events, enforces the minimum-brightness floor, and drives the overlay
manager and the unredirect guard. Every handler runs to completion on the
event loop; the only deferred work is monitor-name resolution, which
re-enters through `brightnessChange_handle(True)` when it completes.

A floor correction writes the floor back to the authoritative source and
returns without touching overlays. In software mode the write changes
`current-brightness`, whose change notification re-runs the handler at the
corrected level; in hardware mode the backlight's property change does.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from softdim.common.settings import settings
from softdim.common.settings_store import (
    KEY_BUILTIN_MONITOR,
    KEY_CURRENT_BRIGHTNESS,
    KEY_DEBUG,
    KEY_MIN_BRIGHTNESS,
    KEY_MONITORS,
    KEY_PREVENT_UNREDIRECT,
    KEY_USE_BACKLIGHT,
    SettingsStore,
    SubscriptionGroup,
)
from softdim.common.types import MonitorSelectionPolicy, UnredirectPolicy
from softdim.core.brightness_source import BrightnessSource, roundHalfUp_get
from softdim.core.monitor_registry import MonitorRegistry
from softdim.core.overlay_manager import OverlayManager
from softdim.core.protocols import BacklightProxy, SliderView, TopologyProvider
from softdim.core.unredirect_guard import UnredirectGuard

logger = logging.getLogger(__name__)

__all__ = ["BrightnessController", "opacity_fromLevel"]

_PACKAGE_LOGGER = "softdim"


def opacity_fromLevel(level: float) -> int:
    """
    Map a brightness level below full to an overlay opacity byte.

    Args:
        level: Brightness level in [0.0, 1.0).

    Returns:
        `round((1 - level) * 255)`.
    """
    return roundHalfUp_get((settings.FULL_BRIGHTNESS - level) * settings.OPACITY_MAX)


class BrightnessController:
    """Event-driven brightness-to-overlay state machine."""

    def __init__(
        self,
        store: SettingsStore,
        source: BrightnessSource,
        registry: MonitorRegistry,
        overlays: OverlayManager,
        guard: UnredirectGuard,
        topology: TopologyProvider,
        backlight: Optional[BacklightProxy] = None,
        slider: Optional[SliderView] = None,
        base_log_level: int = logging.INFO,
    ) -> None:
        """
        Initialize controller.

        Args:
            store: Settings store.
            source: Brightness level source.
            registry: Monitor registry.
            overlays: Overlay manager.
            guard: Unredirect latch.
            topology: Topology provider emitting monitor-change events.
            backlight: Backlight proxy emitting property changes, if wired.
            slider: UI slider mirror, if any.
            base_log_level: Package log level when the debug setting is off.
        """
        self._store = store
        self._source = source
        self._registry = registry
        self._overlays = overlays
        self._guard = guard
        self._topology = topology
        self._backlight = backlight
        self._slider = slider
        self._base_log_level = base_log_level
        self._subscriptions = SubscriptionGroup()
        self._enabled: bool = False

    @property
    def enabled(self) -> bool:
        """Whether the controller is connected to its event sources"""
        return self._enabled

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def enable(self) -> None:
        """Connect event sources and run the initial pass."""
        if self._enabled:
            logger.debug("enable(): skipping as already enabled")
            return

        self._debugLevel_apply()
        logger.debug("enable()")
        self._callbacks_connect()
        self._enabled = True

        self.monitorTopologyChange_handle()

        # With the backlight still connecting, a later sync does the work.
        if not self._source.hardwareMode_isRequested() or self._source.backlightPercent_get() is not None:
            self._slider_update(self._source.level_read())
        logger.debug("Controller enabled")

    def disable(self) -> None:
        """Release every subscription and remove all visual effects."""
        if not self._enabled:
            logger.info("disable() called when not enabled")
            return

        logger.debug("disable()")
        self._subscriptions.close()
        self._overlays.overlays_clear()
        self._guard.policy_apply(UnredirectPolicy.NEVER, False)
        self._enabled = False
        logger.debug("Controller disabled")

    def __enter__(self) -> "BrightnessController":
        self.enable()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.disable()

    def _callbacks_connect(self) -> None:
        """Subscribe to store keys, topology and backlight changes."""
        group = self._subscriptions
        group.settings_connect(self._store, KEY_MIN_BRIGHTNESS, lambda _key: self.brightnessChange_handle(False))
        group.settings_connect(self._store, KEY_CURRENT_BRIGHTNESS, lambda _key: self.brightnessChange_handle(False))
        group.settings_connect(self._store, KEY_MONITORS, lambda _key: self.selectionPolicyChange_handle())
        group.settings_connect(self._store, KEY_BUILTIN_MONITOR, lambda _key: self.selectionPolicyChange_handle())
        group.settings_connect(self._store, KEY_PREVENT_UNREDIRECT, lambda _key: self.unredirectPolicyChange_handle())
        group.settings_connect(self._store, KEY_USE_BACKLIGHT, lambda _key: self.hardwareModeChange_handle())
        group.settings_connect(self._store, KEY_DEBUG, lambda _key: self.debugChange_handle())

        topology_handler = self._topology.monitorsChanged_connect(self.monitorTopologyChange_handle)
        group.add(lambda: self._topology.monitorsChanged_disconnect(topology_handler))

        if self._backlight is not None:
            backlight = self._backlight
            backlight_handler = backlight.changed_connect(self.backlightSync_handle)
            group.add(lambda: backlight.changed_disconnect(backlight_handler))

        self._registry.namesResolvedCallback_set(lambda: self.brightnessChange_handle(True))
        group.add(lambda: self._registry.namesResolvedCallback_set(None))

    # =========================================================================
    # Event handlers
    # =========================================================================

    def brightnessChange_handle(self, force_monitor_recompute: bool) -> None:
        """
        Recompute overlays for the current brightness level.

        Args:
            force_monitor_recompute: Re-resolve monitors and recreate overlays.
        """
        level = self._source.level_read()
        floor = min(settings.FULL_BRIGHTNESS, max(0.0, float(self._store.value_get(KEY_MIN_BRIGHTNESS))))
        logger.debug(
            "brightnessChange_handle(%s): current-brightness=%s, min-brightness=%s",
            force_monitor_recompute,
            level,
            floor,
        )

        if not (math.isfinite(level) and math.isfinite(floor)):
            logger.error("Ignoring non-finite brightness: level=%s, floor=%s", level, floor)
            return

        if level < floor:
            if not self._source.hardwareMode_isActive():
                self._slider_update(floor)
            self._source.level_write(floor)
            return

        unredirect_policy = self._store.value_get(KEY_PREVENT_UNREDIRECT)
        if level >= settings.FULL_BRIGHTNESS:
            self._overlays.overlays_clear()
            self._guard.policy_apply(unredirect_policy, False)
            return

        opacity = opacity_fromLevel(level)
        logger.debug("brightnessChange_handle(): opacity=%s", opacity)

        if force_monitor_recompute or not self._overlays.overlays_isPresent():
            selected = self._monitorsSelected_resolve()
            if selected is None:
                return
            self._overlays.overlays_ensure(selected, force_monitor_recompute)

        self._guard.policy_apply(unredirect_policy, True)
        self._overlays.opacity_set(opacity)

    def monitorTopologyChange_handle(self) -> None:
        """Reload the monitor list, then recompute with recreation."""
        geometries = self._topology.monitors_get()
        logger.debug("monitorTopologyChange_handle(): %s monitors", len(geometries))
        self._registry.topology_update(geometries)
        self.brightnessChange_handle(True)

    def selectionPolicyChange_handle(self) -> None:
        """Recompute after `monitors` or `builtin-monitor` changed."""
        self.brightnessChange_handle(True)

    def unredirectPolicyChange_handle(self) -> None:
        """Recompute after `prevent-unredirect` changed."""
        self.brightnessChange_handle(True)

    def hardwareModeChange_handle(self) -> None:
        """Carry the level across a `use-backlight` toggle."""
        logger.debug("hardwareModeChange_handle()")
        self._source.hardwareMode_switch()

    def backlightSync_handle(self) -> None:
        """Follow a backlight property change and mirror it to the slider."""
        logger.debug("backlightSync_handle()")
        self.brightnessChange_handle(False)
        self._slider_update(self._source.level_read())

    def debugChange_handle(self) -> None:
        """Switch package logging between DEBUG and the configured level."""
        self._debugLevel_apply()
        logger.info("debug = %s", bool(self._store.value_get(KEY_DEBUG)))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _monitorsSelected_resolve(self):
        """
        Resolve the `monitors` policy to descriptors.

        Returns:
            Selected descriptors, or None when deferred or misconfigured.
        """
        raw_policy = self._store.value_get(KEY_MONITORS)
        try:
            policy = MonitorSelectionPolicy.parse(raw_policy)
        except ValueError:
            logger.error('Unhandled "monitors" setting = %s', raw_policy)
            return None

        builtin_name: str = self._store.value_get(KEY_BUILTIN_MONITOR)
        logger.debug('Resolving monitors="%s", builtin-monitor="%s"', policy.value, builtin_name)
        return self._registry.subset_resolve(policy, builtin_name, self._builtinMonitor_persist)

    def _builtinMonitor_persist(self, monitor_name: str) -> None:
        """Store the default built-in monitor name."""
        logger.debug('No built-in monitor, setting to "%s"', monitor_name)
        self._store.value_set(KEY_BUILTIN_MONITOR, monitor_name)

    def _slider_update(self, level: float) -> None:
        if self._slider is not None:
            self._slider.value_set(level)

    def _debugLevel_apply(self) -> None:
        level = logging.DEBUG if self._store.value_get(KEY_DEBUG) else self._base_log_level
        logging.getLogger(_PACKAGE_LOGGER).setLevel(level)

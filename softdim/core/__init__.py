"""Brightness-to-overlay control core."""

from softdim.core.brightness_source import BrightnessSource
from softdim.core.controller import BrightnessController, opacity_fromLevel
from softdim.core.monitor_registry import MonitorRegistry
from softdim.core.overlay_manager import OverlayManager
from softdim.core.protocols import (
    BacklightProxy,
    DisplayConfigProvider,
    SliderView,
    SurfaceLayer,
    TopologyProvider,
)
from softdim.core.unredirect_guard import UnredirectGuard

__all__ = [
    "BacklightProxy",
    "BrightnessController",
    "BrightnessSource",
    "DisplayConfigProvider",
    "MonitorRegistry",
    "OverlayManager",
    "SliderView",
    "SurfaceLayer",
    "TopologyProvider",
    "UnredirectGuard",
    "opacity_fromLevel",
]

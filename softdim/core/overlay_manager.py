"""
Overlay surface ownership.

One overlay per selected monitor, each created at exactly the monitor's
geometry. Overlays are never resized: a topology or policy change recreates
the whole set, and a level change only repaints opacity.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from softdim.common.settings import settings
from softdim.common.types import MonitorDescriptor
from softdim.core.protocols import SurfaceLayer

logger = logging.getLogger(__name__)

__all__ = ["OverlayManager"]


class OverlayManager:
    """Creates, repaints and destroys the overlay set."""

    def __init__(self, surface_layer: SurfaceLayer) -> None:
        self._surface_layer = surface_layer
        self._overlays: list[Any] | None = None
        self._opacity: int | None = None

    def overlays_isPresent(self) -> bool:
        """Check whether an overlay set exists (possibly empty)"""
        return self._overlays is not None

    def overlays_count(self) -> int:
        """Number of overlays in the current set"""
        return len(self._overlays) if self._overlays is not None else 0

    @property
    def opacity(self) -> int | None:
        """Last opacity applied to the set, None when no set exists"""
        return self._opacity

    def overlays_ensure(self, monitors: Sequence[MonitorDescriptor], force_recreate: bool) -> None:
        """
        Make sure an overlay set exists for monitors.

        Args:
            monitors: Selected monitors.
            force_recreate: Rebuild even when a set already exists.
        """
        if self._overlays is not None and not force_recreate:
            return

        self.overlays_clear()
        overlays: list[Any] = []
        for position, monitor in enumerate(monitors):
            geometry = monitor.geometry
            logger.debug(
                "Create overlay #%s: %sx%s@%s,%s",
                position,
                geometry.width,
                geometry.height,
                geometry.x,
                geometry.y,
            )
            overlays.append(self._surface_layer.surface_create(geometry))
        self._overlays = overlays

    def opacity_set(self, opacity: int) -> None:
        """
        Apply opacity to every overlay in the set.

        Args:
            opacity: Opacity byte, clamped to [0, 255].
        """
        if not self._overlays:
            return
        opacity = max(0, min(settings.OPACITY_MAX, int(opacity)))
        for position, overlay in enumerate(self._overlays):
            logger.debug("Set opacity %s on overlay #%s", opacity, position)
            self._surface_layer.surfaceOpacity_set(overlay, opacity)
        self._opacity = opacity

    def overlays_clear(self) -> None:
        """Destroy all overlays and forget the set."""
        if self._overlays is None:
            return
        logger.debug("Drop overlays, count=%s", len(self._overlays))
        for overlay in self._overlays:
            self._surface_layer.surface_destroy(overlay)
        self._overlays = None
        self._opacity = None

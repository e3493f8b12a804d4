"""Collaborator protocols consumed by the brightness core."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from softdim.common.types import MonitorConfigEntry, MonitorGeometry

MonitorConfigCallback = Callable[[Optional[list[MonitorConfigEntry]], Optional[Exception]], None]


class SurfaceLayer(Protocol):
    """Compositor paint layer hosting overlay surfaces."""

    def surface_create(self, geometry: MonitorGeometry) -> Any:
        """
        Create a click-through overlay surface covering geometry.

        Args:
            geometry: Monitor rectangle to cover exactly.

        Returns:
            Opaque surface handle.
        """

    def surface_destroy(self, surface: Any) -> None:
        """Destroy an overlay surface."""

    def surfaceOpacity_set(self, surface: Any, opacity: int) -> None:
        """
        Set surface opacity.

        Args:
            surface: Handle from `surface_create`.
            opacity: Opacity byte, 0 transparent to 255 black.
        """

    def unredirect_disable(self) -> None:
        """Keep the display composited (suppress full-screen bypass)."""

    def unredirect_enable(self) -> None:
        """Allow the compositor to bypass for full-screen windows."""


class TopologyProvider(Protocol):
    """Synchronous view of the active monitor topology."""

    def monitors_get(self) -> list[MonitorGeometry]:
        """Return active monitor geometries in logical-index order."""

    def primaryIndex_get(self) -> int:
        """Return logical index of the primary monitor."""

    def monitorForConnector_get(self, connector_name: str) -> int:
        """Return logical index for connector, or -1 when not found."""

    def monitorsChanged_connect(self, callback: Callable[[], None]) -> int:
        """Register a topology-change callback; returns a handler id."""

    def monitorsChanged_disconnect(self, handler_id: int) -> None:
        """Remove a topology-change callback."""


class DisplayConfigProvider(Protocol):
    """Asynchronous monitor-name source."""

    def monitorConfig_query(self, callback: MonitorConfigCallback) -> None:
        """
        Start a monitor-configuration query.

        The callback runs later with `(entries, None)` on success or
        `(None, error)` on failure.
        """


class BacklightProxy(Protocol):
    """Hardware backlight control."""

    def brightness_get(self) -> Optional[int]:
        """Return backlight percentage 0-100, or None while unavailable."""

    def brightness_set(self, percent: int) -> None:
        """Request a backlight percentage."""

    def changed_connect(self, callback: Callable[[], None]) -> int:
        """Register a property-change callback; returns a handler id."""

    def changed_disconnect(self, handler_id: int) -> None:
        """Remove a property-change callback."""


class SliderView(Protocol):
    """UI representation of the brightness level."""

    def value_set(self, level: float) -> None:
        """Show level without emitting a change back to the controller."""


class CallbackRegistry:
    """Numbered callback list shared by the concrete collaborators."""

    def __init__(self) -> None:
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_id: int = 1

    def connect(self, callback: Callable[[], None]) -> int:
        handler_id = self._next_id
        self._next_id += 1
        self._callbacks[handler_id] = callback
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._callbacks.pop(handler_id, None)

    def emit(self) -> None:
        for callback in list(self._callbacks.values()):
            callback()

    def __len__(self) -> int:
        return len(self._callbacks)


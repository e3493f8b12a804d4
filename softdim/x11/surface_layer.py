"""Overlay surfaces as override-redirect X11 windows."""

from __future__ import annotations

import logging

from Xlib import X, Xatom
from Xlib.ext import shape

from softdim.common.settings import settings
from softdim.common.types import MonitorGeometry

logger = logging.getLogger(__name__)

_BYPASS_NO_PREFERENCE: int = 0
_BYPASS_DISABLED: int = 2


class X11SurfaceLayer:
    """
    Paints black overlay windows and toggles compositor bypass.

    Each surface is an override-redirect window stacked above everything,
    with an empty input shape so clicks pass through. Opacity goes through
    `_NET_WM_WINDOW_OPACITY`, which the compositing manager applies.
    Unredirect suppression is expressed with `_NET_WM_BYPASS_COMPOSITOR`
    on every live overlay window and on windows created later.
    """

    def __init__(self, display_manager) -> None:
        """
        Initialize surface layer.

        Args:
            display_manager: Connected X11 display manager.
        """
        self._display_manager = display_manager
        self._windows: list = []
        self._unredirect_disabled: bool = False

    @property
    def unredirect_disabled(self) -> bool:
        """Whether bypass suppression is requested"""
        return self._unredirect_disabled

    def surface_create(self, geometry: MonitorGeometry):
        """
        Create and map a click-through black window covering geometry.

        Args:
            geometry: Monitor rectangle.

        Returns:
            The X11 window.
        """
        display = self._display_manager.display_get()
        screen = display.screen()
        root = screen.root

        window = root.create_window(
            geometry.x,
            geometry.y,
            geometry.width,
            geometry.height,
            0,
            screen.root_depth,
            X.InputOutput,
            X.CopyFromParent,
            background_pixel=screen.black_pixel,
            override_redirect=True,
            event_mask=0,
        )
        window.set_wm_name(settings.OVERLAY_WINDOW_NAME)
        window.set_wm_class(settings.OVERLAY_WINDOW_NAME, "softdim")
        self._inputShape_clear(window)
        self._opacityProperty_set(window, 0)
        self._bypassProperty_set(window)

        window.map()
        window.configure(stack_mode=X.Above)
        self._display_manager.connection_sync()
        self._windows.append(window)
        return window

    def surface_destroy(self, window) -> None:
        """Destroy an overlay window."""
        if window in self._windows:
            self._windows.remove(window)
        try:
            window.destroy()
            self._display_manager.connection_sync()
        except Exception as exc:
            logger.debug("Overlay destroy failed: %s", exc)

    def surfaceOpacity_set(self, window, opacity: int) -> None:
        """
        Set window opacity from an opacity byte.

        Args:
            window: Overlay window.
            opacity: 0 transparent to 255 black.
        """
        self._opacityProperty_set(window, opacity)
        window.configure(stack_mode=X.Above)
        self._display_manager.display_get().flush()

    def unredirect_disable(self) -> None:
        """Request compositing to stay on while overlays exist."""
        self._unredirect_disabled = True
        self._bypassProperties_refresh()

    def unredirect_enable(self) -> None:
        """Drop the compositing request."""
        self._unredirect_disabled = False
        self._bypassProperties_refresh()

    def _bypassProperties_refresh(self) -> None:
        for window in self._windows:
            self._bypassProperty_set(window)
        if self._windows:
            self._display_manager.display_get().flush()

    def _bypassProperty_set(self, window) -> None:
        display = self._display_manager.display_get()
        value = _BYPASS_DISABLED if self._unredirect_disabled else _BYPASS_NO_PREFERENCE
        atom = display.get_atom("_NET_WM_BYPASS_COMPOSITOR")
        window.change_property(atom, Xatom.CARDINAL, 32, [value])

    def _opacityProperty_set(self, window, opacity: int) -> None:
        display = self._display_manager.display_get()
        value = int(settings.X11_OPACITY_MAX * (opacity / float(settings.OPACITY_MAX)))
        atom = display.get_atom("_NET_WM_WINDOW_OPACITY")
        window.change_property(atom, Xatom.CARDINAL, 32, [value])

    def _inputShape_clear(self, window) -> None:
        """Give the window an empty input region."""
        display = self._display_manager.display_get()
        if not display.has_extension("SHAPE"):
            logger.warning("SHAPE extension not available; overlays will intercept input")
            return

        # Constant names differ between python-xlib versions.
        shape_set = getattr(getattr(shape, "SO", None), "Set", getattr(shape, "ShapeSet", 0))
        shape_input = getattr(getattr(shape, "SK", None), "Input", getattr(shape, "ShapeInput", 2))
        try:
            window.shape_rectangles(shape_set, shape_input, X.Unsorted, 0, 0, [])
        except Exception as exc:
            logger.warning("Failed to make overlay click-through: %s", exc)

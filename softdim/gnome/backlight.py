"""Backlight control through gnome-settings-daemon over D-Bus."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib  # noqa: E402

from softdim.core.protocols import CallbackRegistry  # noqa: E402

logger = logging.getLogger(__name__)


class GsdBacklightProxy:
    """
    Asynchronously connected proxy for the screen `Brightness` property.

    `brightness_get()` returns None until the proxy has connected and while
    the daemon reports a negative value (no controllable backlight).
    Writes update the cached value immediately and send the D-Bus property
    set in the background, so a read right after a write sees the new value.
    """

    _BUS_NAME = "org.gnome.SettingsDaemon.Power"
    _OBJECT_PATH = "/org/gnome/SettingsDaemon/Power"
    _INTERFACE = "org.gnome.SettingsDaemon.Power.Screen"
    _PROPERTY = "Brightness"

    def __init__(self) -> None:
        self._proxy: Optional[Gio.DBusProxy] = None
        self._changed = CallbackRegistry()
        self._properties_handler: Optional[int] = None
        self._cancellable = Gio.Cancellable()

    def connection_start(self) -> None:
        """Start connecting to the session bus; returns immediately."""
        Gio.DBusProxy.new_for_bus(
            Gio.BusType.SESSION,
            Gio.DBusProxyFlags.NONE,
            None,
            self._BUS_NAME,
            self._OBJECT_PATH,
            self._INTERFACE,
            self._cancellable,
            self._proxy_onReady,
            None,
        )

    def connection_close(self) -> None:
        """Cancel a pending connection and drop the proxy."""
        self._cancellable.cancel()
        if self._proxy is not None and self._properties_handler is not None:
            self._proxy.disconnect(self._properties_handler)
        self._proxy = None
        self._properties_handler = None

    def _proxy_onReady(self, _source: object, result: Gio.AsyncResult, _data: object) -> None:
        try:
            proxy = Gio.DBusProxy.new_for_bus_finish(result)
        except GLib.Error as exc:
            logger.warning("Cannot connect to backlight service: %s", exc.message)
            return
        self._proxy = proxy
        self._properties_handler = proxy.connect("g-properties-changed", self._properties_onChanged)
        logger.debug("Backlight proxy connected, brightness=%s", self.brightness_get())
        self._changed.emit()

    def _properties_onChanged(self, _proxy: Gio.DBusProxy, changed: GLib.Variant, _invalidated: list) -> None:
        if self._PROPERTY in changed.unpack():
            self._changed.emit()

    def brightness_get(self) -> Optional[int]:
        """Backlight percentage, or None when unavailable"""
        if self._proxy is None:
            return None
        value = self._proxy.get_cached_property(self._PROPERTY)
        if value is None:
            return None
        percent = int(value.unpack())
        return percent if percent >= 0 else None

    def brightness_set(self, percent: int) -> None:
        """
        Request a backlight percentage.

        Args:
            percent: Target percentage 0-100.
        """
        if self._proxy is None:
            logger.debug("brightness_set(%s) skipped, backlight proxy not connected", percent)
            return
        variant = GLib.Variant("i", int(percent))
        self._proxy.set_cached_property(self._PROPERTY, variant)
        self._proxy.call(
            "org.freedesktop.DBus.Properties.Set",
            GLib.Variant("(ssv)", (self._INTERFACE, self._PROPERTY, variant)),
            Gio.DBusCallFlags.NONE,
            -1,
            None,
            self._set_onReply,
            None,
        )

    def _set_onReply(self, proxy: Gio.DBusProxy, result: Gio.AsyncResult, _data: object) -> None:
        try:
            proxy.call_finish(result)
        except GLib.Error as exc:
            logger.warning("Setting backlight brightness failed: %s", exc.message)

    def changed_connect(self, callback: Callable[[], None]) -> int:
        """Register a brightness-change callback"""
        return self._changed.connect(callback)

    def changed_disconnect(self, handler_id: int) -> None:
        """Remove a brightness-change callback"""
        self._changed.disconnect(handler_id)

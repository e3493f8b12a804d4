"""Monitor names from Mutter's DisplayConfig D-Bus service."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib  # noqa: E402

from softdim.common.types import MonitorConfigEntry  # noqa: E402
from softdim.core.protocols import MonitorConfigCallback  # noqa: E402

logger = logging.getLogger(__name__)

__all__ = ["MutterDisplayConfig", "resources_parse"]

_OUTPUTS_FIELD: int = 2
_OUTPUT_NAME_FIELD: int = 4
_OUTPUT_PROPERTIES_FIELD: int = 7


def resources_parse(resources: Sequence[Any]) -> list[MonitorConfigEntry]:
    """
    Extract (monitor-name, connector-name) pairs from a GetResources reply.

    Args:
        resources: Unpacked reply `(serial, crtcs, outputs, modes, max_w, max_h)`.

    Returns:
        One entry per output; outputs without a display name are reported
        as "Monitor on output X".

    Raises:
        ValueError: If the reply has no outputs or an output has no properties.
    """
    if len(resources) <= _OUTPUTS_FIELD:
        raise ValueError("No outputs in GetResources() reply")

    entries: list[MonitorConfigEntry] = []
    for position, output in enumerate(resources[_OUTPUTS_FIELD]):
        if len(output) <= _OUTPUT_PROPERTIES_FIELD:
            raise ValueError(f"No properties on output #{position}")
        connector_name = output[_OUTPUT_NAME_FIELD]
        display_name = output[_OUTPUT_PROPERTIES_FIELD].get("display-name") or ""
        if not display_name:
            display_name = f"Monitor on output {connector_name}"
        entries.append(MonitorConfigEntry(monitor_name=display_name, connector_name=connector_name))
    return entries


class MutterDisplayConfig:
    """
    Asynchronous client for org.gnome.Mutter.DisplayConfig.

    A query issued before the proxy has connected is held and sent once the
    connection completes; a newer query replaces a held one.
    """

    _BUS_NAME = "org.gnome.Mutter.DisplayConfig"
    _OBJECT_PATH = "/org/gnome/Mutter/DisplayConfig"
    _INTERFACE = "org.gnome.Mutter.DisplayConfig"

    def __init__(self) -> None:
        self._proxy: Optional[Gio.DBusProxy] = None
        self._pending: Optional[MonitorConfigCallback] = None
        self._cancellable = Gio.Cancellable()

    def connection_start(self) -> None:
        """Start connecting to the session bus; returns immediately."""
        Gio.DBusProxy.new_for_bus(
            Gio.BusType.SESSION,
            Gio.DBusProxyFlags.DO_NOT_LOAD_PROPERTIES,
            None,
            self._BUS_NAME,
            self._OBJECT_PATH,
            self._INTERFACE,
            self._cancellable,
            self._proxy_onReady,
            None,
        )

    def connection_close(self) -> None:
        """Cancel outstanding work and drop the proxy."""
        self._cancellable.cancel()
        self._proxy = None
        self._pending = None

    def _proxy_onReady(self, _source: object, result: Gio.AsyncResult, _data: object) -> None:
        try:
            self._proxy = Gio.DBusProxy.new_for_bus_finish(result)
        except GLib.Error as exc:
            logger.warning("Cannot get Display Config: %s", exc.message)
            return
        logger.debug("Display Config proxy connected")
        if self._pending is not None:
            callback, self._pending = self._pending, None
            self.monitorConfig_query(callback)

    def monitorConfig_query(self, callback: MonitorConfigCallback) -> None:
        """Call GetResources and deliver parsed entries to callback."""
        if self._proxy is None:
            logger.debug("monitorConfig_query(): proxy not connected yet, holding query")
            self._pending = callback
            return
        self._proxy.call(
            "GetResources",
            None,
            Gio.DBusCallFlags.NONE,
            -1,
            self._cancellable,
            self._resources_onReply,
            callback,
        )

    def _resources_onReply(
        self, proxy: Gio.DBusProxy, result: Gio.AsyncResult, callback: MonitorConfigCallback
    ) -> None:
        try:
            reply = proxy.call_finish(result)
        except GLib.Error as exc:
            callback(None, RuntimeError(exc.message))
            return
        try:
            entries = resources_parse(reply.unpack())
        except ValueError as exc:
            callback(None, exc)
            return
        callback(entries, None)

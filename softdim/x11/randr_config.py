"""Monitor names from RandR output EDID blocks."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from Xlib import X
from Xlib import error as xerror

from softdim.common.types import MonitorConfigEntry
from softdim.core.protocols import MonitorConfigCallback
from softdim.x11.display import outputName_decode

logger = logging.getLogger(__name__)

__all__ = ["RandrDisplayConfig", "edidMonitorName_parse"]

_EDID_DESCRIPTOR_OFFSETS: tuple[int, ...] = (54, 72, 90, 108)
_EDID_DESCRIPTOR_SIZE: int = 18
_EDID_TAG_MONITOR_NAME: int = 0xFC
_EDID_PROPERTY_LONGS: int = 128


def edidMonitorName_parse(edid: bytes) -> Optional[str]:
    """
    Extract the monitor-name descriptor from an EDID base block.

    Args:
        edid: Raw EDID bytes.

    Returns:
        Monitor name, or None when the block has no name descriptor.
    """
    for offset in _EDID_DESCRIPTOR_OFFSETS:
        descriptor = edid[offset:offset + _EDID_DESCRIPTOR_SIZE]
        if len(descriptor) < _EDID_DESCRIPTOR_SIZE:
            return None
        if descriptor[0:3] != b"\x00\x00\x00" or descriptor[3] != _EDID_TAG_MONITOR_NAME:
            continue
        name = descriptor[5:].decode("cp437").split("\n", 1)[0].strip()
        return name or None
    return None


class RandrDisplayConfig:
    """
    Display-configuration provider for sessions without Mutter.

    Replies are delivered through `defer`, so callers always see the
    asynchronous contract even though the X11 round-trips are synchronous.
    """

    def __init__(self, display_manager, defer: Optional[Callable[[Callable[[], None]], None]] = None) -> None:
        """
        Initialize provider.

        Args:
            display_manager: Connected X11 display manager.
            defer: Schedules a callable on the event loop; None runs it inline.
        """
        self._display_manager = display_manager
        self._defer = defer

    def monitorConfig_query(self, callback: MonitorConfigCallback) -> None:
        """Read output names and EDID names, then deliver them."""
        try:
            entries = self.entries_read()
            error: Optional[Exception] = None
        except xerror.XError as exc:
            entries = None
            error = exc

        if self._defer is None:
            callback(entries, error)
        else:
            self._defer(lambda: callback(entries, error))

    def entries_read(self) -> list[MonitorConfigEntry]:
        """
        Build (monitor-name, connector-name) pairs for connected outputs.

        Outputs without an EDID name are reported as "Monitor on output X".
        """
        display = self._display_manager.display_get()
        root = display.screen().root
        edid_atom = display.intern_atom("EDID")

        resources = root.xrandr_get_screen_resources()
        entries: list[MonitorConfigEntry] = []
        for output in resources.outputs:
            info = display.xrandr_get_output_info(output, resources.config_timestamp)
            if info.crtc == 0:
                continue
            connector_name = outputName_decode(info.name)
            reply = display.xrandr_get_output_property(
                output, edid_atom, X.AnyPropertyType, 0, _EDID_PROPERTY_LONGS
            )
            monitor_name = edidMonitorName_parse(bytes(reply.value or b""))
            if not monitor_name:
                monitor_name = f"Monitor on output {connector_name}"
            entries.append(MonitorConfigEntry(monitor_name=monitor_name, connector_name=connector_name))
        return entries

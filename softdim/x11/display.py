"""X11 display connection and RandR monitor topology"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from Xlib import display as xdisplay
from Xlib import error as xerror
from Xlib.display import Display
from Xlib.ext import randr

from softdim.common.types import MonitorGeometry
from softdim.core.protocols import CallbackRegistry

logger = logging.getLogger(__name__)


def outputName_decode(name) -> str:
    """Normalize a RandR output name (bytes or str depending on python-xlib)"""
    if isinstance(name, bytes):
        return name.decode("utf-8", "replace")
    return str(name)


@dataclass(frozen=True)
class RandrMonitor:
    """One active RandR monitor"""
    index: int
    connector_names: tuple[str, ...]
    outputs: tuple[int, ...]
    geometry: MonitorGeometry
    primary: bool


class DisplayManager:
    """Manages X11 display connection and RandR monitor topology"""

    def __init__(self, display_name: Optional[str] = None) -> None:
        """
        Initialize display manager

        Args:
            display_name: X11 display name (e.g., ':0'), None for default
        """
        self._display: Optional[Display] = None
        self._display_name: Optional[str] = display_name
        self._monitors: list[RandrMonitor] = []
        self._monitors_changed = CallbackRegistry()

    def connection_establish(self) -> None:
        """Establish connection to X11 display"""
        self._display = xdisplay.Display(self._display_name)
        if not self._display.has_extension("RANDR"):
            logger.warning("RANDR extension not available, treating the screen as one monitor")

    def connection_close(self) -> None:
        """Close X11 display connection"""
        if self._display is not None:
            self._display.close()
            self._display = None

    def connection_sync(self) -> None:
        """Flush requests and wait for the server"""
        self.display_get().sync()

    def display_get(self) -> Display:
        """
        Get X11 display object

        Returns:
            X11 Display object

        Raises:
            RuntimeError: If not connected to display
        """
        if self._display is None:
            raise RuntimeError("Not connected to X11 display")
        return self._display

    def fileno(self) -> int:
        """File descriptor of the X11 connection, for event-loop watches"""
        return self.display_get().fileno()

    def __enter__(self) -> "DisplayManager":
        """Context manager entry"""
        self.connection_establish()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Context manager exit"""
        self.connection_close()

    # =========================================================================
    # Topology
    # =========================================================================

    def monitorInfo_query(self) -> list[RandrMonitor]:
        """
        Query active monitors from RandR 1.5

        Falls back to one monitor covering the root window when RandR
        monitors are unavailable.

        Returns:
            Monitors in logical-index order
        """
        display = self.display_get()
        root = display.screen().root

        try:
            reply = root.xrandr_get_monitors(is_active=True)
        except (xerror.XError, AttributeError) as exc:
            logger.warning("RandR monitor query failed, using root geometry: %s", exc)
            geom = root.get_geometry()
            return [
                RandrMonitor(
                    index=0,
                    connector_names=("default",),
                    outputs=(),
                    geometry=MonitorGeometry(x=0, y=0, width=geom.width, height=geom.height),
                    primary=True,
                )
            ]

        output_names = self._outputNames_get()
        monitors: list[RandrMonitor] = []
        for index, info in enumerate(reply.monitors):
            outputs = tuple(getattr(info, "crtcs", None) or getattr(info, "outputs", []))
            names = [display.get_atom_name(info.name)]
            names.extend(output_names[output] for output in outputs if output in output_names)
            monitors.append(
                RandrMonitor(
                    index=index,
                    connector_names=tuple(dict.fromkeys(names)),
                    outputs=outputs,
                    geometry=MonitorGeometry(
                        x=info.x,
                        y=info.y,
                        width=info.width_in_pixels,
                        height=info.height_in_pixels,
                    ),
                    primary=bool(info.primary),
                )
            )
        return monitors

    def _outputNames_get(self) -> dict[int, str]:
        """Map RandR output ids to connector names"""
        display = self.display_get()
        root = display.screen().root
        names: dict[int, str] = {}
        try:
            resources = root.xrandr_get_screen_resources()
            for output in resources.outputs:
                info = display.xrandr_get_output_info(output, resources.config_timestamp)
                names[output] = outputName_decode(info.name)
        except (xerror.XError, AttributeError) as exc:
            logger.debug("RandR output names unavailable: %s", exc)
        return names

    def monitors_get(self) -> list[MonitorGeometry]:
        """
        Refresh and return active monitor geometries

        Returns:
            Geometries in logical-index order
        """
        self._monitors = self.monitorInfo_query()
        return [monitor.geometry for monitor in self._monitors]

    def primaryIndex_get(self) -> int:
        """Logical index of the primary monitor (0 when none is flagged)"""
        for monitor in self._monitors:
            if monitor.primary:
                return monitor.index
        return 0

    def monitorForConnector_get(self, connector_name: str) -> int:
        """
        Look up a connector's logical monitor index

        Args:
            connector_name: Output name such as "eDP-1"

        Returns:
            Logical index, or -1 when no active monitor uses the connector
        """
        for monitor in self._monitors:
            if connector_name in monitor.connector_names:
                return monitor.index
        return -1

    # =========================================================================
    # Events
    # =========================================================================

    def monitorsChanged_connect(self, callback: Callable[[], None]) -> int:
        """Register a topology-change callback"""
        return self._monitors_changed.connect(callback)

    def monitorsChanged_disconnect(self, handler_id: int) -> None:
        """Remove a topology-change callback"""
        self._monitors_changed.disconnect(handler_id)

    def screenChangeEvents_select(self) -> None:
        """Ask the server for RandR screen-change notifications"""
        display = self.display_get()
        if not display.has_extension("RANDR"):
            return
        display.screen().root.xrandr_select_input(randr.RRScreenChangeNotifyMask)
        display.flush()

    def events_process(self) -> int:
        """
        Drain pending X11 events

        Topology callbacks fire once per batch that contains at least one
        screen-change notification.

        Returns:
            Number of events drained
        """
        display = self.display_get()
        screen_change_type = getattr(display.extension_event, "ScreenChangeNotify", None)
        drained = 0
        topology_changed = False
        while display.pending_events():
            event = display.next_event()
            drained += 1
            if screen_change_type is not None and event.type == screen_change_type:
                topology_changed = True

        if topology_changed:
            logger.info("Monitor topology changed")
            self._monitors_changed.emit()
        return drained

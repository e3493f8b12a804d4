"""softdim daemon main entry point"""

import argparse
import logging
import signal
import sys
from typing import Callable, Optional

import gi
import yaml

gi.require_version("Gio", "2.0")
gi.require_version("GLib", "2.0")
from gi.repository import Gio, GLib  # noqa: E402

from softdim import __version__  # noqa: E402
from softdim.common.runtime_models import DaemonComponents  # noqa: E402
from softdim.common.settings_store import SettingsStore  # noqa: E402
from softdim.daemon.bootstrap import (  # noqa: E402
    configWithSettings_load,
    daemonComponents_create,
    loggingWithConfig_setup,
    settingsStore_open,
)
from softdim.daemon.daemon_logging import logging_setup  # noqa: E402
from softdim.x11.display import DisplayManager  # noqa: E402

logger = logging.getLogger(__name__)


def idle_defer(callback: Callable[[], None]) -> None:
    """
    Run callback once on the next main-loop iteration

    Args:
        callback: Zero-argument callable
    """
    def _once() -> bool:
        callback()
        return GLib.SOURCE_REMOVE

    GLib.idle_add(_once)


def x11Events_onReadable(_fd: int, _condition: int, display_manager: DisplayManager) -> bool:
    """
    Drain X11 events when the connection becomes readable

    Returns:
        True to keep the watch installed
    """
    display_manager.events_process()
    return GLib.SOURCE_CONTINUE


def stateFileMonitor_create(store: SettingsStore) -> Optional[Gio.FileMonitor]:
    """
    Watch the state file so external writes reach the running daemon

    Args:
        store: Settings store backed by the state file

    Returns:
        File monitor, or None for an in-memory store
    """
    if store.state_path is None:
        return None

    def _onChanged(
        _monitor: Gio.FileMonitor,
        _file: Gio.File,
        _other_file: Optional[Gio.File],
        event_type: Gio.FileMonitorEvent,
    ) -> None:
        if event_type not in (Gio.FileMonitorEvent.CHANGES_DONE_HINT, Gio.FileMonitorEvent.CREATED):
            return
        try:
            changed = store.file_reload()
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Cannot reload settings from %s: %s", store.state_path, exc)
            return
        if changed:
            logger.info("Settings reloaded: %s", ", ".join(changed))

    monitor = Gio.File.new_for_path(str(store.state_path)).monitor_file(Gio.FileMonitorFlags.NONE, None)
    monitor.connect("changed", _onChanged)
    return monitor


def loop_quit(loop: GLib.MainLoop) -> bool:
    """Stop the main loop from a signal handler"""
    logger.info("Shutting down...")
    loop.quit()
    return GLib.SOURCE_CONTINUE


def components_shutdown(components: DaemonComponents) -> None:
    """
    Tear down in reverse wiring order

    Args:
        components: Wired daemon components
    """
    components.controller.disable()
    if components.backlight is not None:
        components.backlight.connection_close()
    if components.display_config is not None and hasattr(components.display_config, "connection_close"):
        components.display_config.connection_close()
    try:
        components.display_manager.connection_sync()
    except Exception as exc:
        logger.debug("Final X11 sync failed: %s", exc)


def daemon_run(args: argparse.Namespace) -> None:
    """
    Run the daemon until SIGINT or SIGTERM

    Args:
        args: Parsed CLI args
    """
    config = configWithSettings_load(args)
    base_log_level = loggingWithConfig_setup(args, config, logging_setup)
    logger.info("softdim %s starting", __version__)

    try:
        store = settingsStore_open(config)
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Cannot open settings state file %s: %s", config.state_file, exc)
        sys.exit(1)

    display_manager = DisplayManager(config.display)
    try:
        display_manager.connection_establish()
    except Exception as exc:
        logger.error("Cannot open X11 display %s: %s", config.display or "(default)", exc)
        sys.exit(1)

    loop = GLib.MainLoop()
    watch_ids: list[int] = []
    file_monitor: Optional[Gio.FileMonitor] = None
    components: Optional[DaemonComponents] = None
    try:
        components = daemonComponents_create(
            config=config,
            store=store,
            display_manager=display_manager,
            defer=idle_defer,
            base_log_level=base_log_level,
        )
        display_manager.screenChangeEvents_select()
        watch_ids.append(
            GLib.io_add_watch(
                display_manager.fileno(),
                GLib.PRIORITY_DEFAULT,
                GLib.IO_IN,
                x11Events_onReadable,
                display_manager,
            )
        )
        file_monitor = stateFileMonitor_create(store)
        for signum in (signal.SIGINT, signal.SIGTERM):
            watch_ids.append(GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signum, loop_quit, loop))

        components.controller.enable()
        display_manager.events_process()
        loop.run()
    finally:
        if components is not None:
            components_shutdown(components)
        if file_monitor is not None:
            file_monitor.cancel()
        for watch_id in watch_ids:
            GLib.source_remove(watch_id)
        display_manager.connection_close()
        logger.info("softdim stopped")

"""Daemon bootstrap helpers for config, logging, and collaborator wiring."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from softdim.common.config import Config, ConfigLoader
from softdim.common.runtime_models import DaemonComponents
from softdim.common.settings import settings
from softdim.common.settings_store import SettingsStore
from softdim.core import (
    BrightnessController,
    BrightnessSource,
    MonitorRegistry,
    OverlayManager,
    UnredirectGuard,
)
from softdim.x11.display import DisplayManager
from softdim.x11.surface_layer import X11SurfaceLayer

logger = logging.getLogger(__name__)

Defer = Callable[[Callable[[], None]], None]


def configWithSettings_load(args: argparse.Namespace) -> Config:
    """
    Load configuration and initialize settings singleton.

    Args:
        args: Parsed CLI args.

    Returns:
        Loaded config.
    """
    config_path: Path | None = Path(args.config) if args.config else None
    try:
        config: Config = ConfigLoader.configWithOverrides_load(
            file_path=config_path,
            display=getattr(args, "display", None),
            state_file=getattr(args, "state_file", None),
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Create a config.yml file or specify path with --config", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)
    settings.initialize(config)
    return config


def loggingWithConfig_setup(
    args: argparse.Namespace, config: Config, logging_setup_func
) -> int:
    """
    Setup logging from config and CLI override.

    Args:
        args: Parsed CLI args.
        config: Loaded config.
        logging_setup_func: Logging setup callback.

    Returns:
        Numeric base log level.
    """
    log_level: str = getattr(args, "log_level", None) or config.logging.level
    return logging_setup_func(log_level, config.logging.format, config.logging.file)


def settingsStore_open(config: Config) -> SettingsStore:
    """
    Create the settings store and load its state file.

    Args:
        config: Loaded config.

    Returns:
        Store holding persisted values over config defaults.
    """
    store = SettingsStore(Path(config.state_file), defaults=config.defaults)
    store.state_load()
    logger.debug("Settings store loaded from %s", store.state_path)
    return store


def displayConfigProvider_create(
    config: Config, display_manager: DisplayManager, defer: Optional[Defer]
):
    """
    Create the configured monitor-name provider.

    Args:
        config: Loaded config.
        display_manager: Connected display manager.
        defer: Event-loop scheduler for the RandR provider.

    Returns:
        Display-configuration provider.
    """
    provider: str = config.display_config.provider.lower()
    if provider == "gnome":
        from softdim.gnome.display_config import MutterDisplayConfig

        display_config = MutterDisplayConfig()
        display_config.connection_start()
        logger.info("Monitor names: Mutter DisplayConfig")
        return display_config

    if provider == "randr":
        from softdim.x11.randr_config import RandrDisplayConfig

        logger.info("Monitor names: RandR EDID")
        return RandrDisplayConfig(display_manager, defer=defer)

    raise ValueError(f"Unsupported display_config.provider '{provider}'. Supported: gnome, randr.")


def backlightProxy_create(config: Config):
    """
    Create and start the backlight proxy when enabled.

    Returns:
        Backlight proxy, or None when disabled in config.
    """
    if not config.backlight.enabled:
        logger.info("Backlight proxy disabled in config")
        return None

    from softdim.gnome.backlight import GsdBacklightProxy

    backlight = GsdBacklightProxy()
    backlight.connection_start()
    return backlight


def daemonComponents_create(
    config: Config,
    store: SettingsStore,
    display_manager: DisplayManager,
    defer: Optional[Defer],
    base_log_level: int,
) -> DaemonComponents:
    """
    Wire the brightness core to its X11 and D-Bus collaborators.

    Args:
        config: Loaded config.
        store: Opened settings store.
        display_manager: Connected display manager.
        defer: Event-loop scheduler.
        base_log_level: Log level used when the debug setting is off.

    Returns:
        Wired components; the controller is not yet enabled.
    """
    surface_layer = X11SurfaceLayer(display_manager)
    display_config = displayConfigProvider_create(config, display_manager, defer)
    backlight = backlightProxy_create(config)

    source = BrightnessSource(store, backlight)
    registry = MonitorRegistry(display_manager, display_config)
    controller = BrightnessController(
        store=store,
        source=source,
        registry=registry,
        overlays=OverlayManager(surface_layer),
        guard=UnredirectGuard(surface_layer),
        topology=display_manager,
        backlight=backlight,
        base_log_level=base_log_level,
    )
    return DaemonComponents(
        store=store,
        display_manager=display_manager,
        surface_layer=surface_layer,
        display_config=display_config,
        backlight=backlight,
        controller=controller,
    )

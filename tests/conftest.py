"""Pytest configuration and shared fixtures for softdim tests

This module provides common fixtures and in-memory collaborators for the
brightness core: a recording surface layer, a scripted topology, a manual
display-configuration provider, a backlight stand-in and a slider.
"""

import logging
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from softdim.common.config import Config, ConfigLoader
from softdim.common.settings import settings
from softdim.common.settings_store import SettingsStore
from softdim.common.types import MonitorConfigEntry, MonitorGeometry
from softdim.core import (
    BrightnessController,
    BrightnessSource,
    MonitorRegistry,
    OverlayManager,
    UnredirectGuard,
)
from softdim.core.protocols import CallbackRegistry, MonitorConfigCallback


class FakeSurfaceLayer:
    """Records every surface and unredirect call"""

    def __init__(self) -> None:
        self.live: list[int] = []
        self.created: list[MonitorGeometry] = []
        self.destroyed: list[int] = []
        self.opacity: dict[int, int] = {}
        self.unredirect_calls: list[str] = []
        self._next_id = 1

    def surface_create(self, geometry: MonitorGeometry) -> int:
        surface = self._next_id
        self._next_id += 1
        self.created.append(geometry)
        self.live.append(surface)
        self.opacity[surface] = 0
        return surface

    def surface_destroy(self, surface: int) -> None:
        self.live.remove(surface)
        self.destroyed.append(surface)
        self.opacity.pop(surface, None)

    def surfaceOpacity_set(self, surface: int, opacity: int) -> None:
        self.opacity[surface] = opacity

    def unredirect_disable(self) -> None:
        self.unredirect_calls.append("disable")

    def unredirect_enable(self) -> None:
        self.unredirect_calls.append("enable")

    def liveOpacities_get(self) -> list[int]:
        return [self.opacity[surface] for surface in self.live]


class FakeTopology:
    """Scripted monitor topology"""

    def __init__(self, monitors: list[tuple[str, MonitorGeometry]], primary: int = 0) -> None:
        self.monitors = monitors
        self.primary = primary
        self.changed = CallbackRegistry()

    def monitors_get(self) -> list[MonitorGeometry]:
        return [geometry for _connector, geometry in self.monitors]

    def primaryIndex_get(self) -> int:
        return self.primary

    def monitorForConnector_get(self, connector_name: str) -> int:
        for index, (connector, _geometry) in enumerate(self.monitors):
            if connector == connector_name:
                return index
        return -1

    def monitorsChanged_connect(self, callback: Callable[[], None]) -> int:
        return self.changed.connect(callback)

    def monitorsChanged_disconnect(self, handler_id: int) -> None:
        self.changed.disconnect(handler_id)


class ManualDisplayConfig:
    """Holds queries until the test answers them"""

    def __init__(self, entries: Optional[list[MonitorConfigEntry]] = None) -> None:
        self.entries = entries or []
        self.pending: list[MonitorConfigCallback] = []

    def monitorConfig_query(self, callback: MonitorConfigCallback) -> None:
        self.pending.append(callback)

    def reply(self, index: int = -1) -> None:
        callback = self.pending.pop(index)
        callback(list(self.entries), None)

    def fail(self, error: Exception) -> None:
        callback = self.pending.pop()
        callback(None, error)


class FakeBacklight:
    """Backlight proxy whose writes echo back as property changes"""

    def __init__(self, percent: Optional[int] = 50, echo: bool = True) -> None:
        self.percent = percent
        self.echo = echo
        self.writes: list[int] = []
        self.changed = CallbackRegistry()

    def brightness_get(self) -> Optional[int]:
        return self.percent

    def brightness_set(self, percent: int) -> None:
        self.writes.append(percent)
        self.percent = percent
        if self.echo:
            self.changed.emit()

    def changed_connect(self, callback: Callable[[], None]) -> int:
        return self.changed.connect(callback)

    def changed_disconnect(self, handler_id: int) -> None:
        self.changed.disconnect(handler_id)


class FakeSlider:
    """Remembers every mirrored value"""

    def __init__(self) -> None:
        self.values: list[float] = []

    def value_set(self, level: float) -> None:
        self.values.append(level)


LAPTOP = MonitorGeometry(x=0, y=0, width=1920, height=1080)
EXTERNAL = MonitorGeometry(x=1920, y=0, width=2560, height=1440)


@pytest.fixture(scope="session")
def test_config_path() -> Path:
    """Path to sample configuration file"""
    return Path(__file__).parent.parent / "config.yml"


@pytest.fixture
def sample_config(test_config_path: Path) -> Config:
    """Load sample configuration for testing

    Returns:
        Config object with sample values
    """
    if not test_config_path.exists():
        pytest.skip("config.yml not found - required for this test")
    return ConfigLoader.config_load(test_config_path)


@pytest.fixture
def reset_settings() -> Generator[None, None, None]:
    """Reset settings singleton between tests"""
    settings._config = None
    yield
    settings._config = None


@pytest.fixture(autouse=True)
def setup_logging(caplog) -> Generator[None, None, None]:
    """Capture debug logs and undo package level changes made by a test"""
    caplog.set_level(logging.DEBUG)
    yield
    logging.getLogger("softdim").setLevel(logging.NOTSET)


@pytest.fixture
def store() -> SettingsStore:
    """In-memory settings store with schema defaults"""
    return SettingsStore()


@pytest.fixture
def surface_layer() -> FakeSurfaceLayer:
    return FakeSurfaceLayer()


@pytest.fixture
def topology() -> FakeTopology:
    """Laptop panel (primary) plus one external monitor"""
    return FakeTopology([("eDP-1", LAPTOP), ("HDMI-1", EXTERNAL)], primary=0)


@pytest.fixture
def display_config() -> ManualDisplayConfig:
    return ManualDisplayConfig(
        [
            MonitorConfigEntry(monitor_name="Built-in display", connector_name="eDP-1"),
            MonitorConfigEntry(monitor_name="DELL U2720Q", connector_name="HDMI-1"),
        ]
    )


@pytest.fixture
def slider() -> FakeSlider:
    return FakeSlider()


@pytest.fixture
def controller_factory(store, surface_layer, topology, display_config, slider):
    """Build a controller over the shared fakes, optionally with a backlight"""

    def _build(backlight: Optional[FakeBacklight] = None) -> BrightnessController:
        registry = MonitorRegistry(topology, display_config)
        return BrightnessController(
            store=store,
            source=BrightnessSource(store, backlight),
            registry=registry,
            overlays=OverlayManager(surface_layer),
            guard=UnredirectGuard(surface_layer),
            topology=topology,
            backlight=backlight,
            slider=slider,
        )

    return _build


# Markers for test organization
def pytest_configure(config) -> None:
    """Register custom pytest markers used by this test suite."""
    config.addinivalue_line("markers", "requires_x11: mark test as requiring X11 display")

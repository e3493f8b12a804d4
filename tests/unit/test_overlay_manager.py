"""Unit tests for overlay set ownership"""

from conftest import EXTERNAL, LAPTOP
from softdim.common.types import MonitorDescriptor
from softdim.core.overlay_manager import OverlayManager

MONITORS = [
    MonitorDescriptor(index=0, geometry=LAPTOP, name="Built-in display"),
    MonitorDescriptor(index=1, geometry=EXTERNAL, name="DELL U2720Q"),
]


class TestOverlayManager:
    """Test create, repaint and clear"""

    def test_ensure_creates_one_per_monitor_at_geometry(self, surface_layer):
        overlays = OverlayManager(surface_layer)

        overlays.overlays_ensure(MONITORS, force_recreate=False)

        assert overlays.overlays_isPresent() is True
        assert overlays.overlays_count() == 2
        assert surface_layer.created == [LAPTOP, EXTERNAL]

    def test_ensure_is_noop_when_present(self, surface_layer):
        overlays = OverlayManager(surface_layer)
        overlays.overlays_ensure(MONITORS, force_recreate=False)

        overlays.overlays_ensure(MONITORS[:1], force_recreate=False)

        assert overlays.overlays_count() == 2
        assert len(surface_layer.created) == 2

    def test_force_recreates(self, surface_layer):
        overlays = OverlayManager(surface_layer)
        overlays.overlays_ensure(MONITORS, force_recreate=False)

        overlays.overlays_ensure(MONITORS[1:], force_recreate=True)

        assert overlays.overlays_count() == 1
        assert surface_layer.destroyed == [1, 2]
        assert surface_layer.created[-1] == EXTERNAL

    def test_empty_selection_is_a_present_empty_set(self, surface_layer):
        overlays = OverlayManager(surface_layer)

        overlays.overlays_ensure([], force_recreate=True)
        overlays.opacity_set(100)

        assert overlays.overlays_isPresent() is True
        assert overlays.overlays_count() == 0
        assert overlays.opacity is None

    def test_opacity_applies_to_all_and_clamps(self, surface_layer):
        overlays = OverlayManager(surface_layer)
        overlays.overlays_ensure(MONITORS, force_recreate=False)

        overlays.opacity_set(128)
        assert surface_layer.liveOpacities_get() == [128, 128]

        overlays.opacity_set(300)
        assert surface_layer.liveOpacities_get() == [255, 255]
        assert overlays.opacity == 255

    def test_clear(self, surface_layer):
        overlays = OverlayManager(surface_layer)
        overlays.overlays_ensure(MONITORS, force_recreate=False)
        overlays.opacity_set(10)

        overlays.overlays_clear()
        overlays.overlays_clear()

        assert overlays.overlays_isPresent() is False
        assert overlays.opacity is None
        assert surface_layer.live == []

"""Unit tests for X11 overlay windows"""

from unittest.mock import Mock

import pytest
from Xlib import Xatom

from softdim.common.types import MonitorGeometry
from softdim.x11.surface_layer import X11SurfaceLayer

ATOMS = {"_NET_WM_WINDOW_OPACITY": 301, "_NET_WM_BYPASS_COMPOSITOR": 302}


@pytest.fixture
def display():
    display = Mock()
    display.get_atom.side_effect = lambda name: ATOMS[name]
    display.has_extension.return_value = True
    display.screen.return_value.root.create_window.side_effect = lambda *args, **kwargs: Mock()
    return display


@pytest.fixture
def layer(display):
    manager = Mock()
    manager.display_get.return_value = display
    return X11SurfaceLayer(manager)


def property_values(window, atom):
    return [c.args[3] for c in window.change_property.call_args_list if c.args[0] == atom]


class TestSurfaceCreate:
    """Test overlay window creation"""

    def test_window_covers_geometry_and_is_override_redirect(self, layer, display):
        window = layer.surface_create(MonitorGeometry(1920, 0, 2560, 1440))

        args, kwargs = display.screen.return_value.root.create_window.call_args
        assert args[:4] == (1920, 0, 2560, 1440)
        assert kwargs["override_redirect"] is True
        window.map.assert_called_once()
        window.set_wm_name.assert_called_once_with("softdim-overlay")

    def test_window_is_click_through(self, layer):
        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))

        window.shape_rectangles.assert_called_once()
        assert window.shape_rectangles.call_args.args[-1] == []

    def test_created_transparent(self, layer):
        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))
        assert property_values(window, ATOMS["_NET_WM_WINDOW_OPACITY"]) == [[0]]

    def test_no_shape_extension_still_creates(self, layer, display, caplog):
        display.has_extension.return_value = False

        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))

        window.shape_rectangles.assert_not_called()
        assert "SHAPE extension not available" in caplog.text


class TestSurfaceOpacity:
    """Test _NET_WM_WINDOW_OPACITY scaling"""

    @pytest.mark.parametrize("opacity,expected", [(255, 0xFFFFFFFF), (0, 0), (128, int(0xFFFFFFFF * (128 / 255.0)))])
    def test_opacity_scaled(self, layer, opacity, expected):
        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))

        layer.surfaceOpacity_set(window, opacity)

        call = window.change_property.call_args
        assert call.args[:3] == (ATOMS["_NET_WM_WINDOW_OPACITY"], Xatom.CARDINAL, 32)
        assert call.args[3] == [expected]


class TestUnredirect:
    """Test _NET_WM_BYPASS_COMPOSITOR handling"""

    def test_disable_marks_live_windows(self, layer):
        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))

        layer.unredirect_disable()

        assert layer.unredirect_disabled is True
        assert property_values(window, ATOMS["_NET_WM_BYPASS_COMPOSITOR"])[-1] == [2]

    def test_new_windows_follow_state(self, layer):
        layer.unredirect_disable()

        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))

        assert property_values(window, ATOMS["_NET_WM_BYPASS_COMPOSITOR"]) == [[2]]

    def test_enable_clears(self, layer):
        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))
        layer.unredirect_disable()

        layer.unredirect_enable()

        assert property_values(window, ATOMS["_NET_WM_BYPASS_COMPOSITOR"])[-1] == [0]

    def test_destroyed_windows_not_touched(self, layer):
        window = layer.surface_create(MonitorGeometry(0, 0, 800, 600))
        layer.surface_destroy(window)
        window.change_property.reset_mock()

        layer.unredirect_disable()

        window.destroy.assert_called_once()
        window.change_property.assert_not_called()

"""Unit tests for Mutter GetResources parsing"""

import pytest

pytest.importorskip("gi")

from softdim.common.types import MonitorConfigEntry  # noqa: E402
from softdim.gnome.display_config import resources_parse  # noqa: E402


def output_build(connector, properties):
    # (id, winsys_id, crtc, clones, name, modes, clones, properties)
    return (0, 0, 0, [], connector, [], [], properties)


class TestResourcesParse:
    """Test (monitor-name, connector-name) extraction"""

    def test_display_names(self):
        resources = (
            1,
            [],
            [
                output_build("eDP-1", {"display-name": "Built-in display"}),
                output_build("HDMI-1", {"display-name": "DELL U2720Q"}),
            ],
            [],
            8192,
            8192,
        )

        assert resources_parse(resources) == [
            MonitorConfigEntry("Built-in display", "eDP-1"),
            MonitorConfigEntry("DELL U2720Q", "HDMI-1"),
        ]

    def test_missing_display_name_falls_back(self):
        resources = (1, [], [output_build("DP-2", {})], [], 0, 0)
        assert resources_parse(resources) == [MonitorConfigEntry("Monitor on output DP-2", "DP-2")]

    def test_no_outputs_raises(self):
        with pytest.raises(ValueError, match="No outputs"):
            resources_parse((1, []))

    def test_short_output_raises(self):
        with pytest.raises(ValueError, match="No properties on output #0"):
            resources_parse((1, [], [(0, 0, 0, [], "eDP-1")], [], 0, 0))

"""Unit tests for settings singleton"""

import pytest
from softdim.common.config import ConfigLoader
from softdim.common.settings import Settings, settings


class TestSettingsSingleton:
    """Test Settings singleton pattern"""

    def test_singleton_same_instance(self, reset_settings):
        """Test that Settings() returns same instance"""
        s1 = Settings()
        s2 = Settings()
        assert s1 is s2

    def test_global_settings_is_singleton(self, reset_settings):
        """Test that global 'settings' is the singleton"""
        s = Settings()
        assert settings is s


class TestSettingsConstants:
    """Test that all constants are accessible"""

    def test_brightness_constants(self):
        """Backlight scaling constants"""
        assert settings.FULL_BRIGHTNESS == 1.0
        assert settings.BACKLIGHT_PERCENT_MAX == 100
        assert settings.BACKLIGHT_ROUNDING_BIAS == 1

    def test_overlay_constants(self):
        """Overlay opacity constants"""
        assert settings.OPACITY_MAX == 255
        assert settings.X11_OPACITY_MAX == 0xFFFFFFFF
        assert settings.OVERLAY_WINDOW_NAME == "softdim-overlay"


class TestSettingsInitialization:
    """Test settings initialization with config"""

    def test_initialize_with_config(self, reset_settings, sample_config):
        """Test settings can be initialized with config"""
        settings.initialize(sample_config)

        config = settings.config
        assert config is sample_config

    def test_config_property_before_init_raises(self, reset_settings):
        """Test accessing config before initialization raises error"""
        with pytest.raises(RuntimeError, match="Settings not initialized"):
            _ = settings.config

    def test_initialize_multiple_times(self, reset_settings):
        """Later initialization replaces the config"""
        first = ConfigLoader.config_parse({"display": ":0"})
        second = ConfigLoader.config_parse({"display": ":1"})

        settings.initialize(first)
        settings.initialize(second)

        assert settings.config.display == ":1"

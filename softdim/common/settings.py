"""Application settings singleton - single source of truth for constants

This module provides a singleton Settings class that consolidates:
1. Brightness and opacity scaling constants
2. Runtime configuration from config.yml

Usage:
    from softdim.common.settings import settings

    # Initialize once at startup with loaded config
    config = ConfigLoader.config_load()
    settings.initialize(config)

    # Use anywhere in the application
    opacity = (settings.FULL_BRIGHTNESS - level) * settings.OPACITY_MAX
"""

from typing import Optional

from softdim.common.config import Config


class Settings:
    """Singleton settings manager combining config.yml and scaling constants

    This class provides:
    - Constants shared by the brightness source and the overlay manager
    - Access to runtime configuration loaded from config.yml

    The singleton pattern ensures all parts of the application use the same
    configuration values and constants.
    """

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._config: Optional[Config] = None

    def initialize(self, config: Config) -> None:
        """
        Initialize with loaded configuration

        Args:
            config: Loaded configuration
        """
        self._config = config

    # =========================================================================
    # Brightness Constants
    # =========================================================================

    FULL_BRIGHTNESS: float = 1.0
    """Brightness level at and above which no overlay is shown"""

    BACKLIGHT_PERCENT_MAX: int = 100
    """Upper bound of the backlight proxy's integer percentage"""

    BACKLIGHT_ROUNDING_BIAS: int = 1
    """Added to the rounded percentage on backlight writes

    Biases the hardware value upward so a near-zero level is not clamped to
    a visually black backlight while the overlay is also near-transparent.
    """

    # =========================================================================
    # Overlay Constants
    # =========================================================================

    OPACITY_MAX: int = 255
    """Overlay opacity byte for a fully black overlay"""

    X11_OPACITY_MAX: int = 0xFFFFFFFF
    """Full-scale value of the _NET_WM_WINDOW_OPACITY cardinal"""

    OVERLAY_WINDOW_NAME: str = "softdim-overlay"
    """WM_NAME set on overlay windows"""

    # =========================================================================
    # Runtime Configuration Access
    # =========================================================================

    @property
    def config(self) -> Config:
        """
        Get loaded configuration object

        Raises:
            RuntimeError: If initialize() has not been called
        """
        if self._config is None:
            raise RuntimeError("Settings not initialized. Call settings.initialize(config) first.")
        return self._config


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from softdim.common.settings import settings
"""

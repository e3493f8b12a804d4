"""Configuration file loading and management"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_STATE_FILE = "~/.local/state/softdim/settings.yml"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class DisplayConfigProviderConfig:
    """Where monitor names come from"""
    provider: str  # "gnome" (Mutter D-Bus) or "randr" (EDID)


@dataclass
class BacklightConfig:
    """Backlight proxy settings"""
    enabled: bool


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str
    file: Optional[str]
    format: str


@dataclass
class Config:
    """Complete application configuration"""
    display: Optional[str]
    state_file: str
    display_config: DisplayConfigProviderConfig
    backlight: BacklightConfig
    logging: LoggingConfig
    defaults: Dict[str, Any] = field(default_factory=dict)


class ConfigLoader:
    """Loads and parses configuration from YAML files"""

    DEFAULT_CONFIG_PATHS = [
        "config.yml",
        "~/.config/softdim/config.yml",
        "/etc/softdim/config.yml",
    ]

    SUPPORTED_PROVIDERS = ("gnome", "randr")

    @staticmethod
    def configFile_find() -> Optional[Path]:
        """
        Find configuration file in standard locations

        Returns:
            Path to config file, or None if not found
        """
        for config_path in ConfigLoader.DEFAULT_CONFIG_PATHS:
            path = Path(config_path).expanduser().resolve()
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> Config:
        """
        Parse configuration dictionary into Config object

        Every section is optional; missing keys take defaults.

        Args:
            data: Raw configuration dictionary

        Returns:
            Parsed Config object

        Raises:
            ValueError: If a value is out of its allowed set
        """
        provider_data = data.get("display_config") or {}
        provider = str(provider_data.get("provider", "gnome")).lower()
        if provider not in ConfigLoader.SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported display_config.provider '{provider}'. "
                f"Supported: {', '.join(ConfigLoader.SUPPORTED_PROVIDERS)}."
            )

        backlight_data = data.get("backlight") or {}
        backlight = BacklightConfig(enabled=bool(backlight_data.get("enabled", True)))

        logging_data = data.get("logging") or {}
        logging = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            file=logging_data.get("file"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
        )

        defaults = data.get("defaults") or {}
        if not isinstance(defaults, dict):
            raise ValueError("Config section 'defaults' must be a dictionary")

        return Config(
            display=data.get("display"),
            state_file=data.get("state_file") or DEFAULT_STATE_FILE,
            display_config=DisplayConfigProviderConfig(provider=provider),
            backlight=backlight,
            logging=logging,
            defaults=dict(defaults),
        )

    @staticmethod
    def config_load(file_path: Optional[Path] = None) -> Config:
        """
        Load configuration from file

        Args:
            file_path: Optional path to config file. If None, searches standard locations.

        Returns:
            Parsed Config object

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if file_path is None:
            file_path = ConfigLoader.configFile_find()
            if file_path is None:
                raise FileNotFoundError(
                    f"Config file not found in standard locations: "
                    f"{ConfigLoader.DEFAULT_CONFIG_PATHS}"
                )

        data = ConfigLoader.yaml_load(file_path)
        return ConfigLoader.config_parse(data)

    @staticmethod
    def configWithOverrides_load(
        file_path: Optional[Path] = None,
        **overrides: Any
    ) -> Config:
        """
        Load configuration and apply command-line overrides

        When no file is given and none is found in the standard locations,
        an all-defaults configuration is used instead.

        Args:
            file_path: Optional path to config file
            **overrides: Key-value pairs to override config values

        Returns:
            Config object with overrides applied

        Example:
            config = ConfigLoader.configWithOverrides_load(display=":1")
        """
        if file_path is None and ConfigLoader.configFile_find() is None:
            config = ConfigLoader.config_parse({})
        else:
            config = ConfigLoader.config_load(file_path)

        if overrides.get("display") is not None:
            config.display = overrides["display"]
        if overrides.get("state_file") is not None:
            config.state_file = overrides["state_file"]
        if overrides.get("provider") is not None:
            config.display_config.provider = overrides["provider"]

        return config

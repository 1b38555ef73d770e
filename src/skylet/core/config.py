"""
Configuration management for skylet.
Loads configuration from YAML files and environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.skylet.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SKYLET_"


@dataclass
class AppConfig:
    """Application configuration."""

    APP_NAME: str = "skylet"
    APP_VERSION: str = "0.3.0"
    APP_ENV: str = "development"
    APP_NODE_NAME: str = "skylet-node"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE_PATH: str = "logs/skylet.log"
    LOG_FILE_MAX_BYTES: int = 10485760
    LOG_FILE_BACKUP_COUNT: int = 5
    LOG_ENABLE_CONSOLE: bool = True
    LOG_ENABLE_FILE: bool = False
    LOG_ENABLE_JOURNAL: bool = False


@dataclass
class FlightConfig:
    """Flight lifecycle timings and behaviour."""

    FLIGHT_DURATION_S: float = 30.0
    FLIGHT_TAKEOFF_GRACE_S: float = 3.0
    FLIGHT_LANDING_GRACE_S: float = 5.0
    FLIGHT_HALT_SETTLE_S: float = 3.0
    FLIGHT_RECONNECT_DELAY_S: float = 5.0
    FLIGHT_COMMAND_TIMEOUT_S: float = 2.0
    FLIGHT_AUTO_RESTART: bool = True
    FLIGHT_HISTORY_SIZE: int = 100
    FLIGHT_SHUTDOWN_TIMEOUT_S: float = 60.0
    FLIGHT_FLIP_DIRECTION: str = "back"


@dataclass
class WatchdogConfig:
    """Connection watchdog configuration."""

    WATCHDOG_ENABLED: bool = True
    WATCHDOG_INTERVAL_S: float = 5.0


@dataclass
class VehicleConfig:
    """Vehicle driver configuration."""

    VEHICLE_DRIVER: str = "mock"
    VEHICLE_MOCK_CONNECT_DELAY_S: float = 0.5
    VEHICLE_MOCK_TELEMETRY_INTERVAL_S: float = 1.0
    VEHICLE_MOCK_CRUISE_HEIGHT: int = 10
    VEHICLE_MOCK_BATTERY_PERCENT: int = 100


@dataclass
class Config:
    """Main configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    flight: FlightConfig = field(default_factory=FlightConfig)
    watchdog: WatchdogConfig = field(default_factory=WatchdogConfig)
    vehicle: VehicleConfig = field(default_factory=VehicleConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "app": self.app.__dict__,
            "logging": self.logging.__dict__,
            "flight": self.flight.__dict__,
            "watchdog": self.watchdog.__dict__,
            "vehicle": self.vehicle.__dict__,
        }


class ConfigLoader:
    """Configuration loader that handles YAML files and environment variables."""

    def __init__(self, config_path: str | Path | None = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to configuration file. Defaults to profile-based selection.
        """
        if config_path is None:
            # Project root is three levels up from this file
            project_root = Path(__file__).parent.parent.parent.parent

            profile = os.getenv(f"{ENV_PREFIX}CONFIG_PROFILE", "default")
            if profile in ["development", "dev"]:
                config_file = "development.yaml"
            elif profile in ["production", "prod"]:
                config_file = "production.yaml"
            else:
                config_file = "default.yaml"

            self.config_path = project_root / "config" / config_file
            logger.info(f"Selected configuration profile: {profile} -> {config_file}")
        else:
            self.config_path = Path(config_path)
        self.config = Config()

    def load(self) -> Config:
        """
        Load configuration from file and environment variables.

        Environment variables override file configuration.

        Returns:
            Loaded configuration object

        Raises:
            ConfigurationError: If the file is unreadable or fails validation
        """
        config_data = self._load_with_inheritance()

        if config_data:
            from src.skylet.core.config_validator import ConfigValidator

            validator = ConfigValidator()
            is_valid, errors = validator.validate_config_dict(config_data)
            if not is_valid:
                error_msg = "Configuration validation failed:\n" + "\n".join(
                    f"  - {error}" for error in errors
                )
                logger.error(f"Failed to load configuration from {self.config_path}")
                raise ConfigurationError(error_msg)

            self._apply_yaml_config(config_data)
            logger.info(f"Loaded and validated configuration from {self.config_path}")
        else:
            logger.warning(f"Configuration file {self.config_path} not found, using defaults")

        self._apply_env_overrides()
        self._validate_config()

        return self.config

    def _load_with_inheritance(self) -> dict[str, Any] | None:
        """
        Load configuration with inheritance from default.yaml.

        Returns:
            Merged configuration dictionary or None if file not found
        """
        if not self.config_path.exists():
            return None

        config_data = self._read_yaml(self.config_path)

        if self.config_path.name != "default.yaml":
            base_config_path = self.config_path.parent / "default.yaml"
            if base_config_path.exists():
                base_config = self._read_yaml(base_config_path)
                # Profile-specific settings override base settings
                logger.info(f"Inherited base configuration from {base_config_path}")
                return {**base_config, **config_data}

        return config_data

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML syntax error in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        return data

    def _section_for_key(self, key: str) -> Any | None:
        """Map a flat configuration key to its section by prefix."""
        if key.startswith("APP_"):
            return self.config.app
        elif key.startswith("LOG_"):
            return self.config.logging
        elif key.startswith("FLIGHT_"):
            return self.config.flight
        elif key.startswith("WATCHDOG_"):
            return self.config.watchdog
        elif key.startswith("VEHICLE_"):
            return self.config.vehicle
        return None

    def _apply_yaml_config(self, yaml_config: dict[str, Any]) -> None:
        """Apply configuration from YAML dictionary with proper type conversion."""
        for key, value in yaml_config.items():
            section = self._section_for_key(key)
            if section is None:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            self._set_config_value(section, key, str(value))

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            config_key = env_key[len(ENV_PREFIX) :]
            section = self._section_for_key(config_key)
            if section is not None:
                self._set_config_value(section, config_key, env_value)

    def _set_config_value(self, config_section: Any, key: str, value: str) -> None:
        """
        Set configuration value with appropriate type conversion.

        Args:
            config_section: Configuration section object
            key: Configuration key
            value: String value from YAML or environment
        """
        if not hasattr(config_section, key):
            logger.warning(f"Unknown configuration key: {key}")
            return

        current_value = getattr(config_section, key)

        converted_value: Any
        if isinstance(current_value, bool):
            converted_value = value.lower() in ("true", "1", "yes", "on")
        elif isinstance(current_value, int):
            try:
                converted_value = int(value)
            except ValueError:
                logger.error(f"Invalid integer value for {key}: {value}")
                return
        elif isinstance(current_value, float):
            try:
                converted_value = float(value)
            except ValueError:
                logger.error(f"Invalid float value for {key}: {value}")
                return
        else:
            converted_value = value

        setattr(config_section, key, converted_value)
        logger.debug(f"Set {key} = {converted_value}")

    def _validate_config(self) -> None:
        """Validate configuration after all loading is complete."""
        flight = self.config.flight
        timings = {
            "FLIGHT_DURATION_S": flight.FLIGHT_DURATION_S,
            "FLIGHT_TAKEOFF_GRACE_S": flight.FLIGHT_TAKEOFF_GRACE_S,
            "FLIGHT_LANDING_GRACE_S": flight.FLIGHT_LANDING_GRACE_S,
            "FLIGHT_HALT_SETTLE_S": flight.FLIGHT_HALT_SETTLE_S,
            "FLIGHT_RECONNECT_DELAY_S": flight.FLIGHT_RECONNECT_DELAY_S,
            "FLIGHT_COMMAND_TIMEOUT_S": flight.FLIGHT_COMMAND_TIMEOUT_S,
            "WATCHDOG_INTERVAL_S": self.config.watchdog.WATCHDOG_INTERVAL_S,
        }
        for name, value in timings.items():
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        if flight.FLIGHT_HISTORY_SIZE < 1:
            raise ConfigurationError(
                f"FLIGHT_HISTORY_SIZE must be at least 1, got {flight.FLIGHT_HISTORY_SIZE}"
            )


# Global configuration instance
_config: Config | None = None


def get_config(config_path: str | Path | None = None) -> Config:
    """
    Get configuration instance (cached after the first load).

    Args:
        config_path: Optional path to configuration file

    Returns:
        Configuration object
    """
    global _config

    if _config is None:
        loader = ConfigLoader(config_path)
        _config = loader.load()

    return _config


def reload_config(config_path: str | Path | None = None) -> Config:
    """
    Reload configuration from file and environment.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Reloaded configuration object
    """
    global _config

    loader = ConfigLoader(config_path)
    _config = loader.load()

    return _config

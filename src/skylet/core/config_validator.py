"""
Configuration validation for skylet.
Provides JSON schema validation for YAML configuration files.
"""

import logging
from pathlib import Path
from typing import Any

import jsonschema
import yaml

logger = logging.getLogger(__name__)

_POSITIVE_SECONDS = {"type": "number", "exclusiveMinimum": 0, "maximum": 3600}


class ConfigValidator:
    """Validates configuration files against JSON schemas."""

    def __init__(self) -> None:
        """Initialize the configuration validator."""
        self.schemas = self._load_schemas()

    def _load_schemas(self) -> dict[str, dict[str, Any]]:
        """Load JSON schema definitions for configuration validation."""
        main_schema = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "object",
            "properties": {
                # Application settings
                "APP_NAME": {"type": "string", "minLength": 1},
                "APP_VERSION": {"type": "string", "pattern": r"^\d+\.\d+\.\d+$"},
                "APP_ENV": {"type": "string", "enum": ["development", "production", "testing"]},
                "APP_NODE_NAME": {"type": "string", "minLength": 1},
                # Logging Configuration
                "LOG_LEVEL": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                },
                "LOG_FORMAT": {"type": "string", "minLength": 10},
                "LOG_FILE_PATH": {"type": "string", "minLength": 1},
                "LOG_FILE_MAX_BYTES": {
                    "type": "integer",
                    "minimum": 1048576,
                    "maximum": 1073741824,
                },
                "LOG_FILE_BACKUP_COUNT": {"type": "integer", "minimum": 1, "maximum": 50},
                "LOG_ENABLE_CONSOLE": {"type": "boolean"},
                "LOG_ENABLE_FILE": {"type": "boolean"},
                "LOG_ENABLE_JOURNAL": {"type": "boolean"},
                # Flight lifecycle
                "FLIGHT_DURATION_S": _POSITIVE_SECONDS,
                "FLIGHT_TAKEOFF_GRACE_S": _POSITIVE_SECONDS,
                "FLIGHT_LANDING_GRACE_S": _POSITIVE_SECONDS,
                "FLIGHT_HALT_SETTLE_S": _POSITIVE_SECONDS,
                "FLIGHT_RECONNECT_DELAY_S": _POSITIVE_SECONDS,
                "FLIGHT_COMMAND_TIMEOUT_S": _POSITIVE_SECONDS,
                "FLIGHT_AUTO_RESTART": {"type": "boolean"},
                "FLIGHT_HISTORY_SIZE": {"type": "integer", "minimum": 1, "maximum": 10000},
                "FLIGHT_SHUTDOWN_TIMEOUT_S": _POSITIVE_SECONDS,
                "FLIGHT_FLIP_DIRECTION": {
                    "type": "string",
                    "enum": ["front", "back", "left", "right"],
                },
                # Connection watchdog
                "WATCHDOG_ENABLED": {"type": "boolean"},
                "WATCHDOG_INTERVAL_S": _POSITIVE_SECONDS,
                # Vehicle driver
                "VEHICLE_DRIVER": {"type": "string", "enum": ["mock"]},
                "VEHICLE_MOCK_CONNECT_DELAY_S": {"type": "number", "minimum": 0},
                "VEHICLE_MOCK_TELEMETRY_INTERVAL_S": _POSITIVE_SECONDS,
                "VEHICLE_MOCK_CRUISE_HEIGHT": {"type": "integer", "minimum": 1, "maximum": 100},
                "VEHICLE_MOCK_BATTERY_PERCENT": {"type": "integer", "minimum": 0, "maximum": 100},
            },
            "required": ["APP_NAME", "LOG_LEVEL"],
            "additionalProperties": True,  # Allow additional config keys
        }

        return {"main": main_schema}

    def validate_yaml_file(self, file_path: Path) -> tuple[bool, list[str]]:
        """
        Validate a YAML configuration file against its schema.

        Args:
            file_path: Path to the YAML file to validate

        Returns:
            Tuple of (is_valid, error_messages)
        """
        if not file_path.exists():
            return False, [f"Configuration file not found: {file_path}"]

        with open(file_path) as f:
            try:
                config_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                line_info = "unknown"
                if hasattr(e, "problem_mark") and e.problem_mark:
                    line_info = str(e.problem_mark.line + 1)
                return False, [f"YAML syntax error at line {line_info}: {e}"]

        is_valid, errors = self.validate_config_dict(config_data)
        if is_valid:
            logger.info(f"Configuration file validation passed: {file_path}")
        return is_valid, errors

    def validate_config_dict(self, config_data: dict[str, Any]) -> tuple[bool, list[str]]:
        """
        Validate configuration data dictionary against schema.

        Args:
            config_data: Configuration dictionary to validate

        Returns:
            Tuple of (is_valid, error_messages)
        """
        try:
            jsonschema.validate(config_data, self.schemas["main"])
            return True, []

        except jsonschema.ValidationError as e:
            error_path = " -> ".join(str(p) for p in e.absolute_path) if e.absolute_path else "root"
            return False, [f"Validation error at {error_path}: {e.message}"]

        except jsonschema.SchemaError as e:
            return False, [f"Schema error: {e.message}"]

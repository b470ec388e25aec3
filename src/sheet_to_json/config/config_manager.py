"""Configuration management for the sheet-to-JSON converter.

This module provides centralized configuration loading and management
with support for YAML files, environment variable overrides, and validation.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from sheet_to_json.models.data_models import (
    AppConfig,
    ConversionDefaults,
    LoggingConfig,
    PreviewConfig,
)


logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class ConfigManager:
    """Manages application configuration loading and validation.

    Configuration Loading Order:
    1. If config_path is provided, load that file
    2. If config_path is None, try to load config/default.yaml
    3. If config/default.yaml doesn't exist, use built-in defaults

    Environment variables prefixed with ``SHEET_TO_JSON_`` override values
    from either source.

    Example:
        >>> config_manager = ConfigManager()
        >>> config = config_manager.load_config()
        >>> config.conversion.header_rows
        3
    """

    ENV_PREFIX = "SHEET_TO_JSON_"

    DEFAULT_CONFIG_PATH = Path("config/default.yaml")

    DEFAULT_CONFIG = {
        "conversion": {
            "header_rows": 3,
            "lowercase": False,
            "export_array": False,
            "encoding": "utf-8",
            "date_format": "%Y-%m-%d %H:%M:%S",
            "force_sheet_name": False,
            "exclude_prefix": "",
            "cell_json": False,
            "all_string": False,
            "single_line_array": False,
            "sheet_name": None,
        },
        "preview": {
            "debounce_seconds": 0.2,
            "max_workers": 2,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - [%(correlation_id)s] - %(levelname)s - %(message)s",
            "file": {
                "enabled": False,
                "path": "./logs/sheet_to_json.log",
            },
            "console": {
                "enabled": True,
            },
            "structured": {
                "enabled": False,
            },
        },
    }

    # Environment variable suffix -> configuration path
    ENV_MAPPINGS = {
        "HEADER_ROWS": ["conversion", "header_rows"],
        "LOWERCASE": ["conversion", "lowercase"],
        "EXPORT_ARRAY": ["conversion", "export_array"],
        "ENCODING": ["conversion", "encoding"],
        "DATE_FORMAT": ["conversion", "date_format"],
        "FORCE_SHEET_NAME": ["conversion", "force_sheet_name"],
        "EXCLUDE_PREFIX": ["conversion", "exclude_prefix"],
        "CELL_JSON": ["conversion", "cell_json"],
        "ALL_STRING": ["conversion", "all_string"],
        "SINGLE_LINE_ARRAY": ["conversion", "single_line_array"],
        "PREVIEW_DEBOUNCE": ["preview", "debounce_seconds"],
        "PREVIEW_WORKERS": ["preview", "max_workers"],
        "LOG_LEVEL": ["logging", "level"],
        "LOG_FILE": ["logging", "file", "path"],
        "LOG_FILE_ENABLED": ["logging", "file", "enabled"],
        "LOG_STRUCTURED": ["logging", "structured", "enabled"],
    }

    # Values that must stay text even when they look numeric
    STRING_PATHS = {
        ("conversion", "encoding"),
        ("conversion", "date_format"),
        ("conversion", "exclude_prefix"),
        ("logging", "file", "path"),
    }

    def __init__(self) -> None:
        """Initialize configuration manager."""
        self._config_cache: Dict[str, AppConfig] = {}

    def load_config(
        self,
        config_path: Optional[Union[str, Path]] = None,
        use_env_overrides: bool = True,
    ) -> AppConfig:
        """Load configuration from file with optional environment overrides.

        Args:
            config_path: Path to configuration file. If None, will try to load
                        config/default.yaml, falling back to built-in defaults
            use_env_overrides: Whether to apply environment variable overrides

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        cache_key = f"{config_path}:{use_env_overrides}"
        if cache_key in self._config_cache:
            logger.debug(f"Using cached configuration for {cache_key}")
            return self._config_cache[cache_key]

        try:
            config_dict = self._load_config_dict(config_path)

            if use_env_overrides:
                config_dict = self._apply_env_overrides(config_dict)

            config = self._dict_to_config(config_dict)

            self._config_cache[cache_key] = config
            logger.debug(f"Configuration loaded successfully from {config_path or 'default'}")
            return config

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _load_config_dict(self, config_path: Optional[Union[str, Path]]) -> Dict[str, Any]:
        """Load configuration dictionary from file or defaults."""
        if config_path is None:
            if self.DEFAULT_CONFIG_PATH.exists():
                logger.debug(f"No config path provided, loading {self.DEFAULT_CONFIG_PATH}")
                config_path = self.DEFAULT_CONFIG_PATH
            else:
                return copy.deepcopy(self.DEFAULT_CONFIG)

        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning(f"Configuration file not found: {config_file}, using defaults")
            return copy.deepcopy(self.DEFAULT_CONFIG)

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}")
        except (IOError, OSError) as e:
            raise ConfigurationError(f"Cannot read {config_file}: {e}")

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping in {config_file}")

        logger.debug(f"Loaded configuration from {config_file}")
        return self._deep_merge(copy.deepcopy(self.DEFAULT_CONFIG), file_config)

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Args:
            config_dict: Base configuration dictionary

        Returns:
            Configuration dictionary with environment overrides applied
        """
        for suffix, config_path in self.ENV_MAPPINGS.items():
            env_var = f"{self.ENV_PREFIX}{suffix}"
            env_value = os.getenv(env_var)
            if env_value is not None:
                converted_value = self._convert_env_value(env_value, config_path)
                self._set_nested_value(config_dict, config_path, converted_value)
                logger.debug(f"Applied environment override: {env_var}={converted_value!r}")

        sheet_env = os.getenv(f"{self.ENV_PREFIX}SHEET_NAME")
        if sheet_env is not None:
            config_dict["conversion"]["sheet_name"] = sheet_env.strip() or None

        return config_dict

    def _convert_env_value(self, value: str, config_path: List[str]) -> Any:
        """Convert environment variable string to appropriate type."""
        if tuple(config_path) in self.STRING_PATHS:
            return value

        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            if "." not in value:
                return int(value)
            return float(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(
        self,
        dictionary: Dict[str, Any],
        path: List[str],
        value: Any,
    ) -> None:
        """Set a nested dictionary value using a path list."""
        for key in path[:-1]:
            dictionary = dictionary.setdefault(key, {})
        dictionary[path[-1]] = value

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Convert configuration dictionary to AppConfig object.

        Raises:
            ConfigurationError: If a section holds an unknown key or bad value
        """
        conversion = dict(config_dict.get("conversion") or {})
        preview = dict(config_dict.get("preview") or {})
        logging_section = config_dict.get("logging") or {}

        try:
            conversion_defaults = ConversionDefaults(**conversion)
            preview_config = PreviewConfig(**preview)
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        defaults = self.DEFAULT_CONFIG["logging"]
        try:
            logging_config = LoggingConfig(
                level=logging_section.get("level", defaults["level"]),
                format=logging_section.get("format", defaults["format"]),
                file_enabled=logging_section.get("file", {}).get("enabled", False),
                file_path=Path(logging_section.get("file", {}).get("path", defaults["file"]["path"])),
                console_enabled=logging_section.get("console", {}).get("enabled", True),
                structured_enabled=logging_section.get("structured", {}).get("enabled", False),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid logging configuration: {e}") from e

        return AppConfig(
            conversion=conversion_defaults,
            preview=preview_config,
            logging=logging_config,
        )

    def save_config(self, config: AppConfig, config_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Args:
            config: Configuration to save
            config_path: Path to save configuration file

        Raises:
            ConfigurationError: If saving fails
        """
        try:
            config_file = Path(config_path)
            config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(config_file, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._config_to_dict(config), f, default_flow_style=False, sort_keys=False)

            logger.info(f"Configuration saved to {config_file}")

        except Exception as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e

    def _config_to_dict(self, config: AppConfig) -> Dict[str, Any]:
        """Convert AppConfig object to dictionary for serialization."""
        conversion = config.conversion
        return {
            "conversion": {
                "header_rows": conversion.header_rows,
                "lowercase": conversion.lowercase,
                "export_array": conversion.export_array,
                "encoding": conversion.encoding,
                "date_format": conversion.date_format,
                "force_sheet_name": conversion.force_sheet_name,
                "exclude_prefix": conversion.exclude_prefix,
                "cell_json": conversion.cell_json,
                "all_string": conversion.all_string,
                "single_line_array": conversion.single_line_array,
                "sheet_name": conversion.sheet_name,
            },
            "preview": {
                "debounce_seconds": config.preview.debounce_seconds,
                "max_workers": config.preview.max_workers,
            },
            "logging": {
                "level": config.logging.level,
                "format": config.logging.format,
                "file": {
                    "enabled": config.logging.file_enabled,
                    "path": str(config.logging.file_path),
                },
                "console": {
                    "enabled": config.logging.console_enabled,
                },
                "structured": {
                    "enabled": config.logging.structured_enabled,
                },
            },
        }

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._config_cache.clear()
        logger.debug("Configuration cache cleared")


# Global configuration manager instance
config_manager = ConfigManager()

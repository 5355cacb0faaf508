"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import ExporterConfig


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> ExporterConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        return ExporterConfig(**ConfigLoader._read_file(config_path))

    @staticmethod
    def from_sources(
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        defaults: Optional[Dict[str, Any]] = None
    ) -> ExporterConfig:
        """
        Build configuration from defaults, an optional YAML file and overrides.

        Precedence, lowest first: model defaults, ``defaults`` (environment),
        the file, then ``overrides`` (command line). None values are ignored.

        Args:
            config_path: Optional path to YAML configuration file
            overrides: Option values keyed by ExporterConfig field name
            defaults: Values used only for keys the file leaves unset

        Returns:
            ExporterConfig: Validated configuration object
        """
        raw_config = ConfigLoader._read_file(config_path) if config_path else {}

        for key, value in (defaults or {}).items():
            if value is not None and raw_config.get(key) is None:
                raw_config[key] = value

        for key, value in (overrides or {}).items():
            if value is not None:
                raw_config[key] = value

        return ExporterConfig(**raw_config)

    @staticmethod
    def _read_file(config_path: str) -> Dict[str, Any]:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")

        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj

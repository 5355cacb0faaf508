"""Environment settings used as command line defaults."""

import os
from typing import Optional


class Settings:
    """Application settings from environment variables."""

    # Maps ExporterConfig field -> environment variable
    ENV_VARS = {
        "listen_address": "EXPORTER_LISTEN_ADDRESS",
        "metrics_path": "EXPORTER_METRICS_PATH",
        "log_level": "EXPORTER_LOG_LEVEL",
        "product_descriptions": "EXPORTER_PRODUCT_DESCRIPTIONS",
        "operating_systems": "EXPORTER_OPERATING_SYSTEMS",
        "regions": "EXPORTER_REGIONS",
        "partitions": "EXPORTER_PARTITIONS",
        "lifecycles": "EXPORTER_LIFECYCLES",
        "cache_seconds": "EXPORTER_CACHE_SECONDS",
    }

    @staticmethod
    def get(key: str, default: Optional[str] = None, required: bool = False) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set
            required: Whether the variable is required

        Returns:
            str: Environment variable value

        Raises:
            ValueError: If required variable is not set
        """
        value = os.getenv(key, default)
        if required and not value:
            raise ValueError(f"Required environment variable not set: {key}")
        return value or ""

    @staticmethod
    def option_defaults() -> dict:
        """Return config values set through the environment, keyed by field name."""
        return {
            field: os.getenv(env_var)
            for field, env_var in Settings.ENV_VARS.items()
            if os.getenv(env_var)
        }

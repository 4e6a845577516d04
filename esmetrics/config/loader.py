"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import EsMetricsConfig


class ConfigLoader:
    """Load and validate metrics shipper configuration."""

    @staticmethod
    def load_from_file(
        config_path: str,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> EsMetricsConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file
            overrides: Section-keyed values that take precedence over the file

        Returns:
            EsMetricsConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        # Substitute environment variables
        raw_config = ConfigLoader._substitute_env_vars(raw_config)

        return ConfigLoader.load_from_dict(raw_config, overrides)

    @staticmethod
    def load_from_dict(
        raw_config: Dict[str, Any],
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> EsMetricsConfig:
        """
        Build configuration from plain values, applying overrides per section.

        Override values of None are ignored so unset CLI flags keep file values.
        """
        merged = {section: dict(values or {}) for section, values in raw_config.items()}

        for section, values in (overrides or {}).items():
            target = merged.setdefault(section, {})
            target.update({k: v for k, v in values.items() if v is not None})

        # Validate with Pydantic
        return EsMetricsConfig(**merged)

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

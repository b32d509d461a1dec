"""
Configuration loading and validation for Stream DB Dumper.
"""

import os
import re
from typing import Any

import yaml

from .models import TableConfig, TablesConfig, UnsupportedTypePolicy


class ConfigLoader:
    """Loads and validates configuration from YAML file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        return self._resolve_env_vars(config)

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Recursively resolve environment variables in config."""
        if isinstance(obj, str):
            for match in self.ENV_VAR_PATTERN.findall(obj):
                obj = obj.replace(f'${{{match}}}', os.environ.get(match, ''))
            return obj
        elif isinstance(obj, dict):
            return {k: self._resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        return obj

    def get_source(self) -> dict[str, Any]:
        """Get the source database connection settings."""
        source = self.config.get('source')
        if not source:
            raise ValueError("Section 'source' not found in configuration")
        return source

    def get_defaults(self) -> dict[str, Any]:
        """Get default read settings applied to every table."""
        return self.config.get('defaults') or {}

    def get_tables_config(self) -> TablesConfig:
        """
        Get per-table configuration.

        Entries may be plain table names or mappings with a ``name`` key.
        """
        defaults = self.get_defaults()
        tables = []
        for entry in self.config.get('tables') or []:
            if isinstance(entry, str):
                entry = {'name': entry}
            tables.append(TableConfig.from_dict(entry, defaults))
        return TablesConfig(tables)

    def get_output_settings(self) -> dict[str, Any]:
        """Get output settings."""
        return self.config.get('output') or {}

    def get_unsupported_type_policy(self) -> UnsupportedTypePolicy:
        """Get what to do with rows holding values that cannot be converted."""
        value = self.get_output_settings().get(
            'on_unsupported_type', UnsupportedTypePolicy.ABORT_TABLE.value
        )
        try:
            return UnsupportedTypePolicy(value)
        except ValueError:
            choices = ', '.join(p.value for p in UnsupportedTypePolicy)
            raise ValueError(
                f"Invalid on_unsupported_type '{value}', expected one of: {choices}"
            ) from None

    def get_logging_settings(self) -> dict[str, Any]:
        """Get logging settings."""
        return self.config.get('logging') or {}

"""Configuration management for bitswan ingress."""

import json
import os
from pathlib import Path
from typing import Any

from bitswan.core.types import IngressConfig

ADMIN_URL_ENV = "BITSWAN_CADDY_ADMIN_URL"


class Config:
    """Configuration manager for bitswan ingress."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default.
        """
        self._config_path = config_path
        self._config_data: dict[str, Any] = {}

    @classmethod
    def from_file(cls, config_path: Path) -> "Config":
        """Load configuration from file.

        Args:
            config_path: Path to configuration file.

        Returns:
            Config instance with loaded configuration.
        """
        instance = cls(config_path)
        instance.load()
        return instance

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary.

        Returns:
            Config instance.
        """
        instance = cls()
        instance._config_data = data
        return instance

    def load(self) -> None:
        """Load configuration from file."""
        if self._config_path is None or not self._config_path.exists():
            return

        with open(self._config_path, encoding="utf-8") as f:
            self._config_data = json.load(f)

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file.

        Args:
            path: Path to save configuration. Uses config_path if None.
        """
        save_path = path or self._config_path
        if save_path is None:
            raise ValueError("No path specified for saving configuration")

        save_path.parent.mkdir(parents=True, exist_ok=True)
        with open(save_path, "w", encoding="utf-8") as f:
            json.dump(self._config_data, f, indent=2, default=str)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key (supports dot notation).
            default: Default value if key not found.

        Returns:
            Configuration value.
        """
        keys = key.split(".")
        value = self._config_data
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value.

        Args:
            key: Configuration key (supports dot notation).
            value: Value to set.
        """
        keys = key.split(".")
        data = self._config_data
        for k in keys[:-1]:
            if k not in data:
                data[k] = {}
            data = data[k]
        data[keys[-1]] = value

    def to_ingress_config(self, admin_url: str | None = None) -> IngressConfig:
        """Convert configuration to IngressConfig.

        The admin URL is taken from the argument, then the
        ``BITSWAN_CADDY_ADMIN_URL`` environment variable, then the file.

        Args:
            admin_url: Optional admin URL override.

        Returns:
            Validated IngressConfig instance.
        """
        data = dict(self.get("ingress", {}))
        admin_url = admin_url or os.environ.get(ADMIN_URL_ENV)
        if admin_url:
            data["admin_url"] = admin_url
        return IngressConfig.model_validate(data)

    @property
    def data(self) -> dict[str, Any]:
        """Get raw configuration data."""
        return self._config_data

"""Configuration loading and migration service.

Handles loading config.yaml and migrating legacy keys to the current schema.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from claude_deck.models.config import AppConfig

logger = logging.getLogger(__name__)

# Legacy preferred_terminal values -> terminal.backend
_LEGACY_TERMINALS = {
    "kitty": "kitty",
    "wezterm": "wezterm",
    "auto": "kitty",
}


class ConfigService:
    """Service for loading and managing application configuration.

    Handles:
    - Loading config from config.yaml
    - Validating against Pydantic schema
    - Migrating legacy keys
    - Saving updated config
    """

    def __init__(self, config_path: str | Path = "config.yaml"):
        """Initialize the config service.

        Args:
            config_path: Path to the config file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load and validate configuration.

        Returns:
            Validated AppConfig instance (defaults if missing or invalid).
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            self._config = AppConfig()
            return self._config

        try:
            with open(self.config_path) as f:
                raw_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error reading config file: {e}, using defaults")
            self._config = AppConfig()
            return self._config

        if not isinstance(raw_config, dict):
            logger.warning("Config file is not a mapping, using defaults")
            self._config = AppConfig()
            return self._config

        migrated = self._migrate_config(raw_config)

        try:
            self._config = AppConfig(**migrated)
        except ValidationError as e:
            logger.warning(f"Config validation error: {e}, using defaults")
            self._config = AppConfig()

        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Loads from disk if not already loaded.
        """
        if self._config is None:
            return self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()

    def save(self, config: AppConfig | None = None) -> bool:
        """Save configuration to disk.

        Args:
            config: Config to save. Uses current config if not provided.

        Returns:
            True if save succeeded.
        """
        config = config or self._config
        if config is None:
            return False

        try:
            config_dict = config.model_dump(mode="json")
            with open(self.config_path, "w") as f:
                yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    def _migrate_config(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Migrate legacy config format to the current schema.

        Handles:
        - preferred_terminal -> terminal.backend
        - top-level terminal_backend -> terminal.backend

        Args:
            raw: Raw config dictionary from YAML.

        Returns:
            Migrated config dictionary.
        """
        migrated = dict(raw)
        terminal = dict(migrated.get("terminal") or {})

        for legacy_key in ("preferred_terminal", "terminal_backend"):
            if legacy_key not in migrated:
                continue
            value = str(migrated.pop(legacy_key)).lower()
            if "backend" in terminal:
                logger.info(f"Ignoring legacy {legacy_key}: terminal.backend is set")
                continue
            backend = _LEGACY_TERMINALS.get(value)
            if backend is None:
                logger.warning(f"Unsupported terminal '{value}', defaulting to kitty")
                backend = "kitty"
            terminal["backend"] = backend

        if terminal:
            migrated["terminal"] = terminal
        return migrated


# Module-level singleton
_config_service: ConfigService | None = None


def get_config_service(config_path: str | Path = "config.yaml") -> ConfigService:
    """Get the global config service instance.

    Args:
        config_path: Path to config file (only used on first call).

    Returns:
        ConfigService singleton.
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigService(config_path)
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (for testing)."""
    global _config_service
    _config_service = None

"""Configuration file loader."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .models import FlareConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load flare configuration."""

    CONFIG_FILENAME = "flare.yaml"
    USER_CONFIG_DIR = Path.home() / ".flare"

    def __init__(self, project_path: Path | None = None):
        """Initialize config loader.

        Args:
            project_path: Documents directory. If None, uses current directory.
        """
        self._project_path = project_path or Path.cwd()

    def get_config_path(self) -> Path | None:
        """Find config file (project-level first, then user-level).

        Returns:
            Path to config file if found, None otherwise.
        """
        project_config = self._project_path / self.CONFIG_FILENAME
        if project_config.exists():
            return project_config

        user_config = self.USER_CONFIG_DIR / self.CONFIG_FILENAME
        if user_config.exists():
            return user_config

        return None

    def load(self) -> FlareConfig:
        """Load configuration, returning defaults if no config exists."""
        config_path = self.get_config_path()
        if config_path is None:
            logger.debug("No config file found, using defaults")
            return FlareConfig()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            logger.info(f"Loaded config from: {config_path}")
            return FlareConfig.model_validate(data)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            return FlareConfig()


def load_config(project_path: Path | str | None = None) -> FlareConfig:
    """Load configuration from project or user directory.

    Convenience function that creates a ConfigLoader and loads config.
    """
    path = Path(project_path) if project_path else None
    return ConfigLoader(path).load()

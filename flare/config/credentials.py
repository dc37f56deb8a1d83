"""Persisted GitHub credentials."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import Credentials

logger = logging.getLogger(__name__)


class CredentialStore:
    """Read and write the token/owner/repository triple.

    A missing, empty or incomplete file means "not configured".
    """

    DEFAULT_PATH = Path.home() / ".flare" / "credentials.yaml"

    def __init__(self, path: Path | None = None):
        self._path = path or self.DEFAULT_PATH

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Credentials | None:
        if not self._path.exists():
            return None

        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            credentials = Credentials.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable credentials at {self._path}: {e}")
            return None

        if not credentials.token:
            return None
        return credentials

    def set(self, credentials: Credentials) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            yaml.safe_dump(credentials.model_dump(), f, default_flow_style=False)
        # Token file is readable by the owner only
        os.chmod(self._path, 0o600)
        logger.info(f"Saved credentials for {credentials.full_name}")

    def clear(self) -> None:
        """Forget stored credentials (disconnect)."""
        if self._path.exists():
            self._path.unlink()
            logger.info("Cleared stored credentials")

"""Configuration module for flare."""

from .credentials import CredentialStore
from .loader import ConfigLoader, load_config
from .models import ApiSettings, Credentials, DocumentSettings, FlareConfig, GitSettings

__all__ = [
    "ApiSettings",
    "ConfigLoader",
    "CredentialStore",
    "Credentials",
    "DocumentSettings",
    "FlareConfig",
    "GitSettings",
    "load_config",
]

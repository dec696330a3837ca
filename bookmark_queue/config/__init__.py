from __future__ import annotations

from .gist import DEFAULT_API_URL, DEFAULT_GIST_FILENAME, DEFAULT_GIST_ID, GistConfig
from .settings import AppConfig, RuntimeConfig, Settings, load_config

__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_GIST_FILENAME",
    "DEFAULT_GIST_ID",
    "AppConfig",
    "GistConfig",
    "RuntimeConfig",
    "Settings",
    "load_config",
]

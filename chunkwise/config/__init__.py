"""Configuration module: exports Settings, the YAML loader, and a module-level singleton."""

from chunkwise.config.loader import load_config, resolve_settings
from chunkwise.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "load_config", "resolve_settings", "settings"]

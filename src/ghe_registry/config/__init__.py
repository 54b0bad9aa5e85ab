"""Configuration for the GHE Registry service."""

from ghe_registry.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]

"""Configuration for the username migrator."""

from username_migrator.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]

"""Configuration module for the lending simulator."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]

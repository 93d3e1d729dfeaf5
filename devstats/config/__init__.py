"""Configuration package."""

from devstats.config.settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]

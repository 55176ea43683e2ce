"""Core application configuration."""

from kidneycalc.core.config import Settings, settings

__all__ = [
    "Settings",
    "settings",
]

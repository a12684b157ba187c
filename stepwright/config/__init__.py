"""
Configuration module exports.
"""

from stepwright.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]

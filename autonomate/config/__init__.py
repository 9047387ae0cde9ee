"""
Configuration module exports.
"""

from autonomate.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]

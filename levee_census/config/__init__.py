"""Configuration module for leveed-area interpolation."""

from . import constants
from .settings import Settings, get_default_settings

__all__ = ["constants", "Settings", "get_default_settings"]

"""
Core module initialization.
Exports configuration utilities.
"""

from restomatch.core.config import get_settings, Settings, EnvironmentMode

__all__ = ["get_settings", "Settings", "EnvironmentMode"]

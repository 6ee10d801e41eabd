"""
Configuration — settings loading for all entrypoints.
"""

from hostprep.core.config.loader import find_settings_file, load_settings

__all__ = ["find_settings_file", "load_settings"]

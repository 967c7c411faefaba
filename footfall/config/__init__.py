"""
Tourism Footfall Analytics
Configuration Module
"""
from .settings import Settings, FootfallSettings, get_settings

__all__ = ["Settings", "FootfallSettings", "get_settings"]

"""
Services Module
"""
from .footfall_service import FootfallService, utc_now

__all__ = ["FootfallService", "utc_now"]

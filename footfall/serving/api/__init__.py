"""
API Module
"""
from .dependencies import get_footfall_service
from .middleware import RequestLoggingMiddleware

__all__ = [
    "get_footfall_service",
    "RequestLoggingMiddleware",
]

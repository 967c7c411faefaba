"""
Serving Module
"""
from .cache import CacheManager, close_redis, get_redis, init_redis, invalidate_footfall_caches

__all__ = [
    "CacheManager",
    "close_redis",
    "get_redis",
    "init_redis",
    "invalidate_footfall_caches",
]

"""
API Routes Module
"""
from .checkin import router as checkin_router
from .footfall import router as footfall_router
from .health import router as health_router
from .hotels import router as hotels_router
from .recommendations import router as recommendations_router
from .stats import router as stats_router
from .tickets import router as tickets_router

__all__ = [
    "checkin_router",
    "footfall_router",
    "health_router",
    "hotels_router",
    "recommendations_router",
    "stats_router",
    "tickets_router",
]

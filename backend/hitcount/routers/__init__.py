"""
API routers package.
"""
from hitcount.routers.count import router as count_router
from hitcount.routers.health import router as health_router
from hitcount.routers.stats import router as stats_router

__all__ = [
    "health_router",
    "count_router",
    "stats_router",
]

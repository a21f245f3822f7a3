# API endpoints and routers

from .health_endpoints import router as health_router
from .walks_endpoints import router as walks_router
from .tracking_endpoints import router as tracking_router

__all__ = [
    "health_router",
    "walks_router",
    "tracking_router",
]

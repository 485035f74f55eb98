"""FastAPI routers package."""

from .allocation import router as allocation_router
from .availability import router as availability_router
from .health import router as health_router
from .metrics import router as metrics_router
from .pricing import router as pricing_router
from .rate import router as rate_router

__all__ = [
    "allocation_router",
    "availability_router",
    "health_router",
    "metrics_router",
    "pricing_router",
    "rate_router",
]

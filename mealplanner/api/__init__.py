"""API routes."""

from .meal_orders import router as meal_orders_router
from .residents import router as residents_router
from .archived import router as archived_router
from .audit_logs import router as audit_logs_router
from .alerts import router as alerts_router

__all__ = [
    "meal_orders_router",
    "residents_router",
    "archived_router",
    "audit_logs_router",
    "alerts_router",
]

"""Database models."""

from .resident import Resident
from .meal_order import MealOrder, MealType, OrderStatus, TERMINAL_STATUSES
from .versioned_record import VersionedRecord, ChangeType
from .archived_record import ArchivedRecord
from .alert import Alert, AlertSeverity
from .user import User, AuditLog, Role

__all__ = [
    "Resident",
    "MealOrder", "MealType", "OrderStatus", "TERMINAL_STATUSES",
    "VersionedRecord", "ChangeType",
    "ArchivedRecord",
    "Alert", "AlertSeverity",
    "User", "AuditLog", "Role",
]

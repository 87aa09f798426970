"""Data access layer."""

from .meal_order_repository import MealOrderRepository
from .versioned_record_repository import VersionedRecordRepository
from .archived_record_repository import ArchivedRecordRepository
from .resident_repository import ResidentRepository
from .alert_repository import AlertRepository

__all__ = [
    "MealOrderRepository",
    "VersionedRecordRepository",
    "ArchivedRecordRepository",
    "ResidentRepository",
    "AlertRepository",
]

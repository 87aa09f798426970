"""Business logic services."""

from .meal_order_service import MealOrderService
from .conflict_resolver import ConflictResolver
from .archival_service import ArchivalService, RetentionPolicy, should_run
from .resident_service import ResidentService
from .alert_service import AlertService
from .snapshot_recorder import SnapshotRecorder, compute_changed_fields
from .cache_service import entity_cache

__all__ = [
    "MealOrderService",
    "ConflictResolver",
    "ArchivalService",
    "RetentionPolicy",
    "should_run",
    "ResidentService",
    "AlertService",
    "SnapshotRecorder",
    "compute_changed_fields",
    "entity_cache",
]

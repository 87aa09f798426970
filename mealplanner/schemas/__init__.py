"""Pydantic schemas for request/response validation."""

from .meal_order import (
    BreakfastOptions, LunchOptions, DinnerOptions,
    MealOrderCreate, MealOrderUpdate, MealOrderResponse, MealOrderFilter,
    MealOrderSearch, MealOrderSearchResults,
    ConflictResolutionRequest, ConflictResolutionResponse,
)
from .resident import ResidentCreate, ResidentUpdate, ResidentResponse
from .versioned_record import VersionedRecordResponse
from .archived_record import ArchivedRecordResponse, ArchivedLookupResponse, SweepResult, SweepFailure
from .audit import AuditLogResponse
from .alert import AlertResponse, AlertAcknowledgeResponse

__all__ = [
    "BreakfastOptions", "LunchOptions", "DinnerOptions",
    "MealOrderCreate", "MealOrderUpdate", "MealOrderResponse", "MealOrderFilter",
    "MealOrderSearch", "MealOrderSearchResults",
    "ConflictResolutionRequest", "ConflictResolutionResponse",
    "ResidentCreate", "ResidentUpdate", "ResidentResponse",
    "VersionedRecordResponse",
    "ArchivedRecordResponse", "ArchivedLookupResponse", "SweepResult", "SweepFailure",
    "AuditLogResponse",
    "AlertResponse", "AlertAcknowledgeResponse",
]

"""Meal order schemas."""

from datetime import date as date_type, datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ..models.meal_order import MealType, OrderStatus
from .common import CamelModel


class BreakfastOptions(CamelModel):
    follows_plan: bool = False
    bread_items: List[str] = []
    bread_preparation: List[str] = []
    spreads: List[str] = []
    porridge: bool = False
    beverages: List[str] = []
    additions: List[str] = []


class LunchOptions(CamelModel):
    portion_size: Optional[str] = None  # small, large, vegetarian
    soup: bool = False
    dessert: bool = False
    special_preparations: List[str] = []
    restrictions: List[str] = []


class DinnerOptions(CamelModel):
    follows_plan: bool = False
    bread_items: List[str] = []
    bread_preparation: List[str] = []
    spreads: List[str] = []
    soup: bool = False
    porridge: bool = False
    no_fish: bool = False
    beverages: List[str] = []
    additions: List[str] = []


class MealOrderCreate(CamelModel):
    """Schema for creating a meal order."""
    resident_id: str
    date: date_type
    meal_type: MealType
    urgent: bool = False
    breakfast_options: Optional[BreakfastOptions] = None
    lunch_options: Optional[LunchOptions] = None
    dinner_options: Optional[DinnerOptions] = None
    special_notes: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "residentId": "0b6f3f0e-6a43-4a59-a1c5-3f0d2e1b9c11",
                    "date": "2026-10-20",
                    "mealType": "lunch",
                    "urgent": False,
                    "lunchOptions": {"portionSize": "small", "soup": True},
                }
            ]
        }
    }


class MealOrderUpdate(CamelModel):
    """Partial update of a meal order.

    ``version`` is the version the client last saw. When present the write
    only succeeds if it still matches; when omitted the version check is
    skipped (status transitions from the kitchen rely on this).

    The same schema carries ``mergedData`` during conflict resolution,
    where any ``version`` it contains is ignored. Unknown keys (``id``,
    ``createdAt`` ... copied from a conflict response) are dropped.
    """
    resident_id: Optional[str] = None
    date: Optional[date_type] = None
    meal_type: Optional[MealType] = None
    status: Optional[OrderStatus] = None
    urgent: Optional[bool] = None
    breakfast_options: Optional[BreakfastOptions] = None
    lunch_options: Optional[LunchOptions] = None
    dinner_options: Optional[DinnerOptions] = None
    special_notes: Optional[str] = None
    version: Optional[int] = None

    def changes(self) -> dict:
        """Fields the caller actually supplied, excluding ``version``."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "version"
        }


class MealOrderResponse(CamelModel):
    """Schema for meal order responses."""
    id: str
    resident_id: str
    date: date_type
    meal_type: MealType
    status: OrderStatus
    urgent: bool
    version: int
    breakfast_options: Optional[BreakfastOptions] = None
    lunch_options: Optional[LunchOptions] = None
    dinner_options: Optional[DinnerOptions] = None
    special_notes: Optional[str] = None
    prepared_at: Optional[datetime] = None
    prepared_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Non-fatal problems with the request, e.g. a snapshot that failed to record.
    warnings: List[str] = []


class ConflictResolutionRequest(CamelModel):
    """Body of POST /api/meal-orders/{id}/resolve-conflict.

    ``merged_data`` is optional at the schema level so a missing merge
    answers 400 from the resolver instead of a generic 422.
    """
    merged_data: Optional[MealOrderUpdate] = None
    resolved_by: Optional[str] = None


class ConflictResolutionResponse(CamelModel):
    success: bool = True
    message: str = "Conflict resolved successfully"
    resolved_document: MealOrderResponse
    warnings: List[str] = []


class MealOrderFilter(CamelModel):
    """Query filters for listing meal orders."""
    date: Optional[date_type] = None
    status: Optional[OrderStatus] = None
    meal_type: Optional[MealType] = None
    resident_id: Optional[str] = None
    skip: int = Field(0, ge=0)
    limit: int = Field(100, ge=1, le=500)

    @model_validator(mode="after")
    def _strip_blank_resident(self):
        if self.resident_id is not None and not self.resident_id.strip():
            self.resident_id = None
        return self


class MealOrderSearch(CamelModel):
    """Search criteria. Resident fields match case-insensitive substrings."""
    resident_name: Optional[str] = None
    room_number: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    meal_type: Optional[MealType] = None
    status: Optional[OrderStatus] = None
    urgent: Optional[bool] = None
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)

    def applied(self) -> Dict[str, Any]:
        """The criteria actually set, as sent on the wire."""
        return self.to_wire(exclude_none=True, exclude={"page", "limit"})


class MealOrderSearchResults(CamelModel):
    """One page of search results."""
    docs: List[MealOrderResponse]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    filters: Dict[str, Any] = {}

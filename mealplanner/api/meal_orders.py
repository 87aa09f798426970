"""Meal order API endpoints.

Endpoints are thin: MealOrderService and ConflictResolver own the
versioning, history and policy logic.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_policy
from ..database import get_db
from ..middleware.request_context import client_ip
from ..models import MealType, OrderStatus
from ..schemas.meal_order import (
    ConflictResolutionRequest, ConflictResolutionResponse, MealOrderCreate, MealOrderFilter,
    MealOrderResponse, MealOrderSearch, MealOrderSearchResults, MealOrderUpdate,
)
from ..schemas.versioned_record import VersionedRecordResponse
from ..services import ConflictResolver, MealOrderService

router = APIRouter(prefix="/api/meal-orders", tags=["meal-orders"])


@router.post("", response_model=MealOrderResponse, status_code=201)
def create_meal_order(
    order: MealOrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.create")),
):
    """Create a meal order at version 1."""
    return MealOrderService(db).create_order(order, auth.user_id, client_ip(request))


@router.get("", response_model=List[MealOrderResponse])
def list_meal_orders(
    order_date: Optional[date] = Query(None, alias="date"),
    status: Optional[OrderStatus] = None,
    meal_type: Optional[MealType] = Query(None, alias="mealType"),
    resident_id: Optional[str] = Query(None, alias="residentId"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.read")),
):
    """List meal orders, newest day first."""
    filters = MealOrderFilter(
        date=order_date, status=status, meal_type=meal_type,
        resident_id=resident_id, skip=skip, limit=limit,
    )
    return MealOrderService(db).list_orders(filters)


@router.get("/search", response_model=MealOrderSearchResults)
def search_meal_orders(
    resident_name: Optional[str] = Query(None, alias="residentName"),
    room_number: Optional[str] = Query(None, alias="roomNumber"),
    dietary_restrictions: Optional[str] = Query(None, alias="dietaryRestrictions"),
    meal_type: Optional[MealType] = Query(None, alias="mealType"),
    status: Optional[OrderStatus] = None,
    urgent: Optional[bool] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.read")),
):
    """Search orders by resident name, room or diet and by order fields.

    All criteria combine with AND. ``filters`` in the response echoes the
    criteria that were applied.
    """
    criteria = MealOrderSearch(
        resident_name=resident_name, room_number=room_number,
        dietary_restrictions=dietary_restrictions, meal_type=meal_type, status=status,
        urgent=urgent, start_date=start_date, end_date=end_date, page=page, limit=limit,
    )
    return MealOrderService(db).search_orders(criteria)


@router.get("/{order_id}", response_model=MealOrderResponse)
def get_meal_order(
    order_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.read")),
):
    """Get a meal order by ID."""
    return MealOrderService(db).get_order(order_id)


@router.patch("/{order_id}", response_model=MealOrderResponse)
def update_meal_order(
    order_id: str,
    update: MealOrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.update")),
):
    """Update a meal order.

    Send the ``version`` you last read. A stale version answers 409 with
    ``currentVersion`` (the server document) and ``yourVersion`` (your
    patch) so the client can merge and call ``resolve-conflict``.
    """
    return MealOrderService(db).update_order(order_id, update, auth.user_id, auth.role, client_ip(request))


@router.delete("/{order_id}", status_code=204)
def delete_meal_order(
    order_id: str,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.delete")),
):
    """Delete a prepared or completed meal order. Its version history is kept."""
    warning = MealOrderService(db).delete_order(order_id, auth.user_id, client_ip(request))
    response = Response(status_code=204)
    if warning:
        response.headers["X-Warning"] = warning
    return response


@router.post("/{order_id}/resolve-conflict", response_model=ConflictResolutionResponse)
def resolve_conflict(
    order_id: str,
    body: ConflictResolutionRequest,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("meal.update")),
):
    """Persist a merged document after a 409 conflict."""
    return ConflictResolver(db).resolve(order_id, body, auth.user_id, auth.role, client_ip(request))


@router.get("/{order_id}/versions", response_model=List[VersionedRecordResponse])
def get_meal_order_versions(
    order_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("versions.read")),
):
    """Version history of a meal order, newest first."""
    return MealOrderService(db).get_versions(order_id, skip, limit)

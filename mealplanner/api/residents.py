"""Resident API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_policy
from ..database import get_db
from ..schemas.resident import ResidentCreate, ResidentResponse, ResidentUpdate
from ..services import ResidentService

router = APIRouter(prefix="/api/residents", tags=["residents"])


@router.post("", response_model=ResidentResponse, status_code=201)
def create_resident(
    resident: ResidentCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("resident.write")),
):
    return ResidentService(db).create_resident(resident, auth.user_id)


@router.get("", response_model=List[ResidentResponse])
def list_residents(
    active_only: bool = Query(False, alias="activeOnly"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("resident.read")),
):
    return ResidentService(db).list_residents(skip, limit, active_only)


@router.get("/{resident_id}", response_model=ResidentResponse)
def get_resident(
    resident_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("resident.read")),
):
    return ResidentService(db).get_resident(resident_id)


@router.patch("/{resident_id}", response_model=ResidentResponse)
def update_resident(
    resident_id: str,
    update: ResidentUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("resident.write")),
):
    """Update a resident. Set ``active`` to false instead of deleting."""
    return ResidentService(db).update_resident(resident_id, update, auth.user_id)

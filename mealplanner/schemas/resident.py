"""Resident schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .common import CamelModel


class ResidentCreate(CamelModel):
    """Schema for registering a resident."""
    name: str = Field(..., min_length=1, max_length=255)
    room_number: str = Field(..., min_length=1, max_length=20)
    dietary_restrictions: List[str] = []
    active: bool = True


class ResidentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    room_number: Optional[str] = Field(None, min_length=1, max_length=20)
    dietary_restrictions: Optional[List[str]] = None
    active: Optional[bool] = None


class ResidentResponse(CamelModel):
    id: str
    name: str
    room_number: str
    dietary_restrictions: List[str] = []
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

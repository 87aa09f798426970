"""Resident model."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Resident(Base):
    """A care-facility resident meals are ordered for.

    Inactive residents stay in the table so historical orders keep their
    reference, but no new orders can be placed for them.
    """

    __tablename__ = "residents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    room_number = Column(String(20), nullable=False)
    dietary_restrictions = Column(JSON, default=list)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    meal_orders = relationship("MealOrder", back_populates="resident")

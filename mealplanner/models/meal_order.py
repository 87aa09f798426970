"""Meal order model."""

import uuid
from enum import Enum

from sqlalchemy import Column, Index, String, Text, Integer, Boolean, Date, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARED = "prepared"
    COMPLETED = "completed"


# Orders in these states are done in the kitchen. Caregivers can no longer
# edit them and they become eligible for archival.
TERMINAL_STATUSES = frozenset({OrderStatus.PREPARED.value, OrderStatus.COMPLETED.value})

# Options group each meal type must carry.
OPTIONS_FIELD_BY_MEAL_TYPE = {
    MealType.BREAKFAST.value: "breakfast_options",
    MealType.LUNCH.value: "lunch_options",
    MealType.DINNER.value: "dinner_options",
}


def _new_order_id() -> str:
    return str(uuid.uuid4())


class MealOrder(Base):
    """One meal for one resident on one day."""

    __tablename__ = "meal_orders"
    __table_args__ = (
        UniqueConstraint("resident_id", "date", "meal_type", name="uq_meal_orders_resident_date_meal"),
        Index("ix_meal_orders_date", "date"),
        Index("ix_meal_orders_status", "status"),
        Index("ix_meal_orders_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_order_id)

    resident_id = Column(String(36), ForeignKey("residents.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    meal_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    urgent = Column(Boolean, nullable=False, default=False)

    # Optimistic locking: +1 on every accepted mutation. Writers that submit
    # a version only succeed while it still equals this column.
    version = Column(Integer, nullable=False, default=1)

    # Meal-type specific choices, stored with their wire (camelCase) keys.
    breakfast_options = Column(JSON, nullable=True)
    lunch_options = Column(JSON, nullable=True)
    dinner_options = Column(JSON, nullable=True)

    special_notes = Column(Text, nullable=True)

    prepared_at = Column(DateTime(timezone=True), nullable=True)
    prepared_by = Column(String(50), nullable=True)
    created_by = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    resident = relationship("Resident", back_populates="meal_orders")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

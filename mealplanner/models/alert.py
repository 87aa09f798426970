"""Kitchen alert model."""

import uuid
from enum import Enum

from sqlalchemy import Column, Index, String, Text, Boolean, DateTime
from sqlalchemy.sql import func
from ..database import Base


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Alert(Base):
    """Raised for the kitchen when a meal order becomes urgent.

    ``meal_order_id`` is a plain reference: alerts outlive the order when
    it is deleted or archived.
    """

    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_acknowledged", "acknowledged"),
        Index("ix_alerts_severity", "severity"),
        Index("ix_alerts_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    meal_order_id = Column(String(36), nullable=False, index=True)
    message = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False, default=AlertSeverity.MEDIUM.value)

    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_by = Column(String(50), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

"""User and AuditLog models.

Users carry one global role. AuditLog records every state-changing
operation and every denied attempt.
"""

from enum import Enum

from sqlalchemy import Column, Index, String, DateTime, Boolean, Integer, JSON
from sqlalchemy.sql import func
from ..database import Base


class Role(str, Enum):
    """Global roles.

    admin:     everything, including archive access
    kitchen:   reads all orders, moves them through preparation (status only)
    caregiver: creates orders and edits them while still pending
    """
    ADMIN = "admin"
    KITCHEN = "kitchen"
    CAREGIVER = "caregiver"


class User(Base):
    """User account with role-based access control."""

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="Default User")
    email = Column(String(255), unique=True, nullable=True)
    role = Column(String(20), nullable=False, default=Role.CAREGIVER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Fields:
        action:        data_create, data_update, data_delete, conflict_resolved,
                       unauthorized_access, archival_run
        resource_type: meal-orders, residents, archive
        resource_id:   ID of the affected resource
        details:       JSON object with additional context
    """

    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_resource", "resource_type", "resource_id"),
        Index("ix_audit_log_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Not a foreign key: anonymous and system actors are logged too.
    user_id = Column(String(50), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

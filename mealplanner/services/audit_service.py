"""Audit logging service: records state-changing operations and denials.

Entries are immutable. The service provides a write-only interface for the
application and a read interface for admins.

Usage in service layer:
    audit_service.log(db, user_id="alice", action="data_update",
                      resource_type="meal-orders", resource_id=order_id,
                      details={"changedFields": ["status"]})
"""

import logging
from typing import Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..models.user import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: Session,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> None:
    """Write and commit an audit log entry.

    Never raises: audit failures are logged but don't break operations.
    Call it after the audited change has been committed.
    """
    try:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or None,
            ip_address=ip_address,
        )
        db.add(entry)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to write audit log: %s", e)
        db.rollback()


def get_recent(
    db: Session,
    limit: int = 100,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    action: Optional[str] = None,
) -> list[AuditLog]:
    """Most recent entries, optionally narrowed to one resource or action."""
    query = db.query(AuditLog)
    if resource_type:
        query = query.filter(AuditLog.resource_type == resource_type)
    if resource_id:
        query = query.filter(AuditLog.resource_id == resource_id)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()


def get_older_than(db: Session, cutoff, limit: int) -> list[AuditLog]:
    """Entries created strictly before *cutoff*, oldest first (archival input)."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.created_at < cutoff)
        .order_by(AuditLog.created_at, AuditLog.id)
        .limit(limit)
        .all()
    )

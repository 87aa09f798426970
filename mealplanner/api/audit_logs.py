"""Audit log API (admin read-only)."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_policy
from ..database import get_db
from ..schemas.audit import AuditLogResponse
from ..services import audit_service

router = APIRouter(prefix="/api/audit-logs", tags=["audit"])


@router.get("", response_model=List[AuditLogResponse])
def list_audit_logs(
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    resource_id: Optional[str] = Query(None, alias="resourceId"),
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("audit.read")),
):
    """Most recent audit entries, optionally for one resource."""
    return audit_service.get_recent(db, limit, resource_type, resource_id, action)

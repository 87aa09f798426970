"""Audit log schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from .common import CamelModel


class AuditLogResponse(CamelModel):
    id: int
    user_id: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

"""Alert schemas."""

from datetime import datetime
from typing import Optional

from .common import CamelModel


class AlertResponse(CamelModel):
    id: str
    meal_order_id: str
    message: str
    severity: str
    acknowledged: bool
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AlertAcknowledgeResponse(CamelModel):
    success: bool = True
    alert: AlertResponse

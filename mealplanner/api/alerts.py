"""Kitchen alert endpoints (kitchen staff and admins)."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_policy
from ..database import get_db
from ..middleware.request_context import client_ip
from ..models import AlertSeverity
from ..schemas.alert import AlertAcknowledgeResponse, AlertResponse
from ..services import AlertService

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.get("", response_model=List[AlertResponse])
def list_alerts(
    acknowledged: Optional[bool] = None,
    severity: Optional[AlertSeverity] = None,
    meal_order_id: Optional[str] = Query(None, alias="mealOrderId"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("alert.read")),
):
    """List alerts, newest first. ``acknowledged=false`` gives the open ones."""
    return AlertService(db).list_alerts(
        skip, limit, acknowledged, severity.value if severity else None, meal_order_id,
    )


@router.post("/{alert_id}/acknowledge", response_model=AlertAcknowledgeResponse)
def acknowledge_alert(
    alert_id: str,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("alert.acknowledge")),
):
    return AlertService(db).acknowledge(alert_id, auth.user_id, client_ip(request))

"""Kitchen alerts for urgent meal orders.

An alert is raised when an order is created urgent, or when a write flips
``urgent`` from false to true. Raising happens inside the caller's
transaction so the alert commits together with the order change. Only
kitchen staff and admins see and acknowledge alerts.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import AlertAlreadyAcknowledgedError
from ..models import Alert, AlertSeverity, Resident
from ..repositories import AlertRepository
from ..schemas.alert import AlertAcknowledgeResponse, AlertResponse
from . import audit_service

logger = logging.getLogger(__name__)

COLLECTION = "alerts"


def urgent_order_message(meal_type: str, resident: Optional[Resident]) -> str:
    name = resident.name if resident is not None else "Unknown"
    room = resident.room_number if resident is not None else "N/A"
    return f"Urgent {meal_type.capitalize()} order for {name} (Room {room})"


def needs_urgent_alert(before: Optional[dict], after: dict) -> bool:
    """True when *after* is urgent and *before* (None on create) was not."""
    if not after.get("urgent"):
        return False
    return before is None or not before.get("urgent")


class AlertService:

    def __init__(self, db: Session):
        self.db = db
        self.repo = AlertRepository(db)

    def raise_urgent_alert(self, meal_order_id: str, meal_type: str, resident: Optional[Resident]) -> Alert:
        """Add a high-severity alert for an order. Does not commit."""
        alert = self.repo.create(
            meal_order_id=meal_order_id,
            message=urgent_order_message(meal_type, resident),
            severity=AlertSeverity.HIGH.value,
        )
        logger.info("Raised urgent alert %s for meal order %s", alert.id, meal_order_id)
        return alert

    def list_alerts(
        self,
        skip: int = 0,
        limit: int = 100,
        acknowledged: Optional[bool] = None,
        severity: Optional[str] = None,
        meal_order_id: Optional[str] = None,
    ) -> List[AlertResponse]:
        alerts = self.repo.get_all(skip, limit, acknowledged, severity, meal_order_id)
        return [AlertResponse.model_validate(a) for a in alerts]

    def acknowledge(self, alert_id: str, actor_id: str, ip_address: Optional[str] = None) -> AlertAcknowledgeResponse:
        """Acknowledge an alert once. A second acknowledgement answers 409."""
        self.repo.get_by_id(alert_id)

        if not self.repo.acknowledge(alert_id, actor_id, datetime.now(timezone.utc)):
            self.db.rollback()
            alert = self.repo.get_by_id(alert_id)
            acknowledged_at = alert.acknowledged_at.isoformat() if alert.acknowledged_at else None
            raise AlertAlreadyAcknowledgedError(alert_id, alert.acknowledged_by, acknowledged_at)
        self.db.commit()

        alert = self.repo.get_by_id(alert_id)
        logger.info("Alert %s acknowledged by %s", alert_id, actor_id)
        audit_service.log(
            self.db, user_id=actor_id, action="data_update", resource_type=COLLECTION,
            resource_id=alert_id, details={"acknowledged": True}, ip_address=ip_address,
        )
        return AlertAcknowledgeResponse(alert=AlertResponse.model_validate(alert))

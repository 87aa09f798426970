"""Alert repository."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import update

from ..models import Alert
from ..exceptions import AlertNotFoundError
from .base import BaseRepository


class AlertRepository(BaseRepository[Alert]):

    model_class = Alert
    not_found_error = AlertNotFoundError

    def create(self, meal_order_id: str, message: str, severity: str) -> Alert:
        return self._insert(Alert(meal_order_id=meal_order_id, message=message, severity=severity))

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        acknowledged: Optional[bool] = None,
        severity: Optional[str] = None,
        meal_order_id: Optional[str] = None,
    ) -> List[Alert]:
        """Alerts, newest first."""
        query = self._base_query()
        if acknowledged is not None:
            query = query.filter(Alert.acknowledged.is_(acknowledged))
        if severity:
            query = query.filter(Alert.severity == severity)
        if meal_order_id:
            query = query.filter(Alert.meal_order_id == meal_order_id)
        return (
            query.order_by(Alert.created_at.desc(), Alert.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def acknowledge(self, alert_id: str, user_id: str, at: datetime) -> bool:
        """Mark an alert acknowledged unless someone already did.

        Returns False when the alert was already acknowledged. The check and
        the write are one UPDATE, so only one acknowledger wins.
        """
        stmt = (
            update(Alert)
            .where(Alert.id == alert_id)
            .where(Alert.acknowledged.is_(False))
            .values(acknowledged=True, acknowledged_by=user_id, acknowledged_at=at)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.expire_all()
        return result.rowcount == 1

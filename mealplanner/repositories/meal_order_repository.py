"""Meal order repository for database operations.

Owns the compare-and-swap write that backs optimistic locking: the version
check and the increment happen in one UPDATE statement, so two writers
holding the same version can never both succeed.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, cast, update

from ..models import MealOrder, Resident
from ..models.meal_order import TERMINAL_STATUSES
from ..exceptions import MealOrderNotFoundError
from .base import BaseRepository


class MealOrderRepository(BaseRepository[MealOrder]):
    """Repository for meal order CRUD operations."""

    model_class = MealOrder
    not_found_error = MealOrderNotFoundError

    def create(self, values: Dict[str, Any]) -> MealOrder:
        """Insert a new order at version 1."""
        return self._insert(MealOrder(**values, version=1))

    def find_existing(self, resident_id: str, order_date: date, meal_type: str) -> Optional[MealOrder]:
        """Get the order for a resident, date and meal type, if any."""
        return self._base_query().filter(
            MealOrder.resident_id == resident_id,
            MealOrder.date == order_date,
            MealOrder.meal_type == meal_type,
        ).first()

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_date: Optional[date] = None,
        status: Optional[str] = None,
        meal_type: Optional[str] = None,
        resident_id: Optional[str] = None,
    ) -> List[MealOrder]:
        """Get orders with pagination and optional filters, newest day first."""
        query = self._base_query()
        if order_date is not None:
            query = query.filter(MealOrder.date == order_date)
        if status:
            query = query.filter(MealOrder.status == status)
        if meal_type:
            query = query.filter(MealOrder.meal_type == meal_type)
        if resident_id:
            query = query.filter(MealOrder.resident_id == resident_id)
        return (
            query.order_by(MealOrder.date.desc(), MealOrder.created_at.desc(), MealOrder.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def search(
        self,
        offset: int,
        limit: int,
        resident_name: Optional[str] = None,
        room_number: Optional[str] = None,
        dietary_restriction: Optional[str] = None,
        meal_type: Optional[str] = None,
        status: Optional[str] = None,
        urgent: Optional[bool] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[MealOrder], int]:
        """Filter orders by their own fields and their resident's.

        Returns one page, newest day first, and the total match count.
        """
        query = self._base_query()
        if resident_name or room_number or dietary_restriction:
            query = query.join(Resident, MealOrder.resident_id == Resident.id)
            if resident_name:
                query = query.filter(Resident.name.ilike(f"%{resident_name}%"))
            if room_number:
                query = query.filter(Resident.room_number.ilike(f"%{room_number}%"))
            if dietary_restriction:
                # JSON list matched on its text form
                query = query.filter(cast(Resident.dietary_restrictions, String).ilike(f"%{dietary_restriction}%"))
        if meal_type:
            query = query.filter(MealOrder.meal_type == meal_type)
        if status:
            query = query.filter(MealOrder.status == status)
        if urgent is not None:
            query = query.filter(MealOrder.urgent.is_(urgent))
        if start_date is not None:
            query = query.filter(MealOrder.date >= start_date)
        if end_date is not None:
            query = query.filter(MealOrder.date <= end_date)

        total = query.count()
        items = (
            query.order_by(MealOrder.date.desc(), MealOrder.created_at.desc(), MealOrder.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def count(self) -> int:
        return self._base_query().count()

    def get_for_update(self, order_id: str) -> MealOrder:
        """Re-read an order, locking the row until the transaction ends.

        The lock applies on PostgreSQL; SQLite has no row locks and the
        clause is omitted there.
        """
        order = (
            self._base_query()
            .filter(MealOrder.id == order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if order is None:
            raise MealOrderNotFoundError(order_id)
        return order

    def compare_and_swap(
        self,
        order_id: str,
        values: Dict[str, Any],
        expected_version: Optional[int],
    ) -> Optional[MealOrder]:
        """Apply *values* and bump the version in a single UPDATE.

        When *expected_version* is given the statement carries
        ``AND version = :expected_version``. Returns the fresh row on
        success, ``None`` when the row exists but its version no longer
        matches. Raises MealOrderNotFoundError when the row is gone.
        """
        stmt = update(MealOrder).where(MealOrder.id == order_id)
        if expected_version is not None:
            stmt = stmt.where(MealOrder.version == expected_version)
        stmt = stmt.values(**values, version=MealOrder.version + 1).execution_options(
            synchronize_session=False
        )

        result = self.db.execute(stmt)

        # Expire the identity map so the reload sees the row as written
        self.db.expire_all()
        if result.rowcount == 0:
            if self.get_by_id_optional(order_id) is None:
                raise MealOrderNotFoundError(order_id)
            return None
        return self.get_by_id(order_id)

    def delete(self, db_order: MealOrder) -> None:
        self.db.delete(db_order)
        self.db.flush()

    def get_archivable(self, cutoff: datetime, limit: int) -> List[MealOrder]:
        """Terminal orders created strictly before *cutoff*, oldest first."""
        return (
            self._base_query()
            .filter(MealOrder.status.in_(sorted(TERMINAL_STATUSES)))
            .filter(MealOrder.created_at < cutoff)
            .order_by(MealOrder.created_at, MealOrder.id)
            .limit(limit)
            .all()
        )

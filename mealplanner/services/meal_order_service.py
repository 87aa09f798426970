"""Meal order service: lifecycle of meal orders under optimistic locking.

Every accepted mutation goes through the same sequence:

    access policy  ->  version check  ->  compare-and-swap UPDATE
    ->  urgent alert  ->  snapshot (savepoint)  ->  commit
    ->  cache invalidation  ->  audit

A stale version never reaches the UPDATE without its own version predicate,
so two writers holding the same version cannot both succeed.
"""

import logging
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import sqlalchemy.exc
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..models import MealOrder, ChangeType, OrderStatus
from ..models.meal_order import OPTIONS_FIELD_BY_MEAL_TYPE
from ..repositories import MealOrderRepository, ResidentRepository, VersionedRecordRepository
from ..schemas.meal_order import (
    MealOrderCreate, MealOrderUpdate, MealOrderResponse, MealOrderFilter, MealOrderSearch, MealOrderSearchResults,
)
from ..schemas.versioned_record import VersionedRecordResponse
from ..exceptions import (
    ConflictError, DuplicateMealOrderError, ForbiddenError, MealOrderNotFoundError, ValidationError,
)
from . import access_policy, audit_service
from .alert_service import AlertService, needs_urgent_alert
from .cache_service import entity_cache
from .conflict_detector import ConflictReport, VersionCheck, check_version
from .snapshot_recorder import SnapshotRecorder, compute_changed_fields

logger = logging.getLogger(__name__)

COLLECTION = "meal-orders"

# Columns that cannot be cleared through a patch.
_REQUIRED_FIELDS = ("resident_id", "date", "meal_type", "status", "urgent")


def to_wire(order: MealOrder) -> Dict[str, Any]:
    """Full JSON form of an order as clients see it (camelCase)."""
    return MealOrderResponse.model_validate(order).to_wire(exclude={"warnings"})


def _to_columns(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Schema values to column values (options groups stored with wire keys)."""
    values = {}
    for name, value in changes.items():
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json", by_alias=True)
        elif isinstance(value, Enum):
            value = value.value
        values[name] = value
    return values


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class MealOrderService:
    """Create, read, update and delete meal orders with version history."""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = MealOrderRepository(db)
        self.resident_repo = ResidentRepository(db)
        self.version_repo = VersionedRecordRepository(db)
        self.recorder = SnapshotRecorder(db)
        self.alerts = AlertService(db)

    # -- reads ---------------------------------------------------------

    def get_order(self, order_id: str) -> MealOrderResponse:
        """Get one order, served from the entity cache when warm."""
        wire = entity_cache.get(COLLECTION, order_id)
        if wire is None:
            wire = to_wire(self.order_repo.get_by_id(order_id))
            entity_cache.set(COLLECTION, order_id, wire)
        return MealOrderResponse.model_validate(wire)

    def list_orders(self, filters: MealOrderFilter) -> List[MealOrderResponse]:
        orders = self.order_repo.get_all(
            skip=filters.skip,
            limit=filters.limit,
            order_date=filters.date,
            status=filters.status.value if filters.status else None,
            meal_type=filters.meal_type.value if filters.meal_type else None,
            resident_id=filters.resident_id,
        )
        return [MealOrderResponse.model_validate(order) for order in orders]

    def search_orders(self, criteria: MealOrderSearch) -> MealOrderSearchResults:
        """One page of orders matching *criteria*, newest day first."""
        if criteria.start_date and criteria.end_date and criteria.start_date > criteria.end_date:
            raise ValidationError("startDate must not be after endDate", field="startDate")

        orders, total = self.order_repo.search(
            offset=(criteria.page - 1) * criteria.limit,
            limit=criteria.limit,
            resident_name=criteria.resident_name,
            room_number=criteria.room_number,
            dietary_restriction=criteria.dietary_restrictions,
            meal_type=criteria.meal_type.value if criteria.meal_type else None,
            status=criteria.status.value if criteria.status else None,
            urgent=criteria.urgent,
            start_date=criteria.start_date,
            end_date=criteria.end_date,
        )
        total_pages = math.ceil(total / criteria.limit)
        return MealOrderSearchResults(
            docs=[MealOrderResponse.model_validate(o) for o in orders],
            total_docs=total,
            limit=criteria.limit,
            page=criteria.page,
            total_pages=total_pages,
            has_next_page=criteria.page < total_pages,
            has_prev_page=criteria.page > 1,
            filters=criteria.applied(),
        )

    def get_versions(self, order_id: str, skip: int = 0, limit: int = 50) -> List[VersionedRecordResponse]:
        """Snapshot history, newest first.

        History outlives the order itself; 404 only when neither exists.
        """
        records = self.version_repo.get_by_document(COLLECTION, order_id, skip, limit)
        if not records and skip == 0 and self.order_repo.get_by_id_optional(order_id) is None:
            raise MealOrderNotFoundError(order_id)
        return [VersionedRecordResponse.model_validate(r) for r in records]

    # -- writes --------------------------------------------------------

    def create_order(self, data: MealOrderCreate, actor_id: str, ip_address: Optional[str] = None) -> MealOrderResponse:
        """Create an order at version 1 and record its initial snapshot."""
        resident = self.resident_repo.get_by_id(data.resident_id)
        if not resident.active:
            raise ValidationError("Cannot create meal orders for inactive residents", field="residentId")

        options_field = OPTIONS_FIELD_BY_MEAL_TYPE[data.meal_type.value]
        if getattr(data, options_field) is None:
            raise ValidationError(
                f"{_camel(options_field)} are required for {data.meal_type.value} orders",
                field=_camel(options_field),
            )

        if self.order_repo.find_existing(data.resident_id, data.date, data.meal_type.value):
            raise DuplicateMealOrderError(data.resident_id, data.date.isoformat(), data.meal_type.value)

        values = _to_columns({name: getattr(data, name) for name in MealOrderCreate.model_fields})
        values["created_by"] = actor_id
        try:
            order = self.order_repo.create(values)
        except sqlalchemy.exc.IntegrityError:
            # Lost a race with a concurrent create for the same slot
            self.db.rollback()
            raise DuplicateMealOrderError(data.resident_id, data.date.isoformat(), data.meal_type.value)

        wire = to_wire(order)
        if needs_urgent_alert(None, wire):
            self.alerts.raise_urgent_alert(order.id, order.meal_type, resident)
        warning = self.recorder.record_or_warn(COLLECTION, order.id, wire, ChangeType.CREATE.value, [], actor_id)
        self.db.commit()

        entity_cache.invalidate(COLLECTION, order.id)
        logger.info("Created meal order %s (%s %s) by %s", order.id, data.meal_type.value, data.date, actor_id)
        audit_service.log(
            self.db, user_id=actor_id, action="data_create", resource_type=COLLECTION,
            resource_id=wire["id"], details={"version": 1}, ip_address=ip_address,
        )
        return self._response(wire, warning)

    def update_order(
        self,
        order_id: str,
        update: MealOrderUpdate,
        actor_id: str,
        role: str,
        ip_address: Optional[str] = None,
    ) -> MealOrderResponse:
        """Apply a partial update guarded by the submitted version.

        Raises ConflictError (409) when ``update.version`` is stale, either
        at the pre-check or because another writer won the UPDATE.
        """
        current = self.order_repo.get_by_id(order_id)
        changes = update.changes()
        self.authorize_write(current, changes, actor_id, role, ip_address)

        check = check_version(current.version, update.version)
        if check is VersionCheck.MISMATCH:
            report = ConflictReport(order_id, to_wire(current), update.to_wire(exclude_unset=True))
            raise self._conflict(report, actor_id)

        order, warning, changed = self.apply_write(
            current, changes, expected_version=update.version, actor_id=actor_id,
            submitted=update.to_wire(exclude_unset=True),
        )

        if check is VersionCheck.SKIPPED:
            logger.info("Unversioned write to meal order %s by %s (version check skipped)", order_id, actor_id)
        audit_service.log(
            self.db, user_id=actor_id, action="data_update", resource_type=COLLECTION, resource_id=order_id,
            details={
                "changedFields": changed,
                "fromVersion": order["version"] - 1,
                "toVersion": order["version"],
                "versionCheck": check.value,
            },
            ip_address=ip_address,
        )
        return self._response(order, warning)

    def apply_write(
        self,
        current: MealOrder,
        changes: Dict[str, Any],
        expected_version: Optional[int],
        actor_id: str,
        submitted: Dict[str, Any],
        is_resolution: bool = False,
        changed_fields: Optional[List[str]] = None,
    ) -> tuple[Dict[str, Any], Optional[str], List[str]]:
        """Compare-and-swap *changes* onto *current*, snapshot, commit.

        Returns (new wire document, snapshot warning or None, changed fields).
        When *changed_fields* is None they are computed from the stored
        before/after documents.
        """
        order_id = current.id
        if expected_version is None:
            # Unversioned write: lock and re-read the row, then pin the UPDATE
            # to the version the snapshot is taken from.
            current = self.order_repo.get_for_update(order_id)
            expected_version = current.version
        before = to_wire(current)
        self._validate_changes(current, changes)

        values = _to_columns(changes)
        if (
            values.get("status") == OrderStatus.PREPARED.value
            and current.status != OrderStatus.PREPARED.value
            and current.prepared_at is None
        ):
            values["prepared_at"] = datetime.now(timezone.utc)
            values["prepared_by"] = actor_id

        try:
            updated = self.order_repo.compare_and_swap(order_id, values, expected_version)
        except sqlalchemy.exc.IntegrityError:
            self.db.rollback()
            raise DuplicateMealOrderError(
                values.get("resident_id", current.resident_id),
                str(values.get("date", current.date)),
                values.get("meal_type", current.meal_type),
            )

        if updated is None:
            self.db.rollback()
            fresh = to_wire(self.order_repo.get_by_id(order_id))
            raise self._conflict(ConflictReport(order_id, fresh, submitted), actor_id)

        after = to_wire(updated)
        if needs_urgent_alert(before, after):
            resident = self.resident_repo.get_by_id_optional(updated.resident_id)
            self.alerts.raise_urgent_alert(order_id, updated.meal_type, resident)
        if changed_fields is None:
            changed_fields = compute_changed_fields(before, after)

        warning = self.recorder.record_or_warn(
            COLLECTION, order_id, before, ChangeType.UPDATE.value, changed_fields, actor_id, is_resolution,
        )
        self.db.commit()
        entity_cache.invalidate(COLLECTION, order_id)

        logger.info(
            "Updated meal order %s v%d -> v%d by %s fields=%s",
            order_id, before["version"], after["version"], actor_id, changed_fields,
        )
        return after, warning, changed_fields

    def delete_order(self, order_id: str, actor_id: str, ip_address: Optional[str] = None) -> Optional[str]:
        """Hard-delete a finished order, keeping its history.

        Returns the snapshot warning, if any.
        """
        order = self.order_repo.get_by_id(order_id)
        if not order.is_terminal:
            raise ValidationError("Only prepared or completed meal orders can be deleted", field="status")

        before = to_wire(order)
        self.order_repo.delete(order)
        warning = self.recorder.record_or_warn(COLLECTION, order_id, before, ChangeType.DELETE.value, [], actor_id)
        self.db.commit()

        entity_cache.invalidate(COLLECTION, order_id)
        logger.info("Deleted meal order %s (v%d) by %s", order_id, before["version"], actor_id)
        audit_service.log(
            self.db, user_id=actor_id, action="data_delete", resource_type=COLLECTION,
            resource_id=order_id, details={"version": before["version"]}, ip_address=ip_address,
        )
        return warning

    # -- helpers -------------------------------------------------------

    def authorize_write(self, current: MealOrder, changes: Dict[str, Any], actor_id: str, role: str,
                        ip_address: Optional[str] = None) -> None:
        """Apply the role policy to an edit; audit and raise 403 on denial.

        Only fields whose value actually differs count, so a full document
        echoed back with an unchanged status is not a status change.
        """
        effective = [
            name for name, value in _to_columns(changes).items()
            if getattr(current, name) != value
        ]
        denial = access_policy.check_order_write(role, current.status, effective)
        if denial is None:
            return
        logger.warning("Denied write to meal order %s by %s (%s): %s", current.id, actor_id, role, denial)
        audit_service.log(
            self.db, user_id=actor_id, action="unauthorized_access", resource_type=COLLECTION,
            resource_id=current.id,
            details={"role": role, "fields": sorted(effective), "status": current.status, "reason": denial},
            ip_address=ip_address,
        )
        raise ForbiddenError(denial)

    def _validate_changes(self, current: MealOrder, changes: Dict[str, Any]) -> None:
        for name in _REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise ValidationError(f"{_camel(name)} cannot be null", field=_camel(name))

        if "resident_id" in changes and changes["resident_id"] != current.resident_id:
            resident = self.resident_repo.get_by_id(changes["resident_id"])
            if not resident.active:
                raise ValidationError("Cannot move meal orders to inactive residents", field="residentId")

        if "meal_type" in changes:
            meal_type = changes["meal_type"].value
            options_field = OPTIONS_FIELD_BY_MEAL_TYPE[meal_type]
            options = changes[options_field] if options_field in changes else getattr(current, options_field)
            if options is None:
                raise ValidationError(
                    f"{_camel(options_field)} are required for {meal_type} orders",
                    field=_camel(options_field),
                )

    def _conflict(self, report: ConflictReport, actor_id: str) -> ConflictError:
        logger.info(
            "Version conflict on meal order %s: server v%s, submitted v%s (actor %s)",
            report.document_id, report.current_version, report.submitted_version, actor_id,
        )
        return ConflictError(report.document_id, report.current, report.submitted)

    @staticmethod
    def _response(wire: Dict[str, Any], warning: Optional[str]) -> MealOrderResponse:
        response = MealOrderResponse.model_validate(wire)
        if warning:
            response.warnings = [warning]
        return response

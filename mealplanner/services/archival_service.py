"""Archival sweep: moves expired rows from primary storage to the archive.

Three data types are swept, each with its own retention period:

    versioned-records   snapshots older than RETENTION_VERSIONED_RECORDS_DAYS
    audit-logs          entries older than RETENTION_AUDIT_LOGS_DAYS
    meal-orders         prepared/completed orders older than
                        RETENTION_COMPLETED_ORDERS_DAYS (pending never moves)

Each row moves in two committed steps: copy to ``archived_records`` (skipped
when an entry for the same source row already exists) then delete the
original. A crash between the steps leaves a copy whose original is deleted
by the next sweep, so a row is never lost and never archived twice.

One sweep runs at a time per process; the state machine is
idle -> scanning -> archiving -> idle.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import Settings, settings
from ..exceptions import ArchivalInProgressError, ArchivedRecordNotFoundError, ValidationError
from ..repositories import ArchivedRecordRepository, MealOrderRepository, VersionedRecordRepository
from ..schemas.archived_record import ArchivedLookupResponse, ArchivedRecordResponse, SweepFailure, SweepResult
from ..schemas.audit import AuditLogResponse
from ..schemas.versioned_record import VersionedRecordResponse
from . import audit_service
from .cache_service import entity_cache
from .meal_order_service import to_wire as order_to_wire

logger = logging.getLogger(__name__)

VERSIONED_RECORDS = "versioned-records"
AUDIT_LOGS = "audit-logs"
MEAL_ORDERS = "meal-orders"

VALID_COLLECTIONS = frozenset({MEAL_ORDERS, VERSIONED_RECORDS, AUDIT_LOGS})


class ArchivalState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ARCHIVING = "archiving"


_sweep_lock = threading.Lock()
_state = ArchivalState.IDLE


def get_state() -> ArchivalState:
    return _state


def _set_state(state: ArchivalState) -> None:
    global _state
    _state = state
    logger.debug("Archival state: %s", state.value)


@dataclass(frozen=True)
class RetentionPolicy:
    """Retention periods in days plus scheduling knobs."""

    versioned_records_days: int = 365
    audit_logs_days: int = 730
    completed_orders_days: int = 90
    enabled: bool = False
    schedule_hour: int = 2
    batch_size: int = 1000

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "RetentionPolicy":
        return cls(
            versioned_records_days=config.retention_versioned_records_days,
            audit_logs_days=config.retention_audit_logs_days,
            completed_orders_days=config.retention_completed_orders_days,
            enabled=config.archival_enabled,
            schedule_hour=config.archival_schedule_hour,
            batch_size=config.archival_batch_size,
        )

    def days_for(self, data_type: str) -> int:
        return {
            VERSIONED_RECORDS: self.versioned_records_days,
            AUDIT_LOGS: self.audit_logs_days,
            MEAL_ORDERS: self.completed_orders_days,
        }[data_type]


def should_run(now: datetime, policy: RetentionPolicy) -> bool:
    """True when scheduled archival is enabled and *now* is the scheduled hour."""
    return policy.enabled and now.hour == policy.schedule_hour


@dataclass
class _Candidate:
    """One row about to move, captured before any commit expires it."""

    row: Any
    collection_name: str
    document_id: str
    source_id: str
    data: Dict[str, Any]
    original_created_at: Optional[datetime]
    record_version: Optional[int] = None


class ArchivalService:
    """Runs sweeps and serves archived data."""

    def __init__(self, db: Session, policy: Optional[RetentionPolicy] = None):
        self.db = db
        self.policy = policy or RetentionPolicy.from_settings()
        self.archive_repo = ArchivedRecordRepository(db)
        self.version_repo = VersionedRecordRepository(db)
        self.order_repo = MealOrderRepository(db)

    def run_sweep(self, trigger: str = "manual", actor_id: Optional[str] = None,
                  now: Optional[datetime] = None) -> SweepResult:
        """Archive every expired row of every data type (one batch each).

        Raises ArchivalInProgressError when another sweep holds the lock.
        Row-level failures do not abort the sweep; they are reported in
        ``partial_failures`` and retried next time.
        """
        if not _sweep_lock.acquire(blocking=False):
            raise ArchivalInProgressError(_state.value)

        now = now or datetime.now(timezone.utc)
        result = SweepResult(trigger=trigger, started_at=now)
        logger.info("Archival sweep started (trigger=%s)", trigger)
        try:
            scanners: List[tuple[str, Callable[[datetime], List[_Candidate]]]] = [
                (VERSIONED_RECORDS, self._scan_versioned_records),
                (AUDIT_LOGS, self._scan_audit_logs),
                (MEAL_ORDERS, self._scan_meal_orders),
            ]
            for data_type, scan in scanners:
                cutoff = now - timedelta(days=self.policy.days_for(data_type))
                _set_state(ArchivalState.SCANNING)
                candidates = scan(cutoff)

                _set_state(ArchivalState.ARCHIVING)
                moved = [c for c in candidates if self._archive_one(data_type, c, result)]
                result.archived[data_type] = len(moved)

                if data_type == MEAL_ORDERS:
                    entity_cache.invalidate_many(MEAL_ORDERS, [c.document_id for c in moved])
                logger.info(
                    "Archived %d/%d %s created before %s",
                    len(moved), len(candidates), data_type, cutoff.isoformat(),
                )
        finally:
            _set_state(ArchivalState.IDLE)
            _sweep_lock.release()

        result.finished_at = datetime.now(timezone.utc)
        if result.partial_failures:
            logger.warning(
                "Archival sweep finished with %d failure(s); they will be retried next run",
                len(result.partial_failures),
            )
        logger.info(
            "Archival sweep finished: archived=%s resumed=%d", result.archived, result.resumed,
        )

        audit_service.log(
            self.db,
            user_id=actor_id or "system",
            action="archival_run",
            resource_type="archive",
            details=result.to_wire(),
        )
        return result

    # -- scanning ------------------------------------------------------

    def _scan_versioned_records(self, cutoff: datetime) -> List[_Candidate]:
        return [
            _Candidate(
                row=record,
                collection_name=record.collection_name,
                document_id=record.document_id,
                source_id=str(record.id),
                data=VersionedRecordResponse.model_validate(record).to_wire(),
                original_created_at=record.created_at,
                record_version=record.version,
            )
            for record in self.version_repo.get_older_than(cutoff, self.policy.batch_size)
        ]

    def _scan_audit_logs(self, cutoff: datetime) -> List[_Candidate]:
        return [
            _Candidate(
                row=entry,
                collection_name=AUDIT_LOGS,
                document_id=str(entry.id),
                source_id=str(entry.id),
                data=AuditLogResponse.model_validate(entry).to_wire(),
                original_created_at=entry.created_at,
            )
            for entry in audit_service.get_older_than(self.db, cutoff, self.policy.batch_size)
        ]

    def _scan_meal_orders(self, cutoff: datetime) -> List[_Candidate]:
        return [
            _Candidate(
                row=order,
                collection_name=MEAL_ORDERS,
                document_id=order.id,
                source_id=order.id,
                data=order_to_wire(order),
                original_created_at=order.created_at,
            )
            for order in self.order_repo.get_archivable(cutoff, self.policy.batch_size)
        ]

    # -- moving --------------------------------------------------------

    def _archive_one(self, data_type: str, candidate: _Candidate, result: SweepResult) -> bool:
        """Copy then delete one row. Returns True when the original is gone."""
        try:
            if self.archive_repo.get_by_source(data_type, candidate.source_id) is None:
                self.archive_repo.create(
                    collection_name=candidate.collection_name,
                    document_id=candidate.document_id,
                    source_collection=data_type,
                    source_id=candidate.source_id,
                    data=candidate.data,
                    original_created_at=candidate.original_created_at,
                    retention_period_days=self.policy.days_for(data_type),
                    record_version=candidate.record_version,
                )
                self.db.commit()
            else:
                # Copied by an interrupted earlier sweep
                result.resumed += 1

            self._delete_source(candidate.row)
            self.db.commit()
            return True
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Failed to archive %s %s: %s", data_type, candidate.source_id, e)
            result.partial_failures.append(
                SweepFailure(data_type=data_type, record_id=candidate.source_id, error=type(e).__name__)
            )
            return False

    def _delete_source(self, row: Any) -> None:
        self.db.delete(row)
        self.db.flush()

    # -- retrieval -----------------------------------------------------

    def get_archived(self, collection: str, document_id: str) -> ArchivedLookupResponse:
        """The archived payload for a document, with every related entry."""
        if collection not in VALID_COLLECTIONS:
            raise ValidationError(
                f"Invalid collection '{collection}'. Expected one of: {', '.join(sorted(VALID_COLLECTIONS))}",
                field="collection",
            )

        records = self.archive_repo.find(collection, document_id)
        if not records:
            raise ArchivedRecordNotFoundError(collection, document_id)

        # The document's own archived row wins over archived snapshots of it
        own = [r for r in records if r.source_collection == collection and r.source_id == document_id]
        chosen = own[0] if own else records[0]
        return ArchivedLookupResponse(
            collection=collection,
            document_id=document_id,
            data=chosen.data,
            record=ArchivedRecordResponse.model_validate(chosen),
            retrieved_at=datetime.now(timezone.utc),
            history=[ArchivedRecordResponse.model_validate(r) for r in records],
        )

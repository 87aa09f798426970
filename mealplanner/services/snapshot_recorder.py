"""Version history: one immutable snapshot per accepted mutation.

A snapshot holds the document as it was *before* the change (for a create,
the initial state) plus the top-level fields the change touched. Snapshot
numbers form a per-document sequence 1, 2, 3... that keeps counting after
old snapshots have been archived.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..models import VersionedRecord
from ..repositories import VersionedRecordRepository

logger = logging.getLogger(__name__)

# Wire names of the fields whose changes are reported on ordinary updates.
TRACKED_FIELDS = (
    "residentId",
    "date",
    "mealType",
    "status",
    "urgent",
    "breakfastOptions",
    "lunchOptions",
    "dinnerOptions",
    "specialNotes",
    "preparedAt",
    "preparedBy",
)

# Fields a conflict resolution can carry; preparation stamps are server-set.
RESOLUTION_FIELDS = TRACKED_FIELDS[:9]

SNAPSHOT_WARNING = "Version history could not be recorded for this change"


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def compute_changed_fields(
    before: Dict[str, Any],
    after: Dict[str, Any],
    fields: Iterable[str] = TRACKED_FIELDS,
) -> List[str]:
    """Fields in *fields* whose JSON value differs, in *fields* order.

    Only keys present in *after* are compared, so a partial document
    (a merge, a patch) reports only what it actually supplies.
    """
    return [
        name for name in fields
        if name in after and _canonical(before.get(name)) != _canonical(after[name])
    ]


class SnapshotRecorder:
    """Writes VersionedRecord rows in the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VersionedRecordRepository(db)

    def record(
        self,
        collection_name: str,
        document_id: str,
        snapshot: Dict[str, Any],
        change_type: str,
        changed_fields: List[str],
        changed_by: Optional[str],
        is_resolution: bool = False,
    ) -> VersionedRecord:
        return self.repo.create(
            collection_name=collection_name,
            document_id=document_id,
            snapshot=snapshot,
            change_type=change_type,
            changed_fields=changed_fields,
            changed_by=changed_by,
            is_resolution=is_resolution,
        )

    def record_or_warn(self, collection_name: str, document_id: str, snapshot: Dict[str, Any], change_type: str,
                       changed_fields: List[str], changed_by: Optional[str], is_resolution: bool = False) -> Optional[str]:
        """Record inside a SAVEPOINT; on failure keep the primary write.

        Must be called after the primary write has been flushed. Returns
        None on success, or a warning for the response when the snapshot
        could not be written (only the savepoint is rolled back).
        """
        try:
            with self.db.begin_nested():
                record = self.record(
                    collection_name, document_id, snapshot, change_type,
                    changed_fields, changed_by, is_resolution,
                )
        except sqlalchemy.exc.SQLAlchemyError as e:
            logger.warning(
                "Snapshot write failed for %s/%s (%s): %s",
                collection_name, document_id, change_type, e,
            )
            return SNAPSHOT_WARNING

        logger.debug(
            "Recorded snapshot %s/%s v%d (%s) fields=%s",
            collection_name, document_id, record.version, change_type, changed_fields,
        )
        return None

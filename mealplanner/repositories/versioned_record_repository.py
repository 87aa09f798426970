"""Version snapshot repository."""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import func

from ..models import VersionedRecord, ArchivedRecord
from .base import BaseRepository


class VersionedRecordRepository(BaseRepository[VersionedRecord]):
    """Snapshots are insert-only; the archival sweep is the only deleter."""

    model_class = VersionedRecord

    def next_version(self, collection_name: str, document_id: str) -> int:
        """Next snapshot sequence number for a document.

        Snapshots already moved to the archive still count, so the
        sequence never reuses a number after a sweep.
        """
        live = self.db.query(func.max(VersionedRecord.version)).filter(
            VersionedRecord.collection_name == collection_name,
            VersionedRecord.document_id == document_id,
        ).scalar()
        archived = self.db.query(func.max(ArchivedRecord.record_version)).filter(
            ArchivedRecord.source_collection == "versioned-records",
            ArchivedRecord.collection_name == collection_name,
            ArchivedRecord.document_id == document_id,
        ).scalar()
        return max(live or 0, archived or 0) + 1

    def create(
        self,
        collection_name: str,
        document_id: str,
        snapshot: Dict[str, Any],
        change_type: str,
        changed_fields: List[str],
        changed_by: str | None,
        is_resolution: bool = False,
    ) -> VersionedRecord:
        db_record = VersionedRecord(
            collection_name=collection_name,
            document_id=document_id,
            version=self.next_version(collection_name, document_id),
            snapshot=snapshot,
            change_type=change_type,
            changed_fields=list(changed_fields),
            changed_by=changed_by,
            is_resolution=is_resolution,
        )
        return self._insert(db_record)

    def get_by_document(self, collection_name: str, document_id: str, skip: int = 0, limit: int = 50) -> List[VersionedRecord]:
        """Get snapshots for a document, newest first."""
        return self.db.query(VersionedRecord).filter(
            VersionedRecord.collection_name == collection_name,
            VersionedRecord.document_id == document_id,
        ).order_by(VersionedRecord.version.desc()).offset(skip).limit(limit).all()

    def get_older_than(self, cutoff: datetime, limit: int) -> List[VersionedRecord]:
        return (
            self.db.query(VersionedRecord)
            .filter(VersionedRecord.created_at < cutoff)
            .order_by(VersionedRecord.created_at, VersionedRecord.id)
            .limit(limit)
            .all()
        )

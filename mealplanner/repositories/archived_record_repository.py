"""Archived record repository (cold storage)."""

from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlalchemy import and_, or_

from ..models import ArchivedRecord
from .base import BaseRepository


class ArchivedRecordRepository(BaseRepository[ArchivedRecord]):

    model_class = ArchivedRecord

    def get_by_source(self, source_collection: str, source_id: str) -> Optional[ArchivedRecord]:
        """Archive entry for a moved row, if the row was already copied."""
        return self.db.query(ArchivedRecord).filter(
            ArchivedRecord.source_collection == source_collection,
            ArchivedRecord.source_id == source_id,
        ).first()

    def create(
        self,
        collection_name: str,
        document_id: str,
        source_collection: str,
        source_id: str,
        data: Dict[str, Any],
        original_created_at: Optional[datetime],
        retention_period_days: int,
        record_version: Optional[int] = None,
    ) -> ArchivedRecord:
        db_record = ArchivedRecord(
            collection_name=collection_name,
            document_id=document_id,
            source_collection=source_collection,
            source_id=source_id,
            record_version=record_version,
            data=data,
            original_created_at=original_created_at,
            retention_period_days=retention_period_days,
        )
        return self._insert(db_record, refresh=False)

    def find(self, collection: str, document_id: str) -> List[ArchivedRecord]:
        """All entries for (collection, id), most recently archived first.

        Matches the origin pair (e.g. every archived snapshot of a meal
        order) as well as the source pair (the archived row itself).
        """
        return (
            self.db.query(ArchivedRecord)
            .filter(or_(
                and_(ArchivedRecord.collection_name == collection, ArchivedRecord.document_id == document_id),
                and_(ArchivedRecord.source_collection == collection, ArchivedRecord.source_id == document_id),
            ))
            .order_by(ArchivedRecord.archived_at.desc(), ArchivedRecord.id.desc())
            .all()
        )

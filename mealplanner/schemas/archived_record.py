"""Archive schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .common import CamelModel


class ArchivedRecordResponse(CamelModel):
    id: int
    collection_name: str
    document_id: str
    source_collection: str
    source_id: str
    record_version: Optional[int] = None
    data: Dict[str, Any]
    original_created_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    retention_period_days: int


class ArchivedLookupResponse(CamelModel):
    """Archived payload of one document.

    ``data`` and ``record`` are the entry that stands for the document:
    its own archived row when there is one, otherwise the most recently
    archived entry. ``history`` lists every matching entry, newest first.
    """
    collection: str
    document_id: str
    data: Dict[str, Any]
    record: ArchivedRecordResponse
    retrieved_at: datetime
    history: List[ArchivedRecordResponse] = []


class SweepFailure(CamelModel):
    data_type: str
    record_id: str
    error: str


class SweepResult(CamelModel):
    """Outcome of one archival sweep."""
    trigger: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    archived: Dict[str, int] = {}
    # Rows whose archive entry already existed from an interrupted run.
    resumed: int = 0
    partial_failures: List[SweepFailure] = []

    @property
    def total_archived(self) -> int:
        return sum(self.archived.values())

"""Version history schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .common import CamelModel


class VersionedRecordResponse(CamelModel):
    """One snapshot in a document's version history.

    ``snapshot`` is the full document as it was before the change (for a
    create: right after it). ``snapshot["version"]`` is therefore the
    document version the change started from.
    """
    id: int
    collection_name: str
    document_id: str
    version: int
    snapshot: Dict[str, Any]
    change_type: str
    changed_fields: List[str] = []
    changed_by: Optional[str] = None
    is_resolution: bool = False
    created_at: Optional[datetime] = None

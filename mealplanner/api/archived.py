"""Archive API endpoints (admin only)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_policy
from ..database import get_db
from ..schemas.archived_record import ArchivedLookupResponse, SweepResult
from ..services import ArchivalService

router = APIRouter(prefix="/api/archived", tags=["archive"])


@router.post("/sweep", response_model=SweepResult)
def run_archival_sweep(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("archive.run")),
):
    """Run an archival sweep now. 409 when one is already running."""
    return ArchivalService(db).run_sweep(trigger="manual", actor_id=auth.user_id)


@router.get("/{collection}/{document_id}", response_model=ArchivedLookupResponse)
def get_archived(
    collection: str,
    document_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_policy("archive.read")),
):
    """Archived data for a document in ``meal-orders``, ``versioned-records`` or ``audit-logs``."""
    return ArchivalService(db).get_archived(collection, document_id)

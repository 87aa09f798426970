"""Archived record model (cold storage)."""

from sqlalchemy import Column, Index, String, Integer, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class ArchivedRecord(Base):
    """A row moved out of primary storage by the archival sweep.

    ``collection_name``/``document_id`` identify the origin document (for a
    version snapshot that is the meal order it describes).
    ``source_collection``/``source_id`` identify the row that was moved and
    make re-archiving the same row a no-op.
    """

    __tablename__ = "archived_records"
    __table_args__ = (
        UniqueConstraint("source_collection", "source_id", name="uq_archived_records_source"),
        Index("ix_archived_records_collection_document", "collection_name", "document_id"),
        Index("ix_archived_records_archived_at", "archived_at"),
        Index("ix_archived_records_original_created_at", "original_created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    collection_name = Column(String(50), nullable=False)
    document_id = Column(String(50), nullable=False)

    source_collection = Column(String(50), nullable=False)
    source_id = Column(String(50), nullable=False)
    # Snapshot sequence number when the moved row was a version snapshot.
    record_version = Column(Integer, nullable=True)

    data = Column(JSON, nullable=False)
    original_created_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    retention_period_days = Column(Integer, nullable=False)

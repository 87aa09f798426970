"""Version snapshot model."""

from enum import Enum

from sqlalchemy import Column, Index, String, Integer, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class VersionedRecord(Base):
    """Immutable snapshot of a document taken before a mutation.

    ``version`` is a per-(collection_name, document_id) sequence starting
    at 1. The snapshot payload holds the document's own ``version`` field,
    which is the pre-mutation version.
    """

    __tablename__ = "versioned_records"
    __table_args__ = (
        UniqueConstraint("collection_name", "document_id", "version", name="uq_versioned_records_sequence"),
        Index("ix_versioned_records_collection_document", "collection_name", "document_id"),
        Index("ix_versioned_records_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # No foreign key: snapshots outlive the documents they describe.
    collection_name = Column(String(50), nullable=False)
    document_id = Column(String(50), nullable=False)

    version = Column(Integer, nullable=False)
    snapshot = Column(JSON, nullable=False)
    change_type = Column(String(10), nullable=False)
    changed_fields = Column(JSON, nullable=False, default=list)
    changed_by = Column(String(50), nullable=True)

    # True when the mutation was a conflict resolution rather than a plain update.
    is_resolution = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

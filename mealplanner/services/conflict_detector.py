"""Version comparison for optimistic locking.

Pure functions, no I/O. The atomic guarantee comes from the conditional
UPDATE in MealOrderRepository.compare_and_swap; this module decides what
a submitted version means and describes a mismatch for the client.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class VersionCheck(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    # No version submitted: the write goes through unconditionally.
    SKIPPED = "skipped"


def check_version(current_version: int, submitted_version: Optional[int]) -> VersionCheck:
    """Compare the stored version with the one the client last saw.

    Exact integer equality. A client that is ahead of the server is as
    stale as one that is behind.
    """
    if submitted_version is None:
        return VersionCheck.SKIPPED
    if submitted_version == current_version:
        return VersionCheck.MATCH
    return VersionCheck.MISMATCH


@dataclass(frozen=True)
class ConflictReport:
    """Both sides of a rejected write.

    ``current`` is the full server document (wire form) and ``submitted``
    the caller's patch including the version they sent.
    """

    document_id: str
    current: Dict[str, Any]
    submitted: Dict[str, Any]

    @property
    def current_version(self) -> Optional[int]:
        return self.current.get("version")

    @property
    def submitted_version(self) -> Optional[int]:
        return self.submitted.get("version")

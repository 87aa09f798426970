"""Resident repository."""

from typing import Any, Dict, List

from ..models import Resident
from ..exceptions import ResidentNotFoundError
from .base import BaseRepository


class ResidentRepository(BaseRepository[Resident]):

    model_class = Resident
    not_found_error = ResidentNotFoundError

    def create(self, values: Dict[str, Any]) -> Resident:
        return self._insert(Resident(**values))

    def get_all(self, skip: int = 0, limit: int = 100, active_only: bool = False) -> List[Resident]:
        query = self._base_query()
        if active_only:
            query = query.filter(Resident.active.is_(True))
        return query.order_by(Resident.room_number, Resident.name).offset(skip).limit(limit).all()

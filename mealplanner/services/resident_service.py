"""Resident service: registry of residents meals are ordered for."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..repositories import ResidentRepository
from ..schemas.resident import ResidentCreate, ResidentUpdate, ResidentResponse
from . import audit_service

logger = logging.getLogger(__name__)


class ResidentService:

    def __init__(self, db: Session):
        self.db = db
        self.repo = ResidentRepository(db)

    def create_resident(self, data: ResidentCreate, actor_id: str) -> ResidentResponse:
        resident = self.repo.create(data.model_dump())
        self.db.commit()
        logger.info("Registered resident %s (room %s)", resident.id, resident.room_number)
        audit_service.log(
            self.db, user_id=actor_id, action="data_create", resource_type="residents",
            resource_id=resident.id,
        )
        return ResidentResponse.model_validate(resident)

    def update_resident(self, resident_id: str, data: ResidentUpdate, actor_id: str) -> ResidentResponse:
        """Partial update; deactivating keeps existing orders intact."""
        resident = self.repo.get_by_id(resident_id)
        changes = data.model_dump(exclude_unset=True)
        for name, value in changes.items():
            if value is not None:
                setattr(resident, name, value)
        self.db.commit()
        self.db.refresh(resident)
        audit_service.log(
            self.db, user_id=actor_id, action="data_update", resource_type="residents",
            resource_id=resident_id, details={"changedFields": sorted(changes)},
        )
        return ResidentResponse.model_validate(resident)

    def get_resident(self, resident_id: str) -> ResidentResponse:
        return ResidentResponse.model_validate(self.repo.get_by_id(resident_id))

    def list_residents(self, skip: int = 0, limit: int = 100, active_only: bool = False) -> List[ResidentResponse]:
        return [
            ResidentResponse.model_validate(r)
            for r in self.repo.get_all(skip=skip, limit=limit, active_only=active_only)
        ]

"""Conflict resolution: persist a client-built merge of two versions.

After a 409 the client holds both ``currentVersion`` and ``yourVersion``
and submits a merged document. The merge is written against the version
the server holds *now*; if yet another writer got there first the
resolution itself conflicts and the client merges again.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import ValidationError
from ..schemas.meal_order import ConflictResolutionRequest, ConflictResolutionResponse
from . import audit_service
from .meal_order_service import COLLECTION, MealOrderService, to_wire
from .snapshot_recorder import RESOLUTION_FIELDS, compute_changed_fields

logger = logging.getLogger(__name__)


class ConflictResolver:

    def __init__(self, db: Session):
        self.db = db
        self.orders = MealOrderService(db)

    def resolve(
        self,
        order_id: str,
        request: ConflictResolutionRequest,
        actor_id: str,
        role: str,
        ip_address: Optional[str] = None,
    ) -> ConflictResolutionResponse:
        """Write ``request.merged_data`` over the current version.

        Raises ValidationError (400) without mergedData, MealOrderNotFoundError
        (404) for an unknown id, ForbiddenError (403) when the role may not
        make the merged change and ConflictError (409) when the order moved
        on while the merge was being written.
        """
        if request.merged_data is None:
            raise ValidationError("mergedData is required", field="mergedData")

        current = self.orders.order_repo.get_by_id(order_id)
        merged = request.merged_data
        changes = merged.changes()
        resolved_by = request.resolved_by or actor_id

        self.orders.authorize_write(current, changes, actor_id, role, ip_address)

        base_version = current.version
        changed_fields = compute_changed_fields(
            to_wire(current),
            merged.to_wire(exclude_unset=True, exclude={"version"}),
            RESOLUTION_FIELDS,
        )

        # Any version inside the merge is ignored: the merge targets what
        # the server holds now.
        resolved, warning, _ = self.orders.apply_write(
            current,
            changes,
            expected_version=base_version,
            actor_id=resolved_by,
            submitted={**merged.to_wire(exclude_unset=True), "version": base_version},
            is_resolution=True,
            changed_fields=changed_fields,
        )

        logger.info(
            "Resolved conflict on meal order %s: v%d -> v%d by %s fields=%s",
            order_id, base_version, resolved["version"], resolved_by, changed_fields,
        )
        audit_service.log(
            self.db, user_id=actor_id, action="conflict_resolved", resource_type=COLLECTION,
            resource_id=order_id,
            details={
                "resolvedBy": resolved_by,
                "changedFields": changed_fields,
                "fromVersion": base_version,
                "toVersion": resolved["version"],
            },
            ip_address=ip_address,
        )

        return ConflictResolutionResponse(
            resolved_document=resolved,
            warnings=[warning] if warning else [],
        )

"""Base repository: lookup by primary key and flushed inserts.

Subclasses set model_class and not_found_error (id_column defaults to
"id"). Nothing here commits; services own the transaction.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import MealPlannerError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., MealOrder)
        id_column:       Name of the primary-key column (default "id")
        not_found_error: Exception class raised by get_by_id
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[MealPlannerError]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def _insert(self, entity: ModelT, refresh: bool = True) -> ModelT:
        """Add *entity* and flush so server defaults and the id are populated."""
        self.db.add(entity)
        self.db.flush()
        if refresh:
            self.db.refresh(entity)
        return entity

    def get_by_id_optional(self, entity_id) -> Optional[ModelT]:
        key = getattr(self.model_class, self.id_column)
        return self._base_query().filter(key == entity_id).first()

    def get_by_id(self, entity_id) -> ModelT:
        """Like get_by_id_optional, but raises not_found_error when missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

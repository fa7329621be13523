"""
SQLAlchemy implementation of the Base Repository.
"""

from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Query, Session

from app.domain.repositories.base import BaseRepository
from app.domain.schemas.common import TrashedScope
from app.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


def _as_dict(obj_in: Any) -> dict:
    if hasattr(obj_in, "model_dump"):
        return obj_in.model_dump(exclude_unset=True)
    return dict(obj_in)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Generic repository for soft-deletable SQLAlchemy models."""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def query(self, trashed: Optional[TrashedScope] = None) -> Query:
        """Base query; deleted rows are excluded unless ``trashed`` is given."""
        query = self.db.query(self.model)
        if trashed is None:
            return query.filter(self.model.deleted_at.is_(None))
        if trashed == TrashedScope.ONLY:
            return query.filter(self.model.deleted_at.isnot(None))
        return query

    def get_by_id(self, id: int, trashed: Optional[TrashedScope] = None) -> Optional[ModelType]:
        return self.query(trashed).filter(self.model.id == id).first()

    def paginate(self, query: Query, page: int, per_page: int) -> Tuple[List[ModelType], int]:
        total = query.order_by(None).count()
        items = query.offset((page - 1) * per_page).limit(per_page).all()
        return items, total

    def save(self, db_obj: ModelType) -> ModelType:
        self.db.add(db_obj)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(db_obj)
        return db_obj

    def create(self, obj_in: Any) -> ModelType:
        return self.save(self.model(**_as_dict(obj_in)))

    def update(self, db_obj: ModelType, obj_in: Any) -> ModelType:
        for field, value in _as_dict(obj_in).items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        return self.save(db_obj)

    def soft_delete(self, db_obj: ModelType) -> ModelType:
        db_obj.soft_delete()
        return self.save(db_obj)

    def restore(self, db_obj: ModelType) -> ModelType:
        db_obj.restore()
        return self.save(db_obj)

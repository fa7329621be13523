"""
Base Repository Interface.
Defines the standard contract for data access over soft-deletable entities.
"""

from typing import Any, List, Optional, Protocol, Tuple, TypeVar

from app.domain.schemas.common import TrashedScope

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic CRUD operations."""

    def get_by_id(self, id: int, trashed: Optional[TrashedScope] = None) -> Optional[T]:
        """Get a single entity by ID (deleted rows excluded unless ``trashed`` says otherwise)."""
        ...

    def paginate(self, query: Any, page: int, per_page: int) -> Tuple[List[T], int]:
        """Return one page of ``query`` and the total row count."""
        ...

    def save(self, db_obj: T) -> T:
        """Persist pending changes on an entity."""
        ...

    def create(self, obj_in: Any) -> T:
        """Create a new entity."""
        ...

    def update(self, db_obj: T, obj_in: Any) -> T:
        """Update an existing entity."""
        ...

    def soft_delete(self, db_obj: T) -> T:
        """Flag an entity as deleted."""
        ...

    def restore(self, db_obj: T) -> T:
        """Clear the deleted flag."""
        ...

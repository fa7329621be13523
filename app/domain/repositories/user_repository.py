"""
User Repository Interface.
Defines specific data access operations for Users, Roles and their activity log.
"""

from typing import List, Optional, Tuple

from app.domain.repositories.base import BaseRepository
from app.domain.models.activity_log import ActivityLog
from app.domain.models.role import Role
from app.domain.models.user import User
from app.domain.schemas.user import UserFilter


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a non-deleted user by email."""
        ...

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        """Check email uniqueness across all rows, deleted ones included."""
        ...

    def mobile_taken(self, mobile: str, exclude_id: Optional[int] = None) -> bool:
        """Check mobile uniqueness across all rows, deleted ones included."""
        ...

    def get_with_filters(self, filters: UserFilter) -> Tuple[List[User], int]:
        """Get one page of users matching the filters, plus the total count."""
        ...

    def get_roles_by_names(self, names: List[str], guard_name: str) -> List[Role]:
        """Resolve role names within a guard."""
        ...

    def add_activity(self, entry: ActivityLog) -> ActivityLog:
        """Persist an activity log entry."""
        ...

    def get_activity(self, subject_id: int) -> List[ActivityLog]:
        """Activity entries for a user, oldest first."""
        ...

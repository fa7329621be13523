"""
SQLAlchemy Implementation of User Repository.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_

from app.domain.models.activity_log import ActivityLog
from app.domain.models.role import Role
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.user import UserFilter
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str) -> Optional[User]:
        return self.query().filter(func.lower(User.email) == email.lower()).first()

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(User.id).filter(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def mobile_taken(self, mobile: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(User.id).filter(User.mobile == mobile)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def get_with_filters(self, filters: UserFilter) -> Tuple[List[User], int]:
        """Get users with search, status filter and pagination, newest first."""
        query = self.query(filters.trashed)

        if filters.search:
            term = f"%{filters.search}%"
            query = query.filter(
                or_(
                    User.first_name.ilike(term),
                    User.last_name.ilike(term),
                    User.email.ilike(term),
                )
            )
        if filters.status:
            query = query.filter(User.status == filters.status.value)

        query = query.order_by(User.created_at.desc(), User.id.desc())
        return self.paginate(query, filters.page, filters.per_page)

    def get_roles_by_names(self, names: List[str], guard_name: str) -> List[Role]:
        if not names:
            return []
        return (
            self.db.query(Role)
            .filter(Role.name.in_(names), Role.guard_name == guard_name)
            .order_by(Role.id)
            .all()
        )

    def add_activity(self, entry: ActivityLog) -> ActivityLog:
        self.db.add(entry)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return entry

    def get_activity(self, subject_id: int) -> List[ActivityLog]:
        return (
            self.db.query(ActivityLog)
            .filter(ActivityLog.subject_type == "user", ActivityLog.subject_id == subject_id)
            .order_by(ActivityLog.id.asc())
            .all()
        )

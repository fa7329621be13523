"""User domain model — maps to the 'users' table."""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.domain.models.mixins import SoftDeleteMixin, TimestampMixin


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class User(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    mobile = Column(String(15), unique=True, nullable=True)
    password_hash = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    device_id = Column(String(255), nullable=True)
    avatar = Column(String(500), nullable=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)

    # Audit: weak references to another user
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    roles = relationship("Role", secondary="user_roles", lazy="selectin")
    creator = relationship("User", foreign_keys=[created_by], remote_side=[id])
    updater = relationship("User", foreign_keys=[updated_by], remote_side=[id])

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def __repr__(self):
        return f"<User {self.email}>"

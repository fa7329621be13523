"""Role / Permission models — maps to 'roles', 'permissions' and their join tables."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, UniqueConstraint, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Permission(Base):
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("name", "guard_name", name="uq_permission_guard"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(125), nullable=False)
    guard_name = Column(String(125), nullable=False, default="api")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Permission {self.name} ({self.guard_name})>"


class Role(Base):
    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("name", "guard_name", name="uq_role_guard"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(125), nullable=False)
    guard_name = Column(String(125), nullable=False, default="api")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    permissions = relationship("Permission", secondary=role_permissions, lazy="selectin")

    def __repr__(self):
        return f"<Role {self.name} ({self.guard_name})>"


# Seeded on startup
DEFAULT_PERMISSIONS = ["view product", "create product", "edit product", "delete product"]
DEFAULT_ROLES = {
    "admin": DEFAULT_PERMISSIONS,
    "user": ["view product"],
}

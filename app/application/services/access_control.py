"""
Role/permission checks and the authentication outcome of a request.

Every guard produces one of three outcomes: Authenticated, Unauthenticated
or Forbidden. The API layer maps the last two to 401 and 403.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import structlog
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.exceptions import UnauthorizedException
from app.domain.models.role import DEFAULT_PERMISSIONS, DEFAULT_ROLES, Permission, Role
from app.domain.models.user import User
from app.application.services import token_service

settings = get_settings()
logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Authenticated:
    user: User


@dataclass(frozen=True)
class Unauthenticated:
    reason: str = "Unauthenticated"


@dataclass(frozen=True)
class Forbidden:
    reason: str = "This action is unauthorized."


AuthOutcome = Union[Authenticated, Unauthenticated, Forbidden]


def authenticate(db: Session, token: Optional[str]) -> AuthOutcome:
    if not token:
        return Unauthenticated()
    try:
        return Authenticated(token_service.verify(db, token))
    except UnauthorizedException as e:
        return Unauthenticated(e.message)


def authorize(user: User, role: Optional[str] = None, permission: Optional[str] = None) -> AuthOutcome:
    """Check role then permission; both are optional."""
    if role and not has_role(user, role):
        return Forbidden("User does not have the right roles.")
    if permission and not has_permission(user, permission):
        return Forbidden("User does not have the right permissions.")
    return Authenticated(user)


def _guarded_roles(user: User, guard: Optional[str] = None) -> List[Role]:
    guard = guard or settings.AUTH_GUARD
    return [role for role in user.roles if role.guard_name == guard]


def role_names(user: User, guard: Optional[str] = None) -> List[str]:
    return [role.name for role in _guarded_roles(user, guard)]


def has_role(user: User, role_name: str, guard: Optional[str] = None) -> bool:
    return role_name in role_names(user, guard)


def has_permission(user: User, permission_name: str, guard: Optional[str] = None) -> bool:
    return any(
        permission.name == permission_name
        for role in _guarded_roles(user, guard)
        for permission in role.permissions
    )


def assign_role(user: User, role: Role) -> None:
    """Add a role to the user's set (no-op when already held)."""
    if role not in user.roles:
        user.roles.append(role)


def sync_roles(user: User, roles: Iterable[Role]) -> None:
    """Replace the user's whole role set."""
    user.roles = list(roles)


def seed_roles_and_permissions(db: Session) -> None:
    """Create the default permissions and roles if they are missing."""
    guard = settings.AUTH_GUARD

    permissions = {}
    for name in DEFAULT_PERMISSIONS:
        permission = (
            db.query(Permission)
            .filter(Permission.name == name, Permission.guard_name == guard)
            .first()
        )
        if permission is None:
            permission = Permission(name=name, guard_name=guard)
            db.add(permission)
        permissions[name] = permission

    for role_name, granted in DEFAULT_ROLES.items():
        role = db.query(Role).filter(Role.name == role_name, Role.guard_name == guard).first()
        if role is None:
            role = Role(name=role_name, guard_name=guard)
            db.add(role)
            logger.info("Role created", role=role_name)
        role.permissions = [permissions[name] for name in granted]

    db.commit()

"""FastAPI dependencies — bearer token extraction and role/permission guards."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.exceptions import ForbiddenException, UnauthorizedException
from app.domain.models.user import User
from app.infrastructure.database import get_db
from app.application.services.access_control import (
    Authenticated,
    AuthOutcome,
    Forbidden as ForbiddenOutcome,
    authenticate,
    authorize,
)

security = HTTPBearer(auto_error=False)


def _unwrap(outcome: AuthOutcome) -> User:
    """Turn a guard outcome into the user or the matching HTTP error."""
    if isinstance(outcome, Authenticated):
        return outcome.user
    if isinstance(outcome, ForbiddenOutcome):
        raise ForbiddenException(outcome.reason)
    raise UnauthorizedException(outcome.reason)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Raw bearer token, without verifying it."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException()
    return credentials.credentials


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Extract and validate the current user from the JWT."""
    token = credentials.credentials if credentials else None
    return _unwrap(authenticate(db, token))


def require_role(role: str):
    """Guard: authenticated user holding ``role``."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        return _unwrap(authorize(user, role=role))

    return dependency


def require_permission(permission: str, role: Optional[str] = None):
    """Guard: authenticated user holding ``permission`` (and ``role`` when given)."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        return _unwrap(authorize(user, role=role, permission=permission))

    return dependency


require_admin = require_role("admin")

"""User service: admin management of accounts, roles and avatars."""

from typing import List, Optional, Tuple

import structlog

from app.config import get_settings
from app.core.exceptions import (
    EntityNotFoundException,
    ForbiddenException,
    ValidationException,
)
from app.domain.models.role import Role
from app.domain.models.user import User, UserStatus
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.common import TrashedScope
from app.domain.schemas.user import UserCreate, UserFilter, UserUpdate
from app.infrastructure.storage import StorageBackend
from app.application.services import access_control, activity_service, image_service
from app.application.services.auth_service import hash_password
from app.application.services.image_service import UploadedImage

settings = get_settings()
logger = structlog.get_logger(__name__)


def full_name(user: Optional[User]) -> str:
    if user is None:
        return "Unknown User"
    name = f"{user.first_name or ''} {user.last_name or ''}".strip()
    return name or "Unknown User"


def list_users(repo: UserRepository, filters: UserFilter) -> Tuple[List[User], int]:
    return repo.get_with_filters(filters)


def get_user(repo: UserRepository, user_id: int) -> User:
    user = repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException("User not found")
    return user


def _check_unique(repo: UserRepository, email: str, mobile: Optional[str], exclude_id: Optional[int] = None) -> None:
    errors = {}
    if repo.email_taken(email, exclude_id=exclude_id):
        errors["email"] = ["The email has already been taken."]
    if mobile and repo.mobile_taken(mobile, exclude_id=exclude_id):
        errors["mobile"] = ["The mobile has already been taken."]
    if errors:
        raise ValidationException(errors)


def _resolve_roles(repo: UserRepository, names: List[str]) -> List[Role]:
    unique_names = list(dict.fromkeys(names))
    roles = repo.get_roles_by_names(unique_names, settings.AUTH_GUARD)
    if len(roles) != len(unique_names):
        found = {role.name for role in roles}
        missing = [name for name in unique_names if name not in found]
        raise ValidationException.for_field("roles", f"The selected roles are invalid: {', '.join(missing)}.")
    return roles


def create_user(
    repo: UserRepository,
    storage: StorageBackend,
    data: UserCreate,
    actor: User,
    avatar: Optional[UploadedImage] = None,
) -> User:
    _check_unique(repo, data.email, data.mobile)
    roles = _resolve_roles(repo, data.roles)

    avatar_key = image_service.store_avatar(storage, avatar) if avatar else None

    try:
        user = repo.create(
            {
                "first_name": data.first_name,
                "last_name": data.last_name,
                "email": data.email,
                "mobile": data.mobile,
                "status": data.status.value,
                "password_hash": hash_password(data.password),
                "avatar": avatar_key,
                "roles": roles,
                "created_by": actor.id,
            }
        )
    except Exception:
        if avatar_key:
            image_service.discard(storage, [avatar_key])
        raise

    activity_service.record(repo, user, "created", {}, actor)
    logger.info("User created", user_id=user.id, by=actor.id)
    return user


def update_user(
    repo: UserRepository,
    storage: StorageBackend,
    user: User,
    data: UserUpdate,
    actor: User,
    avatar: Optional[UploadedImage] = None,
) -> User:
    """Full update; the role set is replaced, password only when given."""
    _check_unique(repo, data.email, data.mobile, exclude_id=user.id)
    roles = _resolve_roles(repo, data.roles)

    fields = {
        "first_name": data.first_name,
        "last_name": data.last_name,
        "email": data.email,
        "mobile": data.mobile,
        "status": data.status.value,
        "updated_by": actor.id,
    }
    if data.password:
        fields["password_hash"] = hash_password(data.password)

    before = activity_service.snapshot(user)
    previous_avatar = user.avatar
    avatar_key = image_service.store_avatar(storage, avatar) if avatar else None
    if avatar_key:
        fields["avatar"] = avatar_key

    try:
        access_control.sync_roles(user, roles)
        user = repo.update(user, fields)
    except Exception:
        if avatar_key:
            image_service.discard(storage, [avatar_key])
        raise

    # The replaced file goes only once the row points at the new one
    if avatar_key and previous_avatar:
        image_service.discard(storage, [previous_avatar])

    activity_service.record(repo, user, "updated", before, actor)
    logger.info("User updated", user_id=user.id, by=actor.id)
    return user


def change_status(repo: UserRepository, user: User, status: UserStatus, actor: User) -> User:
    before = activity_service.snapshot(user)
    user = repo.update(user, {"status": status.value, "updated_by": actor.id})
    activity_service.record(repo, user, "updated", before, actor)
    logger.info("User status changed", user_id=user.id, status=user.status)
    return user


def delete_user(repo: UserRepository, storage: StorageBackend, user: User, actor: Optional[User] = None) -> None:
    """Soft delete; admins are protected and the avatar file is removed."""
    if access_control.has_role(user, "admin"):
        raise ForbiddenException("Cannot delete admin user")

    before = activity_service.snapshot(user)
    if user.avatar:
        storage.delete(user.avatar)
        user.avatar = None
    repo.soft_delete(user)
    activity_service.record(repo, user, "deleted", before, actor)
    logger.info("User deleted", user_id=user.id)


def restore_user(repo: UserRepository, user_id: int) -> User:
    user = repo.get_by_id(user_id, trashed=TrashedScope.ONLY)
    if user is None:
        raise EntityNotFoundException("User not found")
    user = repo.restore(user)
    logger.info("User restored", user_id=user.id)
    return user

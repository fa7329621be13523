"""Auth service — registration, login, password hashing and the caller's own account."""

from typing import Optional

import structlog
from passlib.context import CryptContext

from app.config import get_settings
from app.core.exceptions import (
    BusinessRuleViolationException,
    UnauthorizedException,
    ValidationException,
)
from app.domain.models.user import User, UserStatus
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)
from app.application.services import access_control

settings = get_settings()
logger = structlog.get_logger(__name__)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

DEFAULT_ROLE = "user"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def register(repo: UserRepository, data: RegisterRequest) -> User:
    """Create an ACTIVE account holding the default role."""
    if repo.email_taken(data.email):
        raise ValidationException.for_field("email", "The email has already been taken.")

    roles = repo.get_roles_by_names([DEFAULT_ROLE], settings.AUTH_GUARD)
    user = repo.create(
        {
            "first_name": data.first_name,
            "last_name": data.last_name or "",
            "email": data.email,
            "password_hash": hash_password(data.password),
            "status": UserStatus.ACTIVE.value,
            "roles": roles,
        }
    )
    logger.info("User registered", user_id=user.id)
    return user


def authenticate_user(repo: UserRepository, data: LoginRequest) -> Optional[User]:
    user = repo.get_by_email(data.email)
    if not user or not verify_password(data.password, user.password_hash):
        return None
    if not user.is_active:
        return None
    return user


def login(repo: UserRepository, data: LoginRequest) -> User:
    user = authenticate_user(repo, data)
    if user is None:
        logger.info("Login failed", email=data.email)
        raise UnauthorizedException("Invalid email or password")
    return user


def update_profile(repo: UserRepository, user: User, data: ProfileUpdate) -> User:
    """Partial update of the caller's first_name, last_name and mobile."""
    fields = data.model_dump(exclude_unset=True)
    if fields.get("mobile") and repo.mobile_taken(fields["mobile"], exclude_id=user.id):
        raise ValidationException.for_field("mobile", "The mobile has already been taken.")
    if "first_name" in fields and not fields["first_name"]:
        fields.pop("first_name")
    if "last_name" in fields and fields["last_name"] is None:
        fields["last_name"] = ""

    fields["updated_by"] = user.id
    return repo.update(user, fields)


def change_password(repo: UserRepository, user: User, data: ChangePasswordRequest) -> User:
    if not verify_password(data.current_password, user.password_hash):
        raise BusinessRuleViolationException("Current password is incorrect")

    user = repo.update(user, {"password_hash": hash_password(data.password), "updated_by": user.id})
    logger.info("Password changed", user_id=user.id)
    return user


def ensure_admin_user(repo: UserRepository) -> User:
    """Create the configured administrator account if it does not exist."""
    admin = repo.get_by_email(settings.ADMIN_EMAIL)
    if admin is None:
        roles = repo.get_roles_by_names(["admin"], settings.AUTH_GUARD)
        admin = repo.create(
            {
                "first_name": "Admin",
                "last_name": "User",
                "email": settings.ADMIN_EMAIL,
                "password_hash": hash_password(settings.ADMIN_PASSWORD),
                "status": UserStatus.ACTIVE.value,
                "roles": roles,
            }
        )
        logger.info("Default admin user created", email=settings.ADMIN_EMAIL)
    elif not access_control.has_role(admin, "admin"):
        access_control.assign_role(admin, repo.get_roles_by_names(["admin"], settings.AUTH_GUARD)[0])
        repo.update(admin, {})
    return admin

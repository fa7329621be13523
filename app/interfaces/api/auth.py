"""Auth API routes — register, login, me, refresh, logout, profile, password."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.infrastructure.database import get_db
from app.infrastructure.storage import StorageBackend
from app.application.services import auth_service, token_service
from app.core.responses import success
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
)
from app.interfaces.api.deps import get_bearer_token, get_current_user
from app.interfaces.api.presenters import present_user
from app.interfaces.deps import get_public_storage, get_user_repository

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_payload(token: str, user: User, disk: StorageBackend) -> dict:
    return TokenResponse(
        access_token=token,
        expires_in=token_service.expires_in(),
        user=present_user(user, disk),
    ).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = auth_service.register(repo, body)
    token = token_service.issue(user)
    return success(_token_payload(token, user, disk), "Registration successful")


@router.post("/login")
def login(
    body: LoginRequest,
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = auth_service.login(repo, body)
    token = token_service.issue(user)
    return success(_token_payload(token, user, disk))


@router.get("/me")
def me(
    user: User = Depends(get_current_user),
    disk: StorageBackend = Depends(get_public_storage),
):
    return success(present_user(user, disk))


@router.post("/refresh")
def refresh(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    disk: StorageBackend = Depends(get_public_storage),
):
    """Accepts an expired token as long as it is still within the refresh window."""
    new_token, user = token_service.refresh(db, token)
    return success(_token_payload(new_token, user, disk))


@router.post("/logout")
def logout(
    user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
):
    token_service.invalidate(db, token)
    return success(message="Successfully logged out")


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = auth_service.update_profile(repo, user, body)
    return success(present_user(user, disk), "Profile updated successfully")


@router.put("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
):
    auth_service.change_password(repo, user, body)
    return success(message="Password changed successfully")

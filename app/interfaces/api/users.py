"""Admin-only user management routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.infrastructure.storage import StorageBackend
from app.application.services import user_service
from app.core.responses import paginated, success
from app.domain.models.user import User, UserStatus
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.common import TrashedScope
from app.domain.schemas.user import UserCreate, UserFilter, UserStatusUpdate, UserUpdate
from app.interfaces.api.deps import get_current_user, require_admin
from app.interfaces.api.forms import Payload, parse, read_payload
from app.interfaces.api.presenters import present_user
from app.interfaces.deps import get_public_storage, get_user_repository

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(require_admin)])


@router.get("")
def list_users(
    search: Optional[str] = None,
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    trashed: Optional[TrashedScope] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    filters = UserFilter(
        search=search,
        status=status_filter,
        trashed=trashed,
        page=page,
        per_page=per_page,
    )
    users, total = user_service.list_users(repo, filters)
    items = [present_user(u, disk) for u in users]
    return success(paginated(items, total, page, per_page))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: Payload = Depends(read_payload),
    actor: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    data = parse(UserCreate, payload.fields)
    user = user_service.create_user(repo, disk, data, actor, avatar=payload.file("avatar"))
    return success(present_user(user, disk, detail=True), "User created successfully")


@router.get("/{user_id}")
def show_user(
    user_id: int,
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = user_service.get_user(repo, user_id)
    return success(present_user(user, disk, detail=True))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: Payload = Depends(read_payload),
    actor: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = user_service.get_user(repo, user_id)
    data = parse(UserUpdate, payload.fields)
    user = user_service.update_user(repo, disk, user, data, actor, avatar=payload.file("avatar"))
    return success(present_user(user, disk, detail=True), "User updated successfully")


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    actor: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = user_service.get_user(repo, user_id)
    user_service.delete_user(repo, disk, user, actor)
    return success(message="User deleted successfully")


@router.post("/{user_id}/status")
def change_status(
    user_id: int,
    body: UserStatusUpdate,
    actor: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
):
    user = user_service.get_user(repo, user_id)
    user = user_service.change_status(repo, user, body.status, actor)
    return success(
        {"id": user.id, "status": user.status},
        f"User {user_service.full_name(user)} marked as {user.status}",
    )


@router.post("/restore/{user_id}")
def restore_user(
    user_id: int,
    repo: UserRepository = Depends(get_user_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    user = user_service.restore_user(repo, user_id)
    return success(present_user(user, disk), "User restored successfully")

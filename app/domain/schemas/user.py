"""Pydantic schemas for admin user management."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

from app.domain.models.user import UserStatus
from app.domain.schemas.common import Mobile, PersonName, TrashedScope, UserSummary


class PasswordConfirmation(BaseModel):
    """``password_confirmation`` must repeat ``password`` whenever one is given."""

    @field_validator("password_confirmation", check_fields=False)
    @classmethod
    def confirm_password(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        password = info.data.get("password")
        if password and value != password:
            raise ValueError("The password confirmation does not match.")
        return value


class RoleRead(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class UserFields(BaseModel):
    first_name: PersonName = Field(..., min_length=1, max_length=255)
    last_name: PersonName = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    mobile: Optional[Mobile] = Field(None, max_length=15)
    status: UserStatus
    roles: List[str] = Field(..., min_length=1)


class UserCreate(PasswordConfirmation, UserFields):
    password: str = Field(..., min_length=8)
    password_confirmation: str


class UserUpdate(PasswordConfirmation, UserFields):
    password: Optional[str] = Field(None, min_length=8)
    password_confirmation: Optional[str] = None


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserFilter(BaseModel):
    search: Optional[str] = None
    status: Optional[UserStatus] = None
    page: int = 1
    per_page: int = 10
    trashed: Optional[TrashedScope] = None


class UserRead(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    mobile: Optional[str] = None
    status: str
    avatar: Optional[str] = None
    device_id: Optional[str] = None
    email_verified_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    # Computed by the presentation layer
    full_name: str
    initials: str
    avatar_url: str
    roles: List[RoleRead] = []
    creator: Optional[UserSummary] = None
    updater: Optional[UserSummary] = None

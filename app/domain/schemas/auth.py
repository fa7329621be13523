"""Pydantic schemas for Auth and the current user's account."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.domain.schemas.common import Mobile, PersonName
from app.domain.schemas.user import PasswordConfirmation, UserRead


class RegisterRequest(PasswordConfirmation):
    first_name: PersonName = Field(..., min_length=1, max_length=255)
    last_name: Optional[PersonName] = Field(None, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8)
    password_confirmation: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class ProfileUpdate(BaseModel):
    first_name: Optional[PersonName] = Field(None, min_length=1, max_length=255)
    last_name: Optional[PersonName] = Field(None, max_length=255)
    mobile: Optional[Mobile] = Field(None, max_length=15)


class ChangePasswordRequest(PasswordConfirmation):
    current_password: str
    password: str = Field(..., min_length=8)
    password_confirmation: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead

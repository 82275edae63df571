"""
Bistro API — User and token schemas
"""
from datetime import datetime
from pydantic import EmailStr, Field

from bistro.models.user import UserRole
from bistro.schemas.common import CamelModel


class TokenRequest(CamelModel):
    email: EmailStr
    name: str | None = Field(None, max_length=255)


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserCreateRequest(CamelModel):
    # No role field: privilege is granted only through admin promotion.
    email: EmailStr
    name: str | None = Field(None, max_length=255)
    photo_url: str | None = Field(None, max_length=1024)


class UserResponse(CamelModel):
    id: str
    email: str
    name: str | None = None
    photo_url: str | None = None
    role: UserRole
    created_at: datetime | None = None


class UserCreatedResponse(CamelModel):
    message: str
    inserted_id: str | None
    user: UserResponse


class AdminStatusResponse(CamelModel):
    admin: bool


class RoleUpdateResponse(CamelModel):
    matched_count: int
    modified_count: int


class UserDeletedResponse(CamelModel):
    message: str
    deleted_user: UserResponse

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.models.common import CamelModel
from app.models.enums import UserRole, UserStatus


class User(CamelModel):
    id: int
    email: EmailStr
    # Stored hash; never serialized to clients (see PublicUser).
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    avatar: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PublicUser(CamelModel):
    id: int
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    status: UserStatus
    avatar: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime


def public_user(user: User) -> PublicUser:
    return PublicUser.model_validate(user.model_dump(exclude={"password"}))


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdateRequest(CamelModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)


class AdminUserUpdateRequest(CamelModel):
    status: str


class Session(CamelModel):
    sid: str
    user_id: int
    created_at: datetime
    expires_at: datetime

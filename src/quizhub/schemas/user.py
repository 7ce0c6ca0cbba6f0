"""User schema definitions.

This module defines the User domain model, its public projection, the
authentication request bodies and the token payloads.
"""

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from quizhub.schemas.common import CamelModel, utc_now_iso


class Role(str, Enum):
    """Roles a user can hold."""

    ADMIN = "ADMIN"
    USER = "USER"


def normalize_email(value):
    """Strip and lowercase an email address before validation."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


class User(BaseModel):
    """Internal user record, including the password hash."""

    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    email: str
    password_hash: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    role: Role = Role.USER
    is_active: bool = True
    email_verified: bool = False
    two_factor_enabled: bool = False
    last_login_at: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    def to_public(self) -> "UserPublic":
        """Project the record without its password hash."""
        return UserPublic(
            id=self.user_id,
            email=self.email,
            name=self.name,
            avatar=self.avatar,
            role=self.role,
            is_active=self.is_active,
            email_verified=self.email_verified,
            two_factor_enabled=self.two_factor_enabled,
            last_login_at=self.last_login_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserPublic(CamelModel):
    """User fields safe to return to clients."""

    id: str
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    role: Role
    is_active: bool
    email_verified: bool
    two_factor_enabled: bool
    last_login_at: Optional[str] = None
    created_at: str
    updated_at: str


class Principal(BaseModel):
    """Authenticated identity derived from verified access-token claims."""

    id: str
    email: str
    role: Role


# --- Requests ---


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value)


class RefreshRequest(CamelModel):
    # Presence is checked by AuthService.refresh
    refresh_token: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)


class UpdateUserStatusRequest(CamelModel):
    is_active: bool


# --- Responses ---


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AuthResult(CamelModel):
    """Returned by register and login."""

    user: UserPublic
    access_token: str
    refresh_token: str

"""
User and Auth Schemas.

Pydantic schemas for registration, login, token refresh and profile.
The configurable minimum password length is checked by the auth service.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    email: EmailStr = Field(..., examples=["ada@example.com"])
    password: str = Field(..., max_length=72, description="bcrypt uses the first 72 bytes")
    name: str | None = Field(default=None, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., max_length=72)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class UserResponse(BaseModel):
    """Public view of a user."""

    id: str
    email: str
    name: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """Registration and login result."""

    user: UserResponse
    tokens: TokenResponse

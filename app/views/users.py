"""Pydantic schemas for profile interactions."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from app.models.user import UserRole


def _validate_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one digit")
    return value


class UserRegistrationRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    fullName: str = Field(
        ...,
        min_length=1,
        max_length=120,
        validation_alias=AliasChoices("fullName", "full_name"),
        serialization_alias="fullName",
    )
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_password_strength(value)

    @field_validator("fullName")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not re.match(r"^[^\W\d_][\w\s\-'.]*$", value.strip(), re.UNICODE):
            raise ValueError("Name must start with a letter")
        return value.strip()


class UserResponse(BaseModel):
    """General profile response model."""

    id: int
    email: EmailStr
    fullName: str = Field(
        ...,
        validation_alias=AliasChoices("fullName", "full_name"),
        serialization_alias="fullName",
    )
    role: UserRole
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UserRegistrationResponse(UserResponse):
    """Response model for successful user registration."""

    message: str


class UserChangePasswordRequest(BaseModel):
    """Request model for password changes."""

    currentPassword: str = Field(
        ...,
        min_length=8,
        max_length=128,
        validation_alias=AliasChoices("currentPassword", "current_password"),
        serialization_alias="currentPassword",
    )
    newPassword: str = Field(
        ...,
        min_length=8,
        max_length=128,
        validation_alias=AliasChoices("newPassword", "new_password"),
        serialization_alias="newPassword",
    )

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _validate_password_strength(value)

    @model_validator(mode="after")
    def ensure_new_differs(self) -> "UserChangePasswordRequest":
        if self.currentPassword == self.newPassword:
            raise ValueError("New password must be different from the current one")
        return self


__all__ = [
    "UserChangePasswordRequest",
    "UserRegistrationRequest",
    "UserRegistrationResponse",
    "UserResponse",
]

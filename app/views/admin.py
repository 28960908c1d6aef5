"""Pydantic schemas for the admin endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TokenStatsResponse(BaseModel):
    """Billing dashboard payload."""

    platform: dict[str, Any]
    users: list[dict[str, Any]]
    recentLogs: list[dict[str, Any]] = Field(..., serialization_alias="recentLogs")
    dailyUsage: list[dict[str, Any]] = Field(..., serialization_alias="dailyUsage")
    modelDistribution: dict[str, int] = Field(..., serialization_alias="modelDistribution")
    range: str


class AdminPromptUpsertRequest(BaseModel):
    """Both fields are checked in the controller so a missing one yields 400."""

    name: str | None = None
    prompt: str | None = None
    description: str | None = None


class AdminPromptResponse(BaseModel):
    id: UUID
    name: str
    prompt: str
    description: str | None = None
    is_active: bool = Field(True, serialization_alias="isActive")
    updated_by: int | None = Field(None, serialization_alias="updatedBy")
    updated_at: datetime | None = Field(None, serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)


class AdminPromptLookupResponse(BaseModel):
    """`prompt` is None when no override is stored and the built-in default applies."""

    prompt: AdminPromptResponse | None = None


class DefaultPromptResponse(BaseModel):
    prompt: str
    lockedOutput: str = Field(..., serialization_alias="lockedOutput")


__all__ = [
    "AdminPromptLookupResponse",
    "AdminPromptResponse",
    "AdminPromptUpsertRequest",
    "DefaultPromptResponse",
    "TokenStatsResponse",
]

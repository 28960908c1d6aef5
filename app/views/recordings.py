"""Pydantic schemas for uploaded recordings."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.recording import RecordingStatus


class RecordingResponse(BaseModel):
    """Recording metadata as listed on the dashboard."""

    id: UUID
    fileName: str = Field(
        ...,
        validation_alias=AliasChoices("fileName", "file_name"),
        serialization_alias="fileName",
    )
    filePath: str = Field(
        ...,
        validation_alias=AliasChoices("filePath", "file_path"),
        serialization_alias="filePath",
    )
    fileSize: int = Field(
        0,
        validation_alias=AliasChoices("fileSize", "file_size"),
        serialization_alias="fileSize",
    )
    duration: float | None = None
    status: RecordingStatus
    isArchived: bool = Field(
        False,
        validation_alias=AliasChoices("isArchived", "is_archived"),
        serialization_alias="isArchived",
    )
    createdAt: datetime | None = Field(
        None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class RecordingArchiveRequest(BaseModel):
    archived: bool = True


class AudioUrlResponse(BaseModel):
    url: str
    expiresIn: int = Field(..., serialization_alias="expiresIn")


__all__ = ["AudioUrlResponse", "RecordingArchiveRequest", "RecordingResponse"]

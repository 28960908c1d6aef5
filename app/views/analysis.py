"""Pydantic schemas for analysis jobs and their polling payload."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def _camel(name: str, snake: str, default: Any = None) -> Any:
    return Field(
        default,
        validation_alias=AliasChoices(name, snake),
        serialization_alias=name,
    )


class AnalysisStartResponse(BaseModel):
    """Returned immediately when a background analysis is queued."""

    message: str
    analysisId: UUID = Field(..., serialization_alias="analysisId")


class AnalysisResponse(BaseModel):
    """Everything the dashboard polls while an analysis runs and after it finishes."""

    id: UUID
    recordingId: UUID = _camel("recordingId", "recording_id")
    processingStatus: str = _camel("processingStatus", "processing_status", "pending")
    processingStage: str = _camel("processingStage", "processing_stage", "pending")
    totalChunks: int = _camel("totalChunks", "total_chunks", 0)
    completedChunks: int = _camel("completedChunks", "completed_chunks", 0)
    currentChunkMessage: str | None = _camel("currentChunkMessage", "current_chunk_message")
    errorMessage: str | None = _camel("errorMessage", "error_message")
    sections: list[dict[str, Any]] = Field(default_factory=list)

    title: str = ""
    summary: str = ""
    transcript: str = ""
    timeline: list[dict[str, Any]] = Field(default_factory=list)
    mainTopics: list[Any] = _camel("mainTopics", "main_topics", [])
    glossary: list[Any] = Field(default_factory=list)
    insights: list[Any] = Field(default_factory=list)
    conclusion: str = ""
    w4Report: dict[str, Any] | None = _camel("w4Report", "w4_report")
    language: str = "en"
    confidenceScore: float = _camel("confidenceScore", "confidence_score", 0.0)
    durationAnalyzed: float | None = _camel("durationAnalyzed", "duration_analyzed")

    inputTokens: int = _camel("inputTokens", "input_tokens", 0)
    outputTokens: int = _camel("outputTokens", "output_tokens", 0)
    totalTokens: int = _camel("totalTokens", "total_tokens", 0)
    modelUsed: str | None = _camel("modelUsed", "model_used")
    estimatedCostUsd: float = _camel("estimatedCostUsd", "estimated_cost_usd", 0.0)

    createdAt: datetime | None = _camel("createdAt", "created_at")
    updatedAt: datetime | None = _camel("updatedAt", "updated_at")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


__all__ = ["AnalysisResponse", "AnalysisStartResponse"]

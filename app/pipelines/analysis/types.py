"""Typed containers shared across the analysis pipeline.

These dataclasses live in their own module so the stages (`chunking`,
`parsing`, `runner`, `w4`) can import them without circular dependencies.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class ChunkWindow:
    """One fixed-duration slice of a recording, in minutes from the start."""

    index: int
    start_minute: float
    end_minute: float


@dataclass(frozen=True)
class TranscriptSection:
    """Parsed output of a single chunk request."""

    chunk_index: int
    timestamp_start: str
    timestamp_end: str
    title: str
    content: str
    summary: str
    topics: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AnalysisJob:
    """Everything a background runner needs to analyse one recording."""

    analysis_id: UUID
    recording_id: UUID
    user_id: int | None
    file_path: str
    total_chunks: int
    duration_seconds: float | None
    file_size_bytes: int


@dataclass
class UsageTotals:
    """Running token totals across all requests made for one analysis."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add(self, input_tokens: int, output_tokens: int) -> None:
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens


__all__ = ["AnalysisJob", "ChunkWindow", "TranscriptSection", "UsageTotals"]

"""Execution map of the analysis pipeline.

``POST /analysis/{id}/transcribe`` schedules ``ChunkedAnalysisRunner`` and
``POST /analysis/{id}/w4`` schedules ``W4AnalysisRunner``; both report
progress through ``DatabaseProgress`` so the dashboard can poll
``GET /analysis/{id}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the analysis pipeline."""

    order: int
    name: str
    module: str
    summary: str


class AnalysisPipeline:
    """Utility wrapper for documenting the analysis flows."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Scheduling",
            "app.controllers.analysis",
            "Check ownership, size the chunks, reset the analysis row and queue the background task.",
        ),
        PipelineStage(
            2,
            "Download",
            "app.services.storage",
            "Fetch the recording (compressed copy when available) from S3.",
        ),
        PipelineStage(
            3,
            "Chunk planning",
            "app.pipelines.analysis.chunking",
            "Derive total minutes from duration or file size and split into 45 minute windows.",
        ),
        PipelineStage(
            4,
            "Chunk transcription",
            "app.pipelines.analysis.runner",
            "Prompt Gemini per window with a fixed delay, back off when rate limited, skip failed chunks.",
        ),
        PipelineStage(
            5,
            "Section parsing",
            "app.pipelines.analysis.parsing",
            "Extract title, transcript, summary and topics from the labelled response.",
        ),
        PipelineStage(
            6,
            "Final analysis",
            "app.pipelines.analysis.report",
            "Summarise all sections into title, topics, glossary, insights and conclusion.",
        ),
        PipelineStage(
            7,
            "W4 scoring",
            "app.pipelines.analysis.w4",
            "Upload the whole file, stream the W4 JSON report and normalise it.",
        ),
        PipelineStage(
            8,
            "Persistence",
            "app.pipelines.analysis.progress",
            "Write progress, results, token usage and errors to the database.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)


__all__ = ["AnalysisPipeline", "PipelineStage"]

"""Progress sinks that write analysis state back to the database."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Protocol, Sequence
from uuid import UUID

from sqlalchemy import update

from app.config.settings import settings
from app.database import session_scope
from app.models.analysis import AudioAnalysis, ProcessingStage, ProcessingStatus
from app.models.recording import Recording, RecordingStatus
from app.services.gemini_client import GenerationResult
from app.services.token_usage import record_token_usage

from .types import TranscriptSection

logger = logging.getLogger(__name__)


class AnalysisProgress(Protocol):
    """Where a runner reports its progress; the database in production, a fake in tests."""

    async def mark_processing(self, completed: int | None, message: str) -> None: ...

    async def save_sections(
        self,
        sections: Sequence[TranscriptSection],
        completed: int,
        message: str,
    ) -> None: ...

    async def finish(self, fields: Mapping[str, Any], message: str) -> None: ...

    async def fail(self, message: str) -> None: ...

    async def record_usage(
        self,
        request_type: str,
        result: GenerationResult,
        chunk_index: int | None = None,
    ) -> None: ...


def truncate_error(message: str, limit: int | None = None) -> str:
    return (message or "Unknown error")[: limit or settings.analysis.error_message_limit]


class DatabaseProgress:
    """Persist progress of one analysis through short-lived sessions."""

    def __init__(
        self,
        analysis_id: UUID,
        recording_id: UUID,
        user_id: int | None,
        session_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.analysis_id = analysis_id
        self.recording_id = recording_id
        self.user_id = user_id
        self._session_factory = session_factory or session_scope

    async def _update_analysis(
        self,
        values: Mapping[str, Any],
        recording_status: RecordingStatus | None = None,
    ) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(AudioAnalysis).where(AudioAnalysis.id == self.analysis_id).values(**values)
            )
            if recording_status is not None:
                await session.execute(
                    update(Recording)
                    .where(Recording.id == self.recording_id)
                    .values(status=recording_status)
                )
            await session.commit()

    async def mark_processing(self, completed: int | None, message: str) -> None:
        values: dict[str, Any] = {"current_chunk_message": message}
        if completed is not None:
            values["completed_chunks"] = completed
        await self._update_analysis(values)

    async def save_sections(
        self,
        sections: Sequence[TranscriptSection],
        completed: int,
        message: str,
    ) -> None:
        await self._update_analysis(
            {
                "sections": [section.to_dict() for section in sections],
                "completed_chunks": completed,
                "current_chunk_message": message,
            }
        )

    async def finish(self, fields: Mapping[str, Any], message: str) -> None:
        now = datetime.utcnow()
        values = dict(fields)
        values.update(
            processing_status=ProcessingStatus.DONE.value,
            processing_stage=ProcessingStage.DONE.value,
            current_chunk_message=message,
            error_message=None,
            analysis_completed_at=now,
        )
        if "transcript" in values:
            values.setdefault("transcription_completed_at", now)
        if "estimated_cost_usd" in values:
            values["estimated_cost_usd"] = Decimal(str(round(values["estimated_cost_usd"], 6)))
        await self._update_analysis(values, recording_status=RecordingStatus.DONE)

    async def fail(self, message: str) -> None:
        await self._update_analysis(
            {
                "processing_status": ProcessingStatus.ERROR.value,
                "processing_stage": ProcessingStage.ERROR.value,
                "error_message": truncate_error(message),
                "current_chunk_message": "Error occurred",
            },
            recording_status=RecordingStatus.ERROR,
        )

    async def record_usage(
        self,
        request_type: str,
        result: GenerationResult,
        chunk_index: int | None = None,
    ) -> None:
        """Usage logging must never break the analysis itself."""

        try:
            async with self._session_factory() as session:
                await record_token_usage(
                    session,
                    request_type=request_type,
                    model=result.model,
                    input_tokens=result.input_tokens,
                    output_tokens=result.output_tokens,
                    user_id=self.user_id,
                    analysis_id=self.analysis_id,
                    recording_id=self.recording_id,
                    chunk_index=chunk_index,
                )
                await session.commit()
        except Exception:  # pragma: no cover - database outage
            logger.exception("Failed to log token usage analysis=%s", self.analysis_id)


__all__ = ["AnalysisProgress", "DatabaseProgress", "truncate_error"]

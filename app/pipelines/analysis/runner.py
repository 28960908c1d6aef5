"""Background runner for the chunked transcription + summary flow."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError

from app.config.settings import settings
from app.services.gemini_client import (
    GeminiClient,
    GeminiInvocationError,
    GenerationResult,
    audio_part,
    text_part,
)
from app.services.storage import StorageError, download_audio, guess_audio_mime_type
from app.services.token_usage import estimate_cost
from app.telemetry import observe_analysis, observe_chunk

from .chunking import estimate_total_minutes, plan_chunks
from .parsing import AnalysisError, parse_chunk_response, parse_json_payload
from .progress import AnalysisProgress, DatabaseProgress
from .prompts import chunk_prompt, final_analysis_prompt
from .report import (
    build_timeline,
    build_transcript,
    confidence_for,
    default_summary,
    default_title,
    fallback_topics,
)
from .types import AnalysisJob, TranscriptSection, UsageTotals

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Downloader = Callable[[str], Awaitable[bytes]]

_FINAL_FIELDS = ("title", "summary", "main_topics", "glossary", "insights", "conclusion")


class ChunkedAnalysisRunner:
    """Transcribe a recording chunk by chunk, then summarise the sections.

    Every collaborator is injectable so tests can drive the loop without
    S3, Gemini or a database.
    """

    def __init__(
        self,
        client: GeminiClient | None = None,
        *,
        downloader: Downloader | None = None,
        progress_factory: Callable[[AnalysisJob], AnalysisProgress] | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._client = client or GeminiClient()
        self._download = downloader or download_audio
        self._progress_factory = progress_factory or (
            lambda job: DatabaseProgress(job.analysis_id, job.recording_id, job.user_id)
        )
        self._sleep = sleep or asyncio.sleep
        self._config = settings.analysis

    async def run(self, job: AnalysisJob) -> None:
        """Entry point for FastAPI background tasks; never raises."""

        progress = self._progress_factory(job)
        try:
            await self._run(job, progress)
        except Exception as exc:
            logger.exception("Analysis failed analysis=%s recording=%s", job.analysis_id, job.recording_id)
            observe_analysis("transcription", "error")
            await _safe_fail(progress, str(exc))

    async def _run(self, job: AnalysisJob, progress: AnalysisProgress) -> None:
        if not self._client.configured:
            await progress.fail("Gemini API key not configured")
            observe_analysis("transcription", "error")
            return

        total_minutes = estimate_total_minutes(job.duration_seconds, job.file_size_bytes)
        windows = plan_chunks(
            job.duration_seconds,
            job.file_size_bytes,
            self._config.chunk_duration_minutes,
            total_chunks=job.total_chunks or None,
        )
        total = len(windows)

        await progress.mark_processing(0, "Downloading audio file...")
        try:
            audio = await self._download(job.file_path)
        except StorageError as exc:
            logger.error("Audio download failed analysis=%s: %s", job.analysis_id, exc)
            await progress.fail("Failed to download audio")
            observe_analysis("transcription", "error")
            return

        mime_type = guess_audio_mime_type(job.file_path)
        logger.info(
            "Audio loaded analysis=%s bytes=%d mime=%s chunks=%d",
            job.analysis_id,
            len(audio),
            mime_type,
            total,
        )

        usage = UsageTotals()
        sections: list[TranscriptSection] = []
        previous_summary = ""

        for window in windows:
            number = window.index + 1
            await progress.mark_processing(window.index, f"Processing chunk {number}/{total}...")
            if window.index > 0:
                await self._sleep(self._config.rate_limit_delay_seconds)

            try:
                result = await self._client.generate(
                    [audio_part(audio, mime_type), text_part(chunk_prompt(window, total, previous_summary))],
                    temperature=settings.gemini.transcription_temperature,
                    max_output_tokens=settings.gemini.transcription_max_tokens,
                )
                await self._account(progress, usage, "transcription_chunk", result, window.index)

                section = parse_chunk_response(result.text, window)
                if section is None:
                    logger.warning("Chunk %d/%d had no usable transcript analysis=%s", number, total, job.analysis_id)
                    observe_chunk("empty")
                    continue

                sections.append(section)
                previous_summary = section.summary
                await progress.save_sections(sections, number, f"Completed {number}/{total}")
                observe_chunk("saved")
                logger.info("Chunk %d/%d saved analysis=%s title=%r", number, total, job.analysis_id, section.title)
            except GeminiInvocationError as exc:
                logger.warning("Chunk %d/%d failed analysis=%s: %s", number, total, job.analysis_id, str(exc)[:200])
                observe_chunk("rate_limited" if exc.rate_limited else "failed")
                if exc.rate_limited:
                    await self._sleep(self._config.rate_limit_backoff_seconds)
                    await progress.mark_processing(window.index, f"Chunk {number}/{total} skipped (rate limit)")
            except SQLAlchemyError:
                # Sections stay in memory; the next successful save writes them all.
                logger.exception("Saving chunk %d/%d failed analysis=%s", number, total, job.analysis_id)
                observe_chunk("failed")

        await progress.mark_processing(total, "Creating final analysis...")
        await self._sleep(self._config.rate_limit_delay_seconds)
        final = await self._final_analysis(job, progress, usage, sections)

        fields: dict[str, Any] = {
            "transcript": build_transcript(sections),
            "timeline": build_timeline(sections),
            "confidence_score": confidence_for(sections, total),
            "duration_analyzed": total_minutes * 60,
            "input_tokens": usage.input_tokens,
            "output_tokens": usage.output_tokens,
            "total_tokens": usage.total_tokens,
            "model_used": self._client.model,
            "estimated_cost_usd": estimate_cost(self._client.model, usage.input_tokens, usage.output_tokens),
        }
        fields.update(final)
        await progress.finish(fields, "Complete!")
        observe_analysis("transcription", "done")
        logger.info(
            "Analysis complete analysis=%s sections=%d/%d tokens=%d",
            job.analysis_id,
            len(sections),
            total,
            usage.total_tokens,
        )

    async def _final_analysis(
        self,
        job: AnalysisJob,
        progress: AnalysisProgress,
        usage: UsageTotals,
        sections: list[TranscriptSection],
    ) -> dict[str, Any]:
        final: dict[str, Any] = {
            "title": default_title(sections),
            "summary": default_summary(sections),
            "main_topics": [],
            "glossary": [],
            "insights": [],
            "conclusion": "",
        }
        if not sections:
            return final

        try:
            result = await self._client.generate(
                [text_part(final_analysis_prompt(sections))],
                temperature=settings.gemini.summary_temperature,
                max_output_tokens=settings.gemini.summary_max_tokens,
                json_output=True,
            )
            await self._account(progress, usage, "final_analysis", result)
            parsed = parse_json_payload(result.text)
        except (GeminiInvocationError, AnalysisError) as exc:
            logger.warning("Final analysis failed analysis=%s, using defaults: %s", job.analysis_id, exc)
            final["main_topics"] = fallback_topics(sections)
            return final

        for key in _FINAL_FIELDS:
            value = parsed.get(key)
            if value:
                final[key] = value
        return final

    async def _account(
        self,
        progress: AnalysisProgress,
        usage: UsageTotals,
        request_type: str,
        result: GenerationResult,
        chunk_index: int | None = None,
    ) -> None:
        usage.add(result.input_tokens, result.output_tokens)
        await progress.record_usage(request_type, result, chunk_index)


async def _safe_fail(progress: AnalysisProgress, message: str) -> None:
    try:
        await progress.fail(message)
    except Exception:  # pragma: no cover - database outage
        logger.exception("Could not persist analysis failure")


__all__ = ["ChunkedAnalysisRunner"]

"""Single-pass W4 coaching analysis of a whole recording."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

from app.config.settings import settings
from app.database import session_scope
from app.services.admin_prompts import load_active_prompt
from app.services.gemini_client import GeminiClient, file_part, text_part
from app.services.storage import download_audio, guess_audio_mime_type
from app.services.token_usage import estimate_cost
from app.telemetry import observe_analysis

from .parsing import parse_json_payload
from .progress import AnalysisProgress, DatabaseProgress
from .scoring import parse_score, rating_for, recompute_total
from .types import AnalysisJob
from .w4_prompt import DEFAULT_PROMPT_NAME, PHASE_MAXIMA, build_w4_prompt

logger = logging.getLogger(__name__)

W4_CONFIDENCE = 0.9

_LIST_FIELDS = ("what_done_right", "areas_for_improvement", "weakest_elements", "quick_wins")


def _default_phases() -> dict[str, dict[str, Any]]:
    return {
        phase: {"score": 0, "max_score": maximum, "checkpoints": []}
        for phase, maximum in PHASE_MAXIMA.items()
    }


def normalize_w4_report(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Fill every section the UI reads with a default when the model left it out.

    The model's own transcript is dropped; transcripts come from the chunked flow.
    """

    phases = _default_phases()
    raw_phases = raw.get("phases")
    if isinstance(raw_phases, Mapping):
        for phase, default in phases.items():
            value = raw_phases.get(phase)
            if isinstance(value, Mapping):
                merged = dict(default)
                merged.update(value)
                merged["checkpoints"] = list(value.get("checkpoints") or [])
                phases[phase] = merged

    report: dict[str, Any] = {
        "client_name": raw.get("client_name") or "Unknown",
        "rep_name": raw.get("rep_name") or "Unknown",
        "company_name": raw.get("company_name") or "Unknown",
        "phases": phases,
    }

    overall = raw.get("overall_performance")
    if isinstance(overall, Mapping) and overall:
        overall = dict(overall)
        total = parse_score(overall.get("total_score"))
        overall["total_score"] = recompute_total(report) if total is None else total
        overall.setdefault("rating", rating_for(overall["total_score"]))
        overall.setdefault("summary", "")
    else:
        overall = {"total_score": 0, "rating": "Below Prospect", "summary": "Analysis incomplete"}
    report["overall_performance"] = overall

    for key in _LIST_FIELDS:
        value = raw.get(key)
        report[key] = list(value) if isinstance(value, list) else []

    coaching = raw.get("coaching_recommendations")
    report["coaching_recommendations"] = dict(coaching) if isinstance(coaching, Mapping) else {}

    rank = raw.get("rank_assessment")
    report["rank_assessment"] = (
        dict(rank)
        if isinstance(rank, Mapping) and rank
        else {
            "current_rank": "Below Prospect",
            "next_level_requirements": "Complete fundamental training",
        }
    )
    return report


def report_title(report: Mapping[str, Any]) -> str:
    overall = report["overall_performance"]
    return (
        f"{report['rep_name']} - {report['client_name']} "
        f"({overall.get('rating')}: {overall.get('total_score')}/100)"
    )


async def _load_prompt_override() -> str | None:
    async with session_scope() as session:
        return await load_active_prompt(session, DEFAULT_PROMPT_NAME)


class W4AnalysisRunner:
    """Upload the recording once and ask for the full W4 report in one streamed call."""

    def __init__(
        self,
        client: GeminiClient | None = None,
        *,
        downloader: Callable[[str], Awaitable[bytes]] | None = None,
        prompt_loader: Callable[[], Awaitable[str | None]] | None = None,
        progress_factory: Callable[[AnalysisJob], AnalysisProgress] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._client = client or GeminiClient()
        self._download = downloader or download_audio
        self._load_prompt = prompt_loader or _load_prompt_override
        self._progress_factory = progress_factory or (
            lambda job: DatabaseProgress(job.analysis_id, job.recording_id, job.user_id)
        )
        self._sleep = sleep or asyncio.sleep

    async def run(self, job: AnalysisJob) -> None:
        progress = self._progress_factory(job)
        uploaded = None
        try:
            await progress.mark_processing(None, "Preparing audio for analysis...")
            audio = await self._download(job.file_path)
            mime_type = guess_audio_mime_type(job.file_path)

            logger.info("Uploading %.1fMB to Gemini analysis=%s", len(audio) / 1024 / 1024, job.analysis_id)
            uploaded = await self._client.upload_file(audio, mime_type)

            async def _on_wait() -> None:
                await progress.mark_processing(None, "AI is processing audio file...")

            active = await self._client.wait_until_active(
                uploaded,
                poll_interval=settings.analysis.file_poll_interval_seconds,
                sleep=self._sleep,
                on_wait=_on_wait,
            )

            await progress.mark_processing(None, "AI is analyzing the call using W4 methodology...")
            prompt = build_w4_prompt(await self._load_prompt(), job.duration_seconds)

            async def _on_chunk(chunk_count: int, chars: int) -> None:
                await progress.mark_processing(None, f"Analyzing... ({round(chars / 1000)}k)")

            result = await self._client.generate_stream(
                [file_part(active.uri, mime_type), text_part(prompt)],
                temperature=settings.gemini.w4_temperature,
                max_output_tokens=settings.gemini.w4_max_tokens,
                json_output=True,
                on_chunk=_on_chunk,
            )
            await progress.record_usage("w4_analysis", result)

            report = normalize_w4_report(parse_json_payload(result.text))
            await progress.finish(
                {
                    "title": report_title(report),
                    "summary": report["overall_performance"].get("summary") or "",
                    "w4_report": report,
                    "confidence_score": W4_CONFIDENCE,
                    "duration_analyzed": job.duration_seconds or 0,
                    "input_tokens": result.input_tokens,
                    "output_tokens": result.output_tokens,
                    "total_tokens": result.total_tokens,
                    "model_used": result.model,
                    "estimated_cost_usd": estimate_cost(result.model, result.input_tokens, result.output_tokens),
                },
                "W4 Analysis complete!",
            )
            observe_analysis("w4", "done")
            logger.info(
                "W4 analysis complete analysis=%s score=%s rating=%s tokens=%d",
                job.analysis_id,
                report["overall_performance"].get("total_score"),
                report["overall_performance"].get("rating"),
                result.total_tokens,
            )
        except Exception as exc:
            logger.exception("W4 analysis failed analysis=%s", job.analysis_id)
            observe_analysis("w4", "error")
            try:
                await progress.fail(str(exc))
            except Exception:  # pragma: no cover - database outage
                logger.exception("Could not persist W4 failure analysis=%s", job.analysis_id)
        finally:
            if uploaded is not None:
                await self._client.delete_file(getattr(uploaded, "name", ""))


__all__ = ["W4AnalysisRunner", "normalize_w4_report", "report_title"]

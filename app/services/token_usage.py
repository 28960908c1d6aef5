"""Token usage accounting and admin billing analytics."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping
from uuid import UUID

from sqlalchemy import desc, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.analysis import AudioAnalysis
from app.models.recording import Recording
from app.models.token_usage import TokenUsageLog
from app.models.user import User
from app.telemetry import observe_tokens

logger = logging.getLogger(__name__)

# USD per 1M tokens.
GEMINI_PRICING: dict[str, dict[str, float]] = {
    "gemini-3-pro-preview": {"input": 2.00, "output": 12.00},
    "gemini-2.5-flash": {"input": 0.075, "output": 0.30},
    "gemini-2.0-flash-exp": {"input": 0.075, "output": 0.30},
}
_FALLBACK_PRICING_MODEL = "gemini-3-pro-preview"

TIME_RANGES = ("today", "week", "month", "year")
_WEEKS_PER_YEAR = 52


def estimate_cost(model: str | None, input_tokens: int, output_tokens: int) -> float:
    """Estimated USD cost of one request."""

    pricing = GEMINI_PRICING.get(model or "", GEMINI_PRICING[_FALLBACK_PRICING_MODEL])
    return (input_tokens / 1_000_000) * pricing["input"] + (
        output_tokens / 1_000_000
    ) * pricing["output"]


async def record_token_usage(
    session: AsyncSession,
    *,
    request_type: str,
    model: str,
    input_tokens: int,
    output_tokens: int,
    user_id: int | None = None,
    analysis_id: UUID | None = None,
    recording_id: UUID | None = None,
    chunk_index: int | None = None,
) -> TokenUsageLog:
    """Stage a usage log row; the caller owns the commit."""

    entry = TokenUsageLog(
        user_id=user_id,
        analysis_id=analysis_id,
        recording_id=recording_id,
        request_type=request_type,
        chunk_index=chunk_index,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        model_used=model,
        estimated_cost_usd=round(estimate_cost(model, input_tokens, output_tokens), 6),
    )
    session.add(entry)
    observe_tokens(model, input_tokens, output_tokens)
    return entry


@dataclass(frozen=True)
class TimeRange:
    """Window used by the admin usage chart."""

    key: str
    start: datetime
    days: int
    label: str

    @property
    def by_week(self) -> bool:
        return self.key == "year"


def resolve_time_range(range_key: str | None, now: datetime | None = None) -> TimeRange:
    """Translate `today | week | month | year` into a start date; unknown keys mean month."""

    now = now or datetime.utcnow()
    if range_key == "today":
        start = datetime(now.year, now.month, now.day)
        return TimeRange("today", start, 1, "Today")
    if range_key == "week":
        return TimeRange("week", now - timedelta(days=7), 7, "Last 7 days")
    if range_key == "year":
        return TimeRange("year", now - timedelta(days=365), 365, "Last year")
    return TimeRange("month", now - timedelta(days=30), 30, "Last 30 days")


def _week_start(day: date) -> date:
    """Sunday on or before `day`."""

    return day - timedelta(days=(day.weekday() + 1) % 7)


def _row_value(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def aggregate_usage(
    rows: Iterable[Any],
    time_range: TimeRange,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Bucket analyses into zero-filled days (or Sunday weeks for `year`)."""

    now = now or datetime.utcnow()
    buckets: dict[str, dict[str, Any]] = {}

    if time_range.by_week:
        for offset in range(_WEEKS_PER_YEAR - 1, -1, -1):
            key = _week_start((now - timedelta(weeks=offset)).date()).isoformat()
            buckets.setdefault(key, {"date": key, "tokens": 0, "analyses": 0})
    else:
        for offset in range(time_range.days - 1, -1, -1):
            key = (now - timedelta(days=offset)).date().isoformat()
            buckets[key] = {"date": key, "tokens": 0, "analyses": 0}

    for row in rows:
        created_at = _row_value(row, "created_at")
        if created_at is None:
            continue
        day = created_at.date()
        key = (_week_start(day) if time_range.by_week else day).isoformat()
        bucket = buckets.get(key)
        if bucket is None:
            continue
        bucket["tokens"] += int(_row_value(row, "total_tokens") or 0)
        bucket["analyses"] += 1

    return sorted(buckets.values(), key=lambda item: item["date"])


def model_distribution(rows: Iterable[Any]) -> dict[str, int]:
    """Count analyses per model (`unknown` when no model was recorded)."""

    counts = Counter(_row_value(row, "model_used") or "unknown" for row in rows)
    return dict(counts)


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


async def get_user_token_stats(session: AsyncSession) -> list[dict[str, Any]]:
    """Per-user totals across all analyses, heaviest users first."""

    total_tokens = func.coalesce(func.sum(AudioAnalysis.total_tokens), 0).label("total_tokens")
    query = (
        select(
            User.id.label("user_id"),
            User.email.label("user_email"),
            func.count(distinct(AudioAnalysis.id)).label("total_analyses"),
            func.coalesce(func.sum(AudioAnalysis.input_tokens), 0).label("total_input_tokens"),
            func.coalesce(func.sum(AudioAnalysis.output_tokens), 0).label("total_output_tokens"),
            total_tokens,
            func.coalesce(func.sum(AudioAnalysis.estimated_cost_usd), 0).label("estimated_cost_usd"),
            func.array_agg(distinct(AudioAnalysis.model_used))
            .filter(AudioAnalysis.model_used.isnot(None))
            .label("models_used"),
            func.max(AudioAnalysis.created_at).label("last_analysis_at"),
        )
        .select_from(User)
        .outerjoin(Recording, Recording.user_id == User.id)
        .outerjoin(AudioAnalysis, AudioAnalysis.recording_id == Recording.id)
        .group_by(User.id, User.email)
        .order_by(desc(total_tokens))
    )
    result = await session.execute(query)
    return [
        {
            "user_id": row.user_id,
            "user_email": row.user_email,
            "total_analyses": int(row.total_analyses or 0),
            "total_input_tokens": int(row.total_input_tokens or 0),
            "total_output_tokens": int(row.total_output_tokens or 0),
            "total_tokens": int(row.total_tokens or 0),
            "estimated_cost_usd": _as_float(row.estimated_cost_usd),
            "models_used": list(row.models_used or []),
            "last_analysis_at": row.last_analysis_at.isoformat() if row.last_analysis_at else None,
        }
        for row in result
    ]


async def get_token_logs(
    session: AsyncSession,
    *,
    user_id: int | None = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """Most recent usage log entries, optionally for a single user."""

    query = (
        select(
            TokenUsageLog,
            User.email.label("user_email"),
            Recording.file_name.label("recording_name"),
        )
        .outerjoin(User, User.id == TokenUsageLog.user_id)
        .outerjoin(Recording, Recording.id == TokenUsageLog.recording_id)
        .order_by(TokenUsageLog.created_at.desc())
        .limit(limit)
    )
    if user_id is not None:
        query = query.where(TokenUsageLog.user_id == user_id)

    result = await session.execute(query)
    logs: list[dict[str, Any]] = []
    for entry, user_email, recording_name in result.all():
        logs.append(
            {
                "id": str(entry.id),
                "user_email": user_email,
                "recording_name": recording_name,
                "request_type": entry.request_type,
                "chunk_index": entry.chunk_index,
                "input_tokens": entry.input_tokens,
                "output_tokens": entry.output_tokens,
                "total_tokens": entry.total_tokens,
                "model_used": entry.model_used,
                "estimated_cost_usd": _as_float(entry.estimated_cost_usd),
                "created_at": entry.created_at.isoformat() if entry.created_at else None,
            }
        )
    return logs


async def get_platform_token_stats(
    session: AsyncSession,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Platform-wide totals plus today's activity."""

    now = now or datetime.utcnow()
    today = datetime(now.year, now.month, now.day)

    total_users = await session.scalar(select(func.count(User.id)))

    is_today = AudioAnalysis.created_at >= today
    totals = (
        await session.execute(
            select(
                func.count(AudioAnalysis.id).label("total_analyses"),
                func.coalesce(func.sum(AudioAnalysis.input_tokens), 0).label("total_input_tokens"),
                func.coalesce(func.sum(AudioAnalysis.output_tokens), 0).label("total_output_tokens"),
                func.coalesce(func.sum(AudioAnalysis.total_tokens), 0).label("total_tokens"),
                func.coalesce(func.sum(AudioAnalysis.estimated_cost_usd), 0).label("total_cost"),
                func.coalesce(func.avg(AudioAnalysis.total_tokens), 0).label("avg_tokens"),
                func.count(AudioAnalysis.id).filter(is_today).label("analyses_today"),
                func.coalesce(func.sum(AudioAnalysis.total_tokens).filter(is_today), 0).label(
                    "tokens_today"
                ),
            )
        )
    ).one()

    most_used_model = await session.scalar(
        select(AudioAnalysis.model_used)
        .where(AudioAnalysis.model_used.isnot(None))
        .group_by(AudioAnalysis.model_used)
        .order_by(func.count().desc())
        .limit(1)
    )

    return {
        "total_users": int(total_users or 0),
        "total_analyses": int(totals.total_analyses or 0),
        "total_input_tokens": int(totals.total_input_tokens or 0),
        "total_output_tokens": int(totals.total_output_tokens or 0),
        "total_tokens": int(totals.total_tokens or 0),
        "total_estimated_cost_usd": _as_float(totals.total_cost),
        "avg_tokens_per_analysis": round(_as_float(totals.avg_tokens), 2),
        "most_used_model": most_used_model,
        "analyses_today": int(totals.analyses_today or 0),
        "tokens_today": int(totals.tokens_today or 0),
    }


async def get_usage_rows(session: AsyncSession, time_range: TimeRange) -> list[Any]:
    """Analyses created inside the window, oldest first."""

    result = await session.execute(
        select(
            AudioAnalysis.created_at,
            AudioAnalysis.total_tokens,
            AudioAnalysis.model_used,
        )
        .where(AudioAnalysis.created_at >= time_range.start)
        .order_by(AudioAnalysis.created_at.asc())
    )
    return list(result.all())


__all__ = [
    "GEMINI_PRICING",
    "TIME_RANGES",
    "TimeRange",
    "aggregate_usage",
    "estimate_cost",
    "get_platform_token_stats",
    "get_token_logs",
    "get_usage_rows",
    "get_user_token_stats",
    "model_distribution",
    "record_token_usage",
    "resolve_time_range",
]

"""Chunk planning and timestamp formatting."""

from __future__ import annotations

import math

from .types import ChunkWindow

BYTES_PER_ESTIMATED_MINUTE = 1024 * 1024


def estimate_total_minutes(duration_seconds: float | None, file_size_bytes: int) -> float:
    """Known duration wins; otherwise assume roughly one minute of audio per MiB."""

    if duration_seconds and duration_seconds > 0:
        return duration_seconds / 60
    return max(file_size_bytes, 0) / BYTES_PER_ESTIMATED_MINUTE


def count_chunks(total_minutes: float, chunk_minutes: int) -> int:
    """Number of chunk requests needed; never less than one."""

    if total_minutes <= 0:
        return 1
    return max(1, math.ceil(total_minutes / chunk_minutes))


def plan_chunks(
    duration_seconds: float | None,
    file_size_bytes: int,
    chunk_minutes: int,
    total_chunks: int | None = None,
) -> list[ChunkWindow]:
    """Split the recording into consecutive windows; the last one ends at the total."""

    total_minutes = estimate_total_minutes(duration_seconds, file_size_bytes)
    if total_chunks is None:
        total_chunks = count_chunks(total_minutes, chunk_minutes)

    windows = []
    for index in range(total_chunks):
        start = index * chunk_minutes
        end = min((index + 1) * chunk_minutes, total_minutes)
        windows.append(ChunkWindow(index=index, start_minute=start, end_minute=end))
    return windows


def format_timestamp(minutes: float) -> str:
    """`H:MM:00` from the first hour on, `M:00` before it."""

    whole = int(minutes)
    hours, mins = divmod(whole, 60)
    if hours > 0:
        return f"{hours}:{mins:02d}:00"
    return f"{mins}:00"


def format_clock(minutes: float) -> str:
    whole = int(minutes)
    hours, mins = divmod(whole, 60)
    return f"{hours}:{mins:02d}"


def format_range(window: ChunkWindow) -> str:
    """Human range used inside chunk prompts, e.g. `0:45 to 1:30`."""

    return f"{format_clock(window.start_minute)} to {format_clock(window.end_minute)}"


def format_duration(seconds: float) -> str:
    """`H:MM:SS` for long recordings, `M:SS` otherwise."""

    total = int(seconds or 0)
    hours, rest = divmod(total, 3600)
    mins, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


__all__ = [
    "count_chunks",
    "estimate_total_minutes",
    "format_duration",
    "format_range",
    "format_timestamp",
    "plan_chunks",
]

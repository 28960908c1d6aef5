"""Chunk planning and timestamp formatting."""

from __future__ import annotations

import pytest

from app.pipelines.analysis.chunking import (
    count_chunks,
    estimate_total_minutes,
    format_duration,
    format_range,
    format_timestamp,
    plan_chunks,
)
from app.pipelines.analysis.types import ChunkWindow

MIB = 1024 * 1024


def test_known_duration_splits_into_45_minute_windows():
    windows = plan_chunks(100 * 60, 5 * MIB, 45)

    assert [(w.index, w.start_minute, w.end_minute) for w in windows] == [
        (0, 0, 45),
        (1, 45, 90),
        (2, 90, 100),
    ]


def test_missing_duration_estimates_one_minute_per_mib():
    assert estimate_total_minutes(None, 120 * MIB) == 120
    assert estimate_total_minutes(0, 30 * MIB) == 30

    windows = plan_chunks(None, 120 * MIB, 45)
    assert len(windows) == 3
    assert windows[-1].end_minute == 120


def test_short_or_empty_recordings_still_get_one_chunk():
    assert count_chunks(0, 45) == 1
    assert count_chunks(10, 45) == 1
    assert count_chunks(45, 45) == 1
    assert count_chunks(45.5, 45) == 2
    assert len(plan_chunks(None, 0, 45)) == 1


def test_explicit_total_is_respected():
    windows = plan_chunks(60 * 60, 0, 45, total_chunks=1)

    assert len(windows) == 1
    assert windows[0].end_minute == 45


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [(0, "0:00"), (45, "45:00"), (59.9, "59:00"), (60, "1:00:00"), (135, "2:15:00")],
)
def test_format_timestamp(minutes, expected):
    assert format_timestamp(minutes) == expected


def test_format_range_uses_hours_and_minutes():
    assert format_range(ChunkWindow(index=1, start_minute=45, end_minute=90)) == "0:45 to 1:30"


def test_format_duration():
    assert format_duration(65) == "1:05"
    assert format_duration(3725) == "1:02:05"
    assert format_duration(0) == "0:00"

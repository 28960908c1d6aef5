"""W4 score helpers."""

from __future__ import annotations

import re
from typing import Any, Mapping

from .w4_prompt import PHASE_MAXIMA

# Lower bound of each rating, highest first.
RATING_THRESHOLDS = (
    (90, "MVP"),
    (75, "Playmaker"),
    (60, "Starter"),
    (45, "Prospect"),
    (0, "Below Prospect"),
)


def rating_for(total_score: float) -> str:
    for threshold, rating in RATING_THRESHOLDS:
        if total_score >= threshold:
            return rating
    return "Below Prospect"


_LEADING_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")


def parse_score(value: Any) -> int | float | None:
    """Numeric score from model output; `"85/100"` gives 85, `"N/A"` gives None."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return _clean(value)
    match = _LEADING_NUMBER.match(str(value))
    return _clean(float(match.group(1))) if match else None


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _clean(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def phase_totals(report: Mapping[str, Any]) -> dict[str, int | float]:
    """Checkpoint scores summed per phase, clamped to each phase maximum."""

    phases = report.get("phases") or {}
    totals: dict[str, int | float] = {}
    for phase, maximum in PHASE_MAXIMA.items():
        checkpoints = (phases.get(phase) or {}).get("checkpoints") or []
        score = sum(max(_number(cp.get("score")), 0.0) for cp in checkpoints if isinstance(cp, Mapping))
        totals[phase] = _clean(min(score, maximum))
    return totals


def recompute_total(report: Mapping[str, Any]) -> int | float:
    return _clean(sum(phase_totals(report).values()))


__all__ = ["RATING_THRESHOLDS", "parse_score", "phase_totals", "rating_for", "recompute_total"]

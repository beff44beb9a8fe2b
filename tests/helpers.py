"""Shared test helpers for stream stats tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path


def make_session(num_segments: int | None) -> dict:
    """Build a session record with *num_segments* segments.

    ``None`` leaves the segments key out entirely.
    """
    if num_segments is None:
        return {"startedAt": "2024-01-01T18:00:00Z"}
    return {
        "startedAt": "2024-01-01T18:00:00Z",
        "segments": [{"viewers": 10 + i, "category": "chatting"} for i in range(num_segments)],
    }


def make_category(
    avg: float = 0,
    peak: float = 0,
    total: float = 0,
    samples: int = 0,
    msgs: int = 0,
) -> dict:
    """Build a categoryStats record."""
    return {
        "peakViewers": peak,
        "avgViewers": avg,
        "totalViewers": total,
        "sampleCount": samples,
        "totalMsgs": msgs,
    }


def make_daily_stats(start: str, num_days: int) -> dict[str, dict]:
    """Build dailyStats for *num_days* consecutive days starting at *start*.

    Each day's avgViewers is its index, so tests can tell days apart.
    """
    first = date.fromisoformat(start)
    days = {}
    for i in range(num_days):
        key = (first + timedelta(days=i)).isoformat()
        days[key] = {
            "avgViewers": i,
            "peakViewers": i * 2,
            "totalMsgs": i * 3,
            "categories": ["chatting"],
        }
    return days


def make_document(
    sessions: list | None = None,
    category_stats: dict | None = None,
    hourly_patterns: dict | None = None,
    daily_stats: dict | None = None,
) -> dict:
    """Build a full input document, each section defaulting to empty."""
    return {
        "sessions": sessions or [],
        "categoryStats": category_stats or {},
        "hourlyPatterns": hourly_patterns or {},
        "dailyStats": daily_stats or {},
    }


def write_json(path: Path, data: object) -> Path:
    """Write *data* as JSON to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path

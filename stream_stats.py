"""Core aggregation for stream viewing statistics.

Reads the segment data written by the stream bot's collector
(bot-data/stream-segments.json) and derives the summary document served
by the static stats page (docs/stream-stats.json).
Used by the CLI (generate_stream_stats.py) and the chart script
(stream_stats_viz.py).
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, localcontext
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).parent
SEGMENT_FILE = BASE_DIR / "bot-data" / "stream-segments.json"
OUTPUT_FILE = BASE_DIR / "docs" / "stream-stats.json"
DAILY_HISTORY_DAYS = 14


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class StreamStatsError(Exception):
    """Base class for stream stats failures."""


class MissingInputError(StreamStatsError, FileNotFoundError):
    """An input JSON file does not exist."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"No data found at {self.path}")


class MalformedInputError(StreamStatsError, ValueError):
    """An input file is not a JSON object of the expected shape."""


class WriteError(StreamStatsError, OSError):
    """The stats document could not be written."""


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------
def _reject_constant(name: str) -> None:
    """Reject the NaN/Infinity literals Python's json module accepts."""
    raise MalformedInputError(f"Invalid JSON constant {name!r}")


def _parse_finite_float(text: str) -> float:
    """Parse a JSON number, rejecting ones that overflow to infinity."""
    value = float(text)
    if math.isinf(value):
        raise MalformedInputError(f"Number out of range: {text}")
    return value


def read_json_object(path: str | Path) -> dict[str, Any]:
    """Read a JSON file whose top-level value must be an object.

    Raises:
        MissingInputError: If the file at *path* does not exist.
        MalformedInputError: If the file is not valid JSON, or is valid
            JSON but not an object.
    """
    path = Path(path)
    if not path.exists():
        raise MissingInputError(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(
                f,
                parse_constant=_reject_constant,
                parse_float=_parse_finite_float,
            )
    except ValueError as exc:
        # JSONDecodeError, UnicodeDecodeError and the hook errors are all ValueErrors
        raise MalformedInputError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedInputError(
            f"Expected a JSON object in {path}, got {type(data).__name__}"
        )
    return data


def load_segment_data(path: str | Path = SEGMENT_FILE) -> dict[str, Any]:
    """Load the collector's segment data document.

    Args:
        path: Filesystem path to stream-segments.json.  Defaults to
            ``bot-data/stream-segments.json`` next to this module.

    Returns:
        The parsed top-level JSON object.

    Raises:
        MissingInputError: If the file at *path* does not exist.
        MalformedInputError: If the file is not valid JSON, or is valid
            JSON but not an object.
    """
    data = read_json_object(path)
    logger.debug(
        "Loaded segment data from %s (%d top-level keys)", path, len(data)
    )
    return data


# ---------------------------------------------------------------------------
# Decode helpers
# ---------------------------------------------------------------------------
def _num(record: dict, key: str) -> int | float:
    """Return ``record[key]``, or 0 when the field is absent, null or falsy."""
    return record.get(key) or 0


def _as_record(value: Any, label: str) -> dict:
    """Coerce a mapping value to a dict, treating anything else as empty."""
    if isinstance(value, dict):
        return value
    logger.warning("Ignoring non-object record for %s: %r", label, value)
    return {}


def _section(data: dict, key: str, default_type: type) -> Any:
    """Return a top-level section of the input, defaulting missing/null ones."""
    value = data.get(key)
    if value is None:
        return default_type()
    if not isinstance(value, default_type):
        raise MalformedInputError(
            f"Expected {key!r} to be a {default_type.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _segment_count(session: Any) -> int:
    """Number of segments in a session record (0 when absent)."""
    if not isinstance(session, dict):
        logger.warning("Ignoring non-object session record: %r", session)
        return 0
    segments = session.get("segments")
    if not segments:
        return 0
    if not isinstance(segments, list):
        logger.warning("Ignoring non-list segments value: %r", segments)
        return 0
    return len(segments)


def round_half_up(value: int | float | Decimal) -> int:
    """Round to the nearest integer, with exact halves going away from zero.

    Unlike the built-in ``round`` (2.5 -> 2), this gives 2.5 -> 3.
    """
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Compute
# ---------------------------------------------------------------------------
def compute_totals(data: dict) -> dict[str, int]:
    """Count sessions, distinct days and segments across all sessions.

    Args:
        data: The parsed input document (from ``load_segment_data``).

    Returns:
        Dict with keys totalSessions, totalDays, totalSegments.
    """
    sessions = _section(data, "sessions", list)
    daily_stats = _section(data, "dailyStats", dict)
    return {
        "totalSessions": len(sessions),
        "totalDays": len(daily_stats),
        "totalSegments": sum(_segment_count(s) for s in sessions),
    }


def _weighted_average(total: int | float, samples: int | float) -> int:
    """Round total / samples half up, exactly, however large the total."""
    numerator = Decimal(total)
    with localcontext() as ctx:
        # enough digits for the whole integer part plus the rounding digit
        denominator = Decimal(samples)
        ctx.prec = max(ctx.prec, numerator.adjusted() - denominator.adjusted() + 10)
        return round_half_up(numerator / denominator)


def compute_all_time_stats(category_stats: dict) -> dict[str, int | float]:
    """Derive all-time peak, average and message totals from category stats.

    The peak is a running maximum starting at 0, so it is never negative
    and is 0 when there are no categories.  The average is weighted by
    sample count: sum(totalViewers) / sum(sampleCount), rounded half up,
    and 0 when no samples were recorded.

    Args:
        category_stats: Mapping of category name to its stats record.

    Returns:
        Dict with keys allTimePeak, allTimeAvg, totalMessages.
    """
    all_time_peak = 0
    total_viewers = 0
    total_samples = 0
    total_msgs = 0

    for name, raw in category_stats.items():
        cs = _as_record(raw, f"category {name!r}")
        all_time_peak = max(all_time_peak, _num(cs, "peakViewers"))
        total_viewers += _num(cs, "totalViewers")
        total_samples += _num(cs, "sampleCount")
        total_msgs += _num(cs, "totalMsgs")

    all_time_avg = (
        _weighted_average(total_viewers, total_samples)
        if total_samples > 0
        else 0
    )

    return {
        "allTimePeak": all_time_peak,
        "allTimeAvg": all_time_avg,
        "totalMessages": total_msgs,
    }


def compute_category_rankings(category_stats: dict) -> list[dict]:
    """Rank categories by average viewers, highest first.

    ``sorted`` is stable, so categories with equal averages keep the
    order they have in the input mapping.
    """
    categories = []
    for name, raw in category_stats.items():
        cs = _as_record(raw, f"category {name!r}")
        categories.append(
            {
                "name": name,
                "avgViewers": _num(cs, "avgViewers"),
                "peakViewers": _num(cs, "peakViewers"),
                "sampleCount": _num(cs, "sampleCount"),
                "totalMsgs": _num(cs, "totalMsgs"),
            }
        )
    return sorted(categories, key=lambda c: c["avgViewers"], reverse=True)


def compute_daily_history(
    daily_stats: dict, days: int = DAILY_HISTORY_DAYS
) -> list[dict]:
    """Return the most recent *days* daily records, oldest first.

    Date keys are ISO dates, so a plain string sort is chronological.

    Args:
        daily_stats: Mapping of date key to daily stats record.
        days: How many trailing days to keep.

    Returns:
        List of dicts with keys date, avgViewers, peakViewers, totalMsgs,
        categories.  ``categories`` is passed through untouched.
    """
    if days <= 0:
        return []

    history = []
    for date in sorted(daily_stats)[-days:]:
        ds = _as_record(daily_stats[date], f"day {date!r}")
        history.append(
            {
                "date": date,
                "avgViewers": _num(ds, "avgViewers"),
                "peakViewers": _num(ds, "peakViewers"),
                "totalMsgs": _num(ds, "totalMsgs"),
                "categories": ds.get("categories") or [],
            }
        )
    return history


def compute_hourly_patterns(hourly_patterns: dict) -> dict[str, dict]:
    """Copy hourly patterns with every numeric field defaulted to 0."""
    hourly_out = {}
    for hour, raw in hourly_patterns.items():
        hp = _as_record(raw, f"hour {hour!r}")
        hourly_out[hour] = {
            "avgViewers": _num(hp, "avgViewers"),
            "sampleCount": _num(hp, "sampleCount"),
            "totalMsgs": _num(hp, "totalMsgs"),
        }
    return hourly_out


def _utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds and a ``Z`` suffix."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_stream_stats(
    data: dict, now: datetime | None = None
) -> dict[str, Any]:
    """One-call entry point: compute the full stats document from input data.

    Pure apart from ``lastUpdated``, which reflects *now* (defaulting to
    the current UTC time).

    Args:
        data: The parsed input document (from ``load_segment_data``).
        now: Generation time to stamp into ``lastUpdated``.

    Returns:
        Dict with keys totalSessions, totalDays, totalSegments,
        allTimePeak, allTimeAvg, totalMessages, categories,
        hourlyPatterns, dailyHistory, lastUpdated.
    """
    category_stats = _section(data, "categoryStats", dict)
    hourly_patterns = _section(data, "hourlyPatterns", dict)
    daily_stats = _section(data, "dailyStats", dict)

    totals = compute_totals(data)
    all_time = compute_all_time_stats(category_stats)

    return {
        "totalSessions": totals["totalSessions"],
        "totalDays": totals["totalDays"],
        "totalSegments": totals["totalSegments"],
        "allTimePeak": all_time["allTimePeak"],
        "allTimeAvg": all_time["allTimeAvg"],
        "totalMessages": all_time["totalMessages"],
        "categories": compute_category_rankings(category_stats),
        "hourlyPatterns": compute_hourly_patterns(hourly_patterns),
        "dailyHistory": compute_daily_history(daily_stats),
        "lastUpdated": _utc_timestamp(now),
    }


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
def save_stream_stats(
    stats: dict[str, Any], path: str | Path = OUTPUT_FILE
) -> None:
    """Write the stats document as pretty-printed JSON, replacing any old file.

    The parent directory must already exist.

    Raises:
        WriteError: If *path* cannot be written (permissions, missing
            directory, disk full).
    """
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(stats, f, indent=2, ensure_ascii=False)
            f.write("\n")
    except OSError as exc:
        raise WriteError(f"Could not write stream stats to {path}: {exc}") from exc
    logger.debug("Wrote stream stats to %s", path)


def print_summary_report(stats: dict[str, Any], output_path: str | Path) -> None:
    """Print a short human-readable summary of a generated stats document."""
    print(f"Stream stats generated -> {output_path}")
    print(
        f"   {stats['totalSessions']} sessions"
        f" | {stats['totalSegments']} data points"
        f" | {len(stats['categories'])} categories"
        f" | {len(stats['dailyHistory'])} days"
    )
    print(
        f"   All-time peak: {stats['allTimePeak']}"
        f" | All-time avg: {stats['allTimeAvg']}"
        f" | Messages: {stats['totalMessages']}"
    )

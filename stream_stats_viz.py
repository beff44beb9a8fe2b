"""Charts for the generated stream stats document.

Reads docs/stream-stats.json (written by generate_stream_stats.py) and saves
PNG charts for the last two weeks of viewers, the hour-of-day pattern and the
category ranking into docs/charts/.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from stream_stats import OUTPUT_FILE, MissingInputError, read_json_object

logger = logging.getLogger(__name__)

CHART_DIR = OUTPUT_FILE.parent / "charts"
ROLLING_WINDOW = 3


def load_stream_stats(path: str | Path = OUTPUT_FILE) -> dict[str, Any]:
    """Load a generated stats document.

    Raises:
        MissingInputError: If the file at *path* does not exist.
        MalformedInputError: If the file is not a JSON object.
    """
    return read_json_object(path)


def daily_history_frame(stats: dict[str, Any]) -> pd.DataFrame:
    """Daily history as a date-sorted frame with a short rolling average."""
    df = pd.DataFrame(
        stats.get("dailyHistory") or [],
        columns=["date", "avgViewers", "peakViewers", "totalMsgs"],
    )
    if df.empty:
        return df
    df["date"] = pd.to_datetime(df["date"])
    df = df.sort_values("date").reset_index(drop=True)
    df["avg_viewers_3d"] = (
        df["avgViewers"].rolling(window=ROLLING_WINDOW, min_periods=1).mean()
    )
    return df


def _hour_sort_key(hour: str) -> tuple[int, int, str]:
    """Numeric hour keys in numeric order, then any other keys by string."""
    try:
        return (0, int(hour), "")
    except ValueError:
        return (1, 0, hour)


def hourly_frame(stats: dict[str, Any]) -> pd.DataFrame:
    """Hourly patterns as one row per hour key, sorted by hour of day.

    ``hour`` holds the integer hour for numeric keys ("9", "14") and the
    key itself otherwise ("14:00").
    """
    hourly = stats.get("hourlyPatterns") or {}
    rows = []
    for key in sorted(hourly, key=_hour_sort_key):
        non_numeric, hour, _ = _hour_sort_key(key)
        rows.append({"hour": key if non_numeric else hour, **hourly[key]})
    return pd.DataFrame(rows, columns=["hour", "avgViewers", "sampleCount", "totalMsgs"])


def category_frame(stats: dict[str, Any]) -> pd.DataFrame:
    """Category ranking in the order it appears in the stats document."""
    return pd.DataFrame(
        stats.get("categories") or [],
        columns=["name", "avgViewers", "peakViewers", "sampleCount", "totalMsgs"],
    )


def plot_daily_history(df: pd.DataFrame, output_dir: str | Path) -> Path | None:
    """Bar and line chart of daily average and peak viewers."""
    if df.empty:
        return None
    out = Path(output_dir) / "daily_viewers.png"
    fig, ax = plt.subplots(figsize=(15, 8))
    ax.bar(df["date"], df["avgViewers"], alpha=0.5, color="skyblue", label="Avg Viewers")
    ax.plot(df["date"], df["peakViewers"], color="red", linewidth=2, marker="o", label="Peak Viewers")
    ax.plot(df["date"], df["avg_viewers_3d"], color="purple", linewidth=2, label="3-day Average")
    ax.set_title("Daily Viewers (Last 14 Days)", fontsize=14, pad=20)
    ax.set_xlabel("Date", fontsize=12)
    ax.set_ylabel("Viewers", fontsize=12)
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.autofmt_xdate(rotation=45)
    fig.tight_layout()
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out


def plot_hourly_patterns(df: pd.DataFrame, output_dir: str | Path) -> Path | None:
    """Bar chart of average viewers per hour."""
    if df.empty:
        return None
    out = Path(output_dir) / "hourly_viewers.png"
    fig, ax = plt.subplots(figsize=(15, 6))
    labels = df["hour"].astype(str)
    sns.barplot(x=labels, y=df["avgViewers"], order=labels.tolist(), color="lightgreen", ax=ax)
    ax.set_title("Average Viewers by Hour of Day", fontsize=14, pad=20)
    ax.set_xlabel("Hour", fontsize=12)
    ax.set_ylabel("Average Viewers", fontsize=12)
    ax.grid(True, axis="y", alpha=0.3)
    fig.tight_layout()
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out


def plot_category_rankings(df: pd.DataFrame, output_dir: str | Path) -> Path | None:
    """Horizontal bar chart of categories by average viewers."""
    if df.empty:
        return None
    out = Path(output_dir) / "category_rankings.png"
    fig, ax = plt.subplots(figsize=(12, max(4, 0.5 * len(df))))
    sns.barplot(data=df, y="name", x="avgViewers", color="lightcoral", orient="h", ax=ax)
    ax.set_title("Categories by Average Viewers", fontsize=14, pad=20)
    ax.set_xlabel("Average Viewers", fontsize=12)
    ax.set_ylabel("")
    ax.grid(True, axis="x", alpha=0.3)
    fig.tight_layout()
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out


def render_charts(
    stats: dict[str, Any], output_dir: str | Path = CHART_DIR
) -> list[Path]:
    """Render every chart with data into *output_dir*, returning written paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = [
        plot_daily_history(daily_history_frame(stats), output_dir),
        plot_hourly_patterns(hourly_frame(stats), output_dir),
        plot_category_rankings(category_frame(stats), output_dir),
    ]
    return [p for p in written if p is not None]


def main(
    stats_path: str | Path = OUTPUT_FILE,
    output_dir: str | Path = CHART_DIR,
) -> None:
    """CLI entry point: chart the generated stats document."""
    try:
        stats = load_stream_stats(stats_path)
    except MissingInputError as exc:
        logger.error("%s (run generate_stream_stats.py first)", exc)
        sys.exit(1)

    paths = render_charts(stats, output_dir)
    if not paths:
        print("No data to chart.")
        return
    for path in paths:
        print(f"Saved {path}")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    main()

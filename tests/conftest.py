"""Shared fixtures for stream stats tests."""

from __future__ import annotations

import pytest

from helpers import make_category, make_document, write_json


def _scenario_document() -> dict:
    """The single-category document used as the reference scenario."""
    return make_document(
        sessions=[],
        category_stats={
            "chatting": make_category(avg=30, peak=50, total=300, samples=10, msgs=20),
        },
        daily_stats={
            "2024-01-01": {
                "avgViewers": 25,
                "peakViewers": 40,
                "totalMsgs": 15,
                "categories": ["chatting"],
            },
        },
        hourly_patterns={
            "14": {"avgViewers": 28, "sampleCount": 5, "totalMsgs": 10},
        },
    )


@pytest.fixture()
def scenario_document():
    """Return the reference single-category input document."""
    return _scenario_document()


@pytest.fixture()
def workspace(tmp_path):
    """A bot-data/ + docs/ layout under tmp_path.

    Returns (input_path, output_path); the input file is not created.
    """
    (tmp_path / "bot-data").mkdir()
    (tmp_path / "docs").mkdir()
    return (
        tmp_path / "bot-data" / "stream-segments.json",
        tmp_path / "docs" / "stream-stats.json",
    )


@pytest.fixture()
def scenario_files(workspace, scenario_document):
    """Workspace with the reference document written to the input path."""
    input_path, output_path = workspace
    write_json(input_path, scenario_document)
    return input_path, output_path

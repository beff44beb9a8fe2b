"""generate_stream_stats.py

Build docs/stream-stats.json from the bot's bot-data/stream-segments.json.

Run before each publish of the stats page:

    python generate_stream_stats.py

Takes no arguments.  Exits 1 if the segment data file is missing; any other
failure (bad JSON, unwritable output) is left to propagate.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from stream_stats import (
    OUTPUT_FILE,
    SEGMENT_FILE,
    MissingInputError,
    build_stream_stats,
    load_segment_data,
    print_summary_report,
    save_stream_stats,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def main(
    input_path: str | Path = SEGMENT_FILE,
    output_path: str | Path = OUTPUT_FILE,
) -> None:
    """Load segment data, compute the stats document and write it out."""
    try:
        data = load_segment_data(input_path)
    except MissingInputError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    stats = build_stream_stats(data)
    save_stream_stats(stats, output_path)
    print_summary_report(stats, output_path)


def run() -> None:
    """Console script entry point."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
    main()


if __name__ == "__main__":
    run()

"""Loguru sink setup shared by the server, gateway and dashboard."""

import sys

from loguru import logger

_sink_ids = []


def setup_logging(level: str = "INFO", serialize: bool = False) -> None:
    """Replace loguru's default sink with one stderr sink at ``level``.

    Safe to call more than once; earlier sinks added here are removed first.
    """
    global _sink_ids
    if not _sink_ids:
        # drop loguru's built-in handler on first setup
        logger.remove()
    for sink_id in _sink_ids:
        try:
            logger.remove(sink_id)
        except ValueError:
            continue
    _sink_ids = [logger.add(sys.stderr, level=level, serialize=serialize)]

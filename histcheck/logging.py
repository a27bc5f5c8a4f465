"""
Logging configuration for histcheck.

Provides consistent logging format across all modules with:
- JSON-shaped output for CI log scraping
- Human-readable output for local runs
- Run ID tracking so verdict lines can be tied back to a test run
"""

import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TextIO

# Context variable for tracking the run whose history is being analyzed
current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)


class HistcheckFormatter(logging.Formatter):
    """
    Formatter adding an ISO timestamp and the current run ID (if set).
    """

    def format(self, record: logging.LogRecord) -> str:
        record.timestamp = datetime.now(UTC).isoformat()

        run_id = current_run_id.get()
        record.run_id = f"[{run_id}] " if run_id else ""

        return super().format(record)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure logging for histcheck.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output one JSON object per line
        stream: Where log lines go (default stdout). Tools that print a
            report on stdout pass stderr here.

    Returns:
        Configured root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(numeric_level)

    if json_output:
        fmt = (
            '{"timestamp": "%(timestamp)s", "level": "%(levelname)s", '
            '"module": "%(name)s", "run_id": "%(run_id)s", "message": "%(message)s"}'
        )
    else:
        fmt = "%(timestamp)s | %(levelname)-8s | %(name)s | %(run_id)s%(message)s"

    handler.setFormatter(HistcheckFormatter(fmt))
    root.addHandler(handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_run_id(run_id: str) -> None:
    """Set the current run ID for log correlation."""
    current_run_id.set(run_id)


def clear_run_id() -> None:
    """Clear the current run ID."""
    current_run_id.set(None)

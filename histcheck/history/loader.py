"""
History ingestion.

Reads a history written as JSON Lines (one operation object per line).
Unparseable numbers inside values are left for the value models to
normalize to None; only structurally broken lines are errors.
"""

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from histcheck.errors import HistoryFormatError
from histcheck.history.models import History, Operation
from histcheck.logging import get_logger

logger = get_logger(__name__)

_KEYWORD_FIELDS = ("type", "f", "error")


def _strip_keyword(v: Any) -> Any:
    # Jepsen EDN exports write keywords as ":ok"
    if isinstance(v, str) and v.startswith(":"):
        return v[1:]
    return v


def parse_record(data: dict[str, Any]) -> Operation:
    """Build an Operation from a decoded JSON object."""
    record = {_strip_keyword(k): v for k, v in data.items()}
    for key in _KEYWORD_FIELDS:
        if key in record:
            record[key] = _strip_keyword(record[key])
    return Operation.model_validate(record)


def parse_lines(lines: Iterable[str]) -> History:
    """
    Parse JSON Lines text into a History.

    Raises:
        HistoryFormatError: A line is not a JSON object or not a valid operation
    """
    ops: list[Operation] = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise HistoryFormatError(f"invalid JSON: {e.msg}", line=lineno) from e
        if not isinstance(data, dict):
            raise HistoryFormatError("expected a JSON object", line=lineno)
        try:
            ops.append(parse_record(data))
        except ValidationError as e:
            raise HistoryFormatError(
                f"invalid operation: {e.error_count()} error(s)", line=lineno
            ) from e
    return History(ops)


def load_history(path: Path) -> History:
    """
    Load a JSON Lines history file.

    Args:
        path: Path to the ``.jsonl`` history

    Returns:
        History in file order
    """
    with open(path, encoding="utf-8") as f:
        history = parse_lines(f)
    logger.info("Loaded history %s (%d ops)", path, len(history))
    return history

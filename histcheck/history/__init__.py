"""
History model and ingestion.

- Operation: one record of the run log (invoke / ok / fail / info)
- History: immutable ordered sequence of operations
- MonotonicRow, Transfer: workload value shapes
"""

from histcheck.history.loader import load_history, parse_lines
from histcheck.history.models import (
    FailureClass,
    History,
    MonotonicRow,
    OpKind,
    Operation,
    OpType,
    Transfer,
    parse_int,
)

__all__ = [
    "FailureClass",
    "History",
    "MonotonicRow",
    "OpKind",
    "OpType",
    "Operation",
    "Transfer",
    "load_history",
    "parse_int",
    "parse_lines",
]

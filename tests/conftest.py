"""
Pytest configuration and shared fixtures.
"""

from collections.abc import Callable, Generator
from typing import Any

import pytest

from histcheck.config import get_settings
from histcheck.history import History, OpKind, Operation, OpType

OpFactory = Callable[..., Operation]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Ensure no local .env or HISTCHECK_* variables leak into tests."""
    import os

    for var in list(os.environ):
        if var.upper().startswith("HISTCHECK_"):
            monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def op() -> OpFactory:
    """Factory for single operations: ``op("ok", "add", 3)``."""

    def _make(type: str, f: str, value: Any = None, error: str | None = None) -> Operation:
        return Operation(type=OpType(type), f=OpKind(f), value=value, error=error)

    return _make


@pytest.fixture
def set_history() -> Callable[..., History]:
    """
    Build a set-workload history.

    Every value in ``attempts`` is invoked; ``acknowledged`` values complete
    OK, the rest complete INFO (timed out). ``final_read`` (if not None) is
    appended as an OK read.
    """

    def _make(
        attempts: list[int],
        acknowledged: list[int],
        final_read: list[Any] | None,
    ) -> History:
        records: list[dict[str, Any]] = []
        for v in attempts:
            records.append({"type": "invoke", "f": "add", "value": v})
            if v in acknowledged:
                records.append({"type": "ok", "f": "add", "value": v})
            else:
                records.append({"type": "info", "f": "add", "value": v, "error": "timeout"})
        if final_read is not None:
            records.append({"type": "invoke", "f": "read", "value": None})
            records.append({"type": "ok", "f": "read", "value": final_read})
        return History.from_records(records)

    return _make


@pytest.fixture
def monotonic_history() -> Callable[..., History]:
    """
    Build a monotonic-workload history.

    ``committed`` values get an OK add (carrying the value), ``failed`` is a
    list of error strings for FAIL adds, and ``rows`` is the final read.
    """

    def _make(
        committed: list[int],
        rows: list[list[Any]] | None,
        failed: list[str] | None = None,
    ) -> History:
        records: list[dict[str, Any]] = []
        for v in committed:
            records.append({"type": "invoke", "f": "add", "value": None})
            records.append({"type": "ok", "f": "add", "value": v})
        for error in failed or []:
            records.append({"type": "invoke", "f": "add", "value": None})
            records.append({"type": "fail", "f": "add", "value": None, "error": error})
        if rows is not None:
            records.append({"type": "invoke", "f": "read", "value": None})
            records.append({"type": "ok", "f": "read", "value": rows})
        return History.from_records(records)

    return _make

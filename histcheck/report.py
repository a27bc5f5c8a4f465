"""
Report assembly.

Merges the verdicts of several checkers (ours and external ones such as the
performance or linearizability checkers) into one test report.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from histcheck.checkers.base import Verdict
from histcheck.history.models import History
from histcheck.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "unknown"


class ExternalChecker(Protocol):
    """Anything with a ``check(history)`` returning a verdict or a mapping."""

    def check(self, history: History) -> Verdict | Mapping[str, Any]: ...


class Report(BaseModel):
    """Final report: overall validity plus each checker's result."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    valid: bool = Field(..., alias="valid?")
    results: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @property
    def failed(self) -> list[str]:
        """Names of the checkers whose result is invalid."""
        return [name for name, result in self.results.items() if not _is_valid(result)]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _as_result(verdict: Verdict | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(verdict, Verdict):
        return verdict.to_dict()
    return dict(verdict)


def _is_valid(result: Mapping[str, Any]) -> bool:
    # External checkers may answer "unknown" when they cannot decide
    valid = result.get("valid?")
    return valid is True or valid == UNKNOWN


def assemble_report(verdicts: Mapping[str, Verdict | Mapping[str, Any]]) -> Report:
    """
    Merge named verdicts into a report.

    A result without a ``valid?`` key counts as invalid.
    """
    results = {name: _as_result(v) for name, v in verdicts.items()}
    valid = all(_is_valid(r) for r in results.values())
    return Report(valid=valid, results=results)


class CompositeChecker:
    """
    Runs several named checkers over the same history.

    Checkers share no state, so the order they run in does not matter.
    """

    def __init__(self, checkers: Mapping[str, ExternalChecker]):
        self._checkers = dict(checkers)

    @property
    def names(self) -> list[str]:
        return list(self._checkers)

    def __getitem__(self, name: str) -> ExternalChecker:
        return self._checkers[name]

    def check(self, history: History) -> Report:
        verdicts = {name: checker.check(history) for name, checker in self._checkers.items()}
        report = assemble_report(verdicts)
        if report.valid:
            logger.info("History valid (%s)", ", ".join(self._checkers))
        else:
            logger.warning("History INVALID: failed checkers %s", report.failed)
        return report

    def __repr__(self) -> str:
        return f"CompositeChecker({self._checkers!r})"

"""
Checker interface and verdict base model.

A checker is a pure function of (history, model configuration). The
configuration is fixed at construction; ``check`` may be called any number
of times and on any thread, and always returns an equal verdict for an equal
history.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from histcheck.history.models import History

NEVER_READ = "Set was never read"


class Verdict(BaseModel):
    """
    Result of one checker invocation.

    Serialized with hyphenated keys (``valid?``, ``lost-frac``) to match the
    report format the rest of the harness consumes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    valid: bool = Field(..., alias="valid?")
    error: str | None = Field(
        default=None,
        description="Set when the checker could not analyze the history",
    )

    def to_dict(self) -> dict[str, Any]:
        """Report-facing representation."""
        data = self.model_dump(by_alias=True, mode="json")
        if data.get("error") is None:
            data.pop("error", None)
        return data


def never_read(message: str = NEVER_READ) -> Verdict:
    """Degraded verdict for a history with no usable final read."""
    return Verdict(valid=False, error=message)


class Checker(ABC):
    """
    Abstract base class for history checkers.

    Implementations never raise for problems in the history; a degenerate
    history yields an invalid verdict with ``error`` set.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Key under which this checker's verdict appears in a report."""
        pass

    @abstractmethod
    def check(self, history: History) -> Verdict:
        """
        Analyze a finished history.

        Args:
            history: Immutable operation log of one test run

        Returns:
            Verdict with ``valid`` and workload-specific diagnostics
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

"""
Set uniqueness checker.

Given a history of ``add`` operations followed by a final ``read``, verifies
that every acknowledged add is present in the read, that the read contains
only elements for which an add was attempted, and that no element appears
twice.
"""

from collections import Counter
from collections.abc import Hashable, Iterable
from typing import Any

from pydantic import Field

from histcheck.checkers.base import Checker, Verdict, never_read
from histcheck.history.models import History, OpKind, OpType, parse_int
from histcheck.logging import get_logger
from histcheck.util import fraction, integer_interval_set_str, sorted_values

logger = get_logger(__name__)


def set_element(raw: Any) -> Hashable:
    """
    Normalize one add value or read element so it can be counted.

    Numeric values become ints; other hashable values are kept as they are;
    anything unhashable (a nested list, a mapping) is kept by its repr and so
    can only ever match an identical malformed value.
    """
    parsed = parse_int(raw)
    if parsed is not None:
        return parsed
    try:
        hash(raw)
    except TypeError:
        return repr(raw)
    return raw


def _elements(values: Iterable[Any]) -> list[Hashable]:
    return [set_element(v) for v in values]


class SetVerdict(Verdict):
    """
    Set workload verdict.

    Sets are rendered as integer-interval strings; fractions are relative to
    the number of attempted adds.
    """

    ok: str
    lost: str
    unexpected: str
    recovered: str
    duplicates: list[Any] = Field(default_factory=list)
    duplicate_counts: dict[str, int] = Field(default_factory=dict, alias="duplicate-counts")
    ok_frac: float = Field(..., alias="ok-frac")
    lost_frac: float = Field(..., alias="lost-frac")
    unexpected_frac: float = Field(..., alias="unexpected-frac")
    recovered_frac: float = Field(..., alias="recovered-frac")


class SetUniqueChecker(Checker):
    """
    Checks an add/read workload against a plain-set model.

    Classification of the final read:
    - ok: read and attempted
    - unexpected: read but never attempted (phantom)
    - lost: acknowledged but not read
    - recovered: read and attempted, but the add's outcome was not OK
      (failed, timed out or uncertain) - the write committed anyway
    """

    @property
    def name(self) -> str:
        return "set"

    def check(self, history: History) -> Verdict:
        attempts = set(_elements(history.values(OpType.INVOKE, OpKind.ADD)))
        acknowledged = set(_elements(history.values(OpType.OK, OpKind.ADD)))

        final = history.final_read()
        if final is None or final.value is None:
            logger.info("Set checker: no final read in %d ops", len(history))
            return never_read()
        if not isinstance(final.value, list | tuple):
            return never_read(f"Final read value is not a sequence: {final.value!r}")

        final_read = _elements(final.value)
        final_set = set(final_read)

        counts = Counter(final_read)
        duplicates = sorted_values(v for v, c in counts.items() if c > 1)

        ok = final_set & attempts
        unexpected = final_set - attempts
        lost = acknowledged - final_set
        recovered = ok - acknowledged

        valid = not lost and not unexpected and not duplicates
        verdict = SetVerdict(
            valid=valid,
            ok=integer_interval_set_str(ok),
            lost=integer_interval_set_str(lost),
            unexpected=integer_interval_set_str(unexpected),
            recovered=integer_interval_set_str(recovered),
            duplicates=duplicates,
            duplicate_counts={str(v): counts[v] for v in duplicates},
            ok_frac=fraction(len(ok), len(attempts)),
            lost_frac=fraction(len(lost), len(attempts)),
            unexpected_frac=fraction(len(unexpected), len(attempts)),
            recovered_frac=fraction(len(recovered), len(attempts)),
        )

        log = logger.info if not valid else logger.debug
        log(
            "Set checker: valid=%s attempts=%d lost=%d unexpected=%d duplicates=%d",
            valid,
            len(attempts),
            len(lost),
            len(unexpected),
            len(duplicates),
        )
        return verdict

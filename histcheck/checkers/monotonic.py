"""
Monotonic order checkers.

Writers insert rows ``(value, timestamp, node, partition)`` where each value
is one greater than the current maximum. The final read returns every row
ordered by the database's own timestamp column. In a serializable database
that read must be sorted by timestamp and strictly increasing in value.

Two variants:
- MonotonicChecker: one global sequence
- PartitionedMonotonicChecker: N independent sequences; ordering is only
  meaningful within a partition, loss and duplication are still global
"""

from collections import Counter
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from histcheck.checkers.base import Checker, Verdict, never_read
from histcheck.history.models import FailureClass, History, MonotonicRow, OpKind, OpType
from histcheck.logging import get_logger
from histcheck.util import fraction, sorted_values

logger = get_logger(__name__)


class OrderViolation(BaseModel):
    """Two consecutive rows of the final read that break an ordering claim."""

    model_config = ConfigDict(frozen=True)

    prev: MonotonicRow
    row: MonotonicRow


def _gt(a: int | None, b: int | None) -> bool:
    # None fails every comparison it takes part in, i.e. counts as a violation
    if a is None or b is None:
        return True
    return a > b


def _ge(a: int | None, b: int | None) -> bool:
    if a is None or b is None:
        return True
    return a >= b


def monotonic_order(
    rows: Sequence[MonotonicRow],
) -> tuple[list[OrderViolation], list[OrderViolation]]:
    """
    Pairwise scan over consecutive rows in read order.

    Returns:
        (order_by_errors, value_reorders) where
        - order_by_errors: ``prev.timestamp > row.timestamp``; the database did
          not return rows in the order it claims
        - value_reorders: ``prev.value >= row.value``; a later commit produced
          a value not strictly greater than an earlier one
    """
    order_by_errors: list[OrderViolation] = []
    value_reorders: list[OrderViolation] = []
    for prev, row in zip(rows, rows[1:]):
        if _gt(prev.timestamp, row.timestamp):
            order_by_errors.append(OrderViolation(prev=prev, row=row))
        if _ge(prev.value, row.value):
            value_reorders.append(OrderViolation(prev=prev, row=row))
    return order_by_errors, value_reorders


def committed_value(value: Any) -> int | None:
    """
    Counter value carried by an OK add, if any.

    Adds either carry no payload (None), the inserted value, or the row
    observed by the add's transaction.
    """
    if value is None:
        return None
    return MonotonicRow.from_sequence(value).value


class MonotonicVerdict(Verdict):
    """Verdict of the global monotonic checker."""

    lost: list[int] = Field(default_factory=list)
    lost_frac: float = Field(..., alias="lost-frac")
    duplicates: list[int] = Field(default_factory=list)
    retry_frac: float = Field(..., alias="retry-frac")
    abort_frac: float = Field(..., alias="abort-frac")
    order_by_errors: list[OrderViolation] = Field(
        default_factory=list, alias="order-by-errors"
    )
    value_reorders: list[OrderViolation] = Field(
        default_factory=list, alias="value-reorders"
    )


class PartitionedMonotonicVerdict(Verdict):
    """Verdict of the partitioned checker; violation lists are per partition."""

    partitions: int
    lost: list[int] = Field(default_factory=list)
    lost_frac: float = Field(..., alias="lost-frac")
    duplicates: list[int] = Field(default_factory=list)
    retry_frac: float = Field(..., alias="retry-frac")
    abort_frac: float = Field(..., alias="abort-frac")
    order_by_errors: list[list[OrderViolation]] = Field(
        default_factory=list, alias="order-by-errors"
    )
    value_reorders: list[list[OrderViolation]] = Field(
        default_factory=list, alias="value-reorders"
    )
    unpartitioned: list[MonotonicRow] = Field(
        default_factory=list,
        description="Rows whose partition tag is missing or out of range",
    )


class _MonotonicBase(Checker):
    """Shared passes over the history for both monotonic variants."""

    def _final_rows(self, history: History) -> list[MonotonicRow] | Verdict:
        final = history.final_read()
        if final is None or final.value is None:
            logger.info("%s checker: no final read in %d ops", self.name, len(history))
            return never_read()
        if not isinstance(final.value, list | tuple):
            return never_read(f"Final read value is not a sequence: {final.value!r}")
        return [MonotonicRow.from_sequence(r) for r in final.value]

    @staticmethod
    def _loss_and_duplication(
        history: History,
        rows: list[MonotonicRow],
    ) -> dict[str, Any]:
        adds = history.values(OpType.OK, OpKind.ADD)
        committed = {v for v in (committed_value(a) for a in adds) if v is not None}

        read_values = [r.value for r in rows]
        counts = Counter(v for v in read_values if v is not None)

        lost = sorted(committed - set(read_values))
        duplicates = sorted_values(v for v, c in counts.items() if c > 1)

        fails = history.filter(OpType.FAIL)
        retries = sum(1 for op in fails if op.has_error(FailureClass.RETRY))
        aborts = sum(1 for op in fails if op.has_error(FailureClass.ABORT_UNCERTAIN))

        return {
            "lost": lost,
            "lost_frac": fraction(len(lost), len(adds)),
            "duplicates": duplicates,
            "retry_frac": fraction(retries, len(history)),
            "abort_frac": fraction(aborts, len(history)),
        }


class MonotonicChecker(_MonotonicBase):
    """
    Checks a single increasing sequence (global ordering).

    Valid iff nothing acknowledged was lost, no value was read twice and the
    final read has no order-by or value-reorder violations. Retry and
    uncertain-abort fractions are reported for diagnostics only.
    """

    @property
    def name(self) -> str:
        return "monotonic"

    def check(self, history: History) -> Verdict:
        rows = self._final_rows(history)
        if isinstance(rows, Verdict):
            return rows

        stats = self._loss_and_duplication(history, rows)
        order_by_errors, value_reorders = monotonic_order(rows)

        valid = (
            not stats["lost"]
            and not stats["duplicates"]
            and not order_by_errors
            and not value_reorders
        )
        log = logger.info if not valid else logger.debug
        log(
            "Monotonic checker: valid=%s rows=%d lost=%d order_by=%d reorders=%d",
            valid,
            len(rows),
            len(stats["lost"]),
            len(order_by_errors),
            len(value_reorders),
        )
        return MonotonicVerdict(
            valid=valid,
            order_by_errors=order_by_errors,
            value_reorders=value_reorders,
            **stats,
        )


class PartitionedMonotonicChecker(_MonotonicBase):
    """
    Checks N independently sequenced sub-streams.

    The final read is split by partition tag, preserving each partition's
    relative read order, and the pairwise scan runs per partition.
    """

    def __init__(self, partitions: int = 5):
        if partitions < 1:
            raise ValueError(f"partitions must be >= 1, got {partitions}")
        self._partitions = partitions

    @property
    def name(self) -> str:
        return "monotonic-partitioned"

    @property
    def partitions(self) -> int:
        return self._partitions

    def split(
        self,
        rows: Sequence[MonotonicRow],
    ) -> tuple[list[list[MonotonicRow]], list[MonotonicRow]]:
        """
        Group rows by partition tag in read order.

        Returns:
            (per_partition_rows, rows_with_missing_or_out_of_range_tag)
        """
        groups: list[list[MonotonicRow]] = [[] for _ in range(self._partitions)]
        stray: list[MonotonicRow] = []
        for row in rows:
            tag = row.partition
            if tag is not None and 0 <= tag < self._partitions:
                groups[tag].append(row)
            else:
                stray.append(row)
        return groups, stray

    def check(self, history: History) -> Verdict:
        rows = self._final_rows(history)
        if isinstance(rows, Verdict):
            return rows

        stats = self._loss_and_duplication(history, rows)
        groups, stray = self.split(rows)

        order_by_errors: list[list[OrderViolation]] = []
        value_reorders: list[list[OrderViolation]] = []
        for group in groups:
            sts, val = monotonic_order(group)
            order_by_errors.append(sts)
            value_reorders.append(val)

        valid = (
            not stats["lost"]
            and not stats["duplicates"]
            and not stray
            and all(not errs for errs in order_by_errors)
            and all(not errs for errs in value_reorders)
        )
        log = logger.info if not valid else logger.debug
        log(
            "Partitioned monotonic checker: valid=%s rows=%d partitions=%d lost=%d stray=%d",
            valid,
            len(rows),
            self._partitions,
            len(stats["lost"]),
            len(stray),
        )
        return PartitionedMonotonicVerdict(
            valid=valid,
            partitions=self._partitions,
            order_by_errors=order_by_errors,
            value_reorders=value_reorders,
            unpartitioned=stray,
            **stats,
        )

    def __repr__(self) -> str:
        return f"PartitionedMonotonicChecker(partitions={self._partitions})"

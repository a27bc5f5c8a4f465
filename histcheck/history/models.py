"""
History data model.

A history is the ordered log of operation records one test run produced.
Every checker consumes the same shapes defined here and treats the history
as immutable: projections return new sequences, nothing is reordered.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any, overload

from pydantic import BaseModel, ConfigDict, Field


class OpType(str, Enum):
    """
    Operation lifecycle state.

    An INVOKE is followed upstream by exactly one terminal record:
    OK (confirmed success), FAIL (confirmed failure) or INFO (indeterminate,
    e.g. the client timed out and the write may still have committed).
    """

    INVOKE = "invoke"
    OK = "ok"
    FAIL = "fail"
    INFO = "info"

    @property
    def is_terminal(self) -> bool:
        """Check if this is a completion record."""
        return self is not OpType.INVOKE


class OpKind(str, Enum):
    """Operation function, depending on workload."""

    READ = "read"
    ADD = "add"
    WRITE = "write"
    CAS = "cas"
    TRANSFER = "transfer"


class FailureClass(str, Enum):
    """
    Upstream classification of a failed or indeterminate operation.

    Consumed as diagnostics only, never as validity criteria.
    """

    RETRY = "retry"  # Transaction restarted under contention
    ABORT_UNCERTAIN = "abort-uncertain"  # Commit status unknown to the client
    TIMEOUT = "timeout"  # Client gave up; may have committed


class Operation(BaseModel):
    """
    A single history record.

    ``value`` is polymorphic: an integer for set adds, a list of integers for
    set reads, row tuples for monotonic reads, a transfer for bank writes and
    a list of balances for bank reads.
    """

    model_config = ConfigDict(frozen=True)

    type: OpType
    f: OpKind
    value: Any = None
    error: str | None = Field(
        default=None,
        description="Failure reason; a FailureClass value or an opaque message",
    )

    # Bookkeeping carried by real histories, unused by the checkers
    process: int | str | None = None
    time: int | None = Field(default=None, description="Nanoseconds since test start")
    index: int | None = None

    @property
    def is_invoke(self) -> bool:
        return self.type is OpType.INVOKE

    @property
    def is_ok(self) -> bool:
        return self.type is OpType.OK

    @property
    def is_fail(self) -> bool:
        return self.type is OpType.FAIL

    @property
    def is_info(self) -> bool:
        return self.type is OpType.INFO

    def has_error(self, failure: FailureClass) -> bool:
        """Check if this record's error is the given classification."""
        return self.error == failure.value


class MonotonicRow(BaseModel):
    """
    One row of a monotonic read: ``(value, timestamp, node, partition)``.

    Any field may be None when the upstream parser could not read it.
    """

    model_config = ConfigDict(frozen=True)

    value: int | None = None
    timestamp: int | None = None
    node: int | None = None
    partition: int | None = None

    @classmethod
    def from_sequence(cls, row: Any) -> "MonotonicRow":
        """
        Build a row from a 4-sequence, a mapping or an existing row.

        Short sequences and mappings missing a key pad with None; a scalar
        becomes a row with only ``value`` set. Unparseable fields become None.
        """
        if isinstance(row, MonotonicRow):
            return row
        if isinstance(row, Mapping):
            return cls(
                value=parse_int(row.get("value")),
                timestamp=parse_int(row.get("timestamp")),
                node=parse_int(row.get("node")),
                partition=parse_int(row.get("partition")),
            )
        if isinstance(row, Sequence) and not isinstance(row, str | bytes):
            fields = list(row[:4]) + [None] * (4 - min(len(row), 4))
            return cls(
                value=parse_int(fields[0]),
                timestamp=parse_int(fields[1]),
                node=parse_int(fields[2]),
                partition=parse_int(fields[3]),
            )
        return cls(value=parse_int(row))


class Transfer(BaseModel):
    """Value of a bank ``transfer`` invoke."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_account: int = Field(..., alias="from")
    to_account: int = Field(..., alias="to")
    amount: int = Field(..., ge=0)


def parse_int(raw: Any) -> int | None:
    """
    Parse an integer field, returning None for anything unparseable.

    Never raises. Bools are rejected even though they subclass int.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


class History:
    """
    Immutable ordered sequence of operations.

    Wraps a tuple so a checker cannot mutate what another checker sees.
    """

    __slots__ = ("_ops",)

    def __init__(self, ops: Iterable[Operation] = ()):
        self._ops: tuple[Operation, ...] = tuple(ops)

    @classmethod
    def from_records(cls, records: Iterable[Operation | Mapping[str, Any]]) -> "History":
        """Build a history from operations or plain dicts."""
        return cls(
            r if isinstance(r, Operation) else Operation.model_validate(r)
            for r in records
        )

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._ops)

    @overload
    def __getitem__(self, i: int) -> Operation: ...

    @overload
    def __getitem__(self, i: slice) -> "History": ...

    def __getitem__(self, i: int | slice) -> "Operation | History":
        if isinstance(i, slice):
            return History(self._ops[i])
        return self._ops[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, History):
            return NotImplemented
        return self._ops == other._ops

    def __repr__(self) -> str:
        return f"History({len(self._ops)} ops)"

    @property
    def ops(self) -> tuple[Operation, ...]:
        return self._ops

    def filter(
        self,
        type: OpType | None = None,
        f: OpKind | None = None,
    ) -> list[Operation]:
        """Operations matching the given type and/or function, in order."""
        return [
            op
            for op in self._ops
            if (type is None or op.type is type) and (f is None or op.f is f)
        ]

    def invokes(self, f: OpKind | None = None) -> list[Operation]:
        return self.filter(OpType.INVOKE, f)

    def oks(self, f: OpKind | None = None) -> list[Operation]:
        return self.filter(OpType.OK, f)

    def fails(self, f: OpKind | None = None) -> list[Operation]:
        return self.filter(OpType.FAIL, f)

    def values(self, type: OpType, f: OpKind) -> list[Any]:
        """Project the ``value`` field of matching operations."""
        return [op.value for op in self.filter(type, f)]

    def final_read(self, f: OpKind = OpKind.READ) -> Operation | None:
        """
        The last OK read in history order, or None if there was none.

        The harness schedules this read after quiescence; checkers identify it
        by position alone.
        """
        for op in reversed(self._ops):
            if op.type is OpType.OK and op.f is f:
                return op
        return None

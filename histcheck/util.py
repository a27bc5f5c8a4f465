"""
Formatting helpers shared by the checkers and report assembly.
"""

from collections.abc import Iterable
from typing import Any


def fraction(a: int, b: int) -> float:
    """
    ``a / b``, or 1.0 when ``b`` is zero.

    A zero denominator means there was nothing to measure against, which is
    reported as unity rather than raising.
    """
    if b == 0:
        return 1.0
    return a / b


def is_int(v: Any) -> bool:
    """True for ints, False for bools and everything else."""
    return isinstance(v, int) and not isinstance(v, bool)


def sort_key(v: Any) -> tuple[int, int, str]:
    """Sort ints numerically, then everything else by repr."""
    if is_int(v):
        return (0, v, "")
    return (1, 0, repr(v))


def sorted_values(values: Iterable[Any]) -> list[Any]:
    """Sort a heterogeneous collection without raising on mixed types."""
    return sorted(values, key=sort_key)


def integer_interval_set_str(values: Iterable[Any]) -> str:
    """
    Render a set of integers as collapsed runs.

    >>> integer_interval_set_str({1, 2, 3, 5, 7, 8, 9})
    '#{1..3 5 7..9}'

    Non-integer members (e.g. the None sentinel) are appended after the runs.
    """
    distinct = set(values)
    ints = sorted(v for v in distinct if is_int(v))
    others = sorted_values(v for v in distinct if not is_int(v))

    parts: list[str] = []
    i = 0
    while i < len(ints):
        start = ints[i]
        end = start
        while i + 1 < len(ints) and ints[i + 1] == end + 1:
            i += 1
            end = ints[i]
        parts.append(str(start) if start == end else f"{start}..{end}")
        i += 1

    parts.extend(repr(v) for v in others)
    return "#{" + " ".join(parts) + "}"

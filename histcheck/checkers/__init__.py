"""
History checkers.

Each checker analyzes one finished history and returns a Verdict:
- SetUniqueChecker: add/read workload against a plain set
- MonotonicChecker: one strictly increasing sequence
- PartitionedMonotonicChecker: N independent increasing sequences
- BankChecker: conservation of account count and total balance
"""

from histcheck.checkers.bank import BankChecker, BankModel, BankVerdict, BankViolation
from histcheck.checkers.base import Checker, Verdict, never_read
from histcheck.checkers.monotonic import (
    MonotonicChecker,
    MonotonicVerdict,
    OrderViolation,
    PartitionedMonotonicChecker,
    PartitionedMonotonicVerdict,
    monotonic_order,
)
from histcheck.checkers.set_unique import SetUniqueChecker, SetVerdict

__all__ = [
    "BankChecker",
    "BankModel",
    "BankVerdict",
    "BankViolation",
    "Checker",
    "MonotonicChecker",
    "MonotonicVerdict",
    "OrderViolation",
    "PartitionedMonotonicChecker",
    "PartitionedMonotonicVerdict",
    "SetUniqueChecker",
    "SetVerdict",
    "Verdict",
    "monotonic_order",
    "never_read",
]

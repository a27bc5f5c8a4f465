"""
Bank conservation checker.

Transfers debit one account and credit another inside a single transaction,
so every atomic read of all balances must see the configured number of
accounts summing to the configured total. Any deviation signals a lost
update or a non-atomic transfer.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from histcheck.checkers.base import Checker, Verdict
from histcheck.history.models import History, OpKind, Operation, parse_int
from histcheck.logging import get_logger

logger = get_logger(__name__)


class BankModel(BaseModel):
    """
    Expected shape of the bank.

    ``total`` defaults to ``n * initial_balance`` and may be given explicitly
    when accounts started with unequal balances.
    """

    model_config = ConfigDict(frozen=True)

    n: int = Field(..., ge=1, description="Number of accounts")
    initial_balance: int = Field(default=0, ge=0, description="Starting balance per account")
    total: int = Field(..., description="Expected sum of all balances")

    @model_validator(mode="before")
    @classmethod
    def _default_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("total") is None:
            n = data.get("n", 0)
            initial_balance = data.get("initial_balance", 0)
            if isinstance(n, int) and isinstance(initial_balance, int):
                data = {**data, "total": n * initial_balance}
        return data


class ViolationType(str, Enum):
    """Kind of bad read."""

    WRONG_N = "wrong-n"
    WRONG_TOTAL = "wrong-total"


class BankViolation(BaseModel):
    """A read that broke the conservation invariant."""

    model_config = ConfigDict(frozen=True)

    type: ViolationType
    expected: int
    found: int | None
    op: Operation


class BankVerdict(Verdict):
    """Verdict of the bank checker."""

    bad_reads: list[BankViolation] = Field(default_factory=list, alias="bad-reads")
    reads: int = Field(default=0, description="Number of OK reads examined")


def balance_total(balances: list[Any]) -> int | None:
    """Sum of balances, or None if any balance is unparseable."""
    total = 0
    for raw in balances:
        balance = parse_int(raw)
        if balance is None:
            return None
        total += balance
    return total


class BankChecker(Checker):
    """
    Checks every OK read against the bank model.

    Each read is checked for account count and for total independently, so
    one read can produce both violations. All reads are examined; nothing
    short-circuits.
    """

    def __init__(self, model: BankModel):
        self._model = model

    @property
    def name(self) -> str:
        return "bank"

    @property
    def model(self) -> BankModel:
        return self._model

    def check_read(self, op: Operation) -> list[BankViolation]:
        """Violations for a single OK read."""
        balances = op.value if isinstance(op.value, list | tuple) else None
        if balances is None:
            # Not a balance vector at all: neither count nor total can match
            return [
                BankViolation(
                    type=ViolationType.WRONG_N,
                    expected=self._model.n,
                    found=None,
                    op=op,
                ),
                BankViolation(
                    type=ViolationType.WRONG_TOTAL,
                    expected=self._model.total,
                    found=None,
                    op=op,
                ),
            ]

        violations: list[BankViolation] = []
        if len(balances) != self._model.n:
            violations.append(
                BankViolation(
                    type=ViolationType.WRONG_N,
                    expected=self._model.n,
                    found=len(balances),
                    op=op,
                )
            )

        total = balance_total(list(balances))
        if total is None or total != self._model.total:
            violations.append(
                BankViolation(
                    type=ViolationType.WRONG_TOTAL,
                    expected=self._model.total,
                    found=total,
                    op=op,
                )
            )
        return violations

    def check(self, history: History) -> Verdict:
        reads = history.oks(OpKind.READ)
        bad_reads: list[BankViolation] = []
        for op in reads:
            bad_reads.extend(self.check_read(op))

        valid = not bad_reads
        log = logger.info if not valid else logger.debug
        log(
            "Bank checker: valid=%s reads=%d violations=%d (n=%d total=%d)",
            valid,
            len(reads),
            len(bad_reads),
            self._model.n,
            self._model.total,
        )
        return BankVerdict(valid=valid, bad_reads=bad_reads, reads=len(reads))

    def __repr__(self) -> str:
        return f"BankChecker(n={self._model.n}, total={self._model.total})"

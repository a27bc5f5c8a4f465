"""
Workload registry.

Maps each named test workload to the checkers that judge its history. The
``atomic`` compare-and-swap workload is judged by an external
linearizability checker, which callers must supply.
"""

from collections.abc import Callable, Mapping
from enum import Enum

from histcheck.checkers import (
    BankChecker,
    MonotonicChecker,
    PartitionedMonotonicChecker,
    SetUniqueChecker,
)
from histcheck.config import Settings, get_settings
from histcheck.errors import MissingCheckerError, UnknownWorkloadError
from histcheck.report import CompositeChecker, ExternalChecker


class Workload(str, Enum):
    """Named test workloads."""

    ATOMIC = "atomic"
    SET = "set"
    MONOTONIC = "monotonic"
    MONOTONIC_SKEWS = "monotonic-skews"
    MONOTONIC_SPREAD = "monotonic-spread"
    MONOTONIC_SPREAD_SKEWS = "monotonic-spread-skews"
    BANK = "bank"

    @property
    def clock_skew(self) -> bool:
        """Whether the nemesis scrambles clocks instead of partitioning."""
        return self.value.endswith("-skews")


# External checkers a workload cannot be judged without
REQUIRED_EXTERNAL: dict[Workload, tuple[str, ...]] = {
    Workload.ATOMIC: ("linear",),
}

_Factory = Callable[[Settings], Mapping[str, ExternalChecker]]

_FACTORIES: dict[Workload, _Factory] = {
    Workload.ATOMIC: lambda s: {},
    Workload.SET: lambda s: {"set": SetUniqueChecker()},
    Workload.MONOTONIC: lambda s: {"set": MonotonicChecker()},
    Workload.MONOTONIC_SKEWS: lambda s: {"set": MonotonicChecker()},
    Workload.MONOTONIC_SPREAD: lambda s: {
        "set": PartitionedMonotonicChecker(partitions=s.monotonic_partitions),
    },
    Workload.MONOTONIC_SPREAD_SKEWS: lambda s: {
        "set": PartitionedMonotonicChecker(partitions=s.monotonic_partitions),
    },
    Workload.BANK: lambda s: {"bank": BankChecker(s.bank_model)},
}


def resolve_workload(name: str | Workload) -> Workload:
    """
    Look up a workload by name.

    Raises:
        UnknownWorkloadError: No workload has that name
    """
    if isinstance(name, Workload):
        return name
    try:
        return Workload(name)
    except ValueError as e:
        known = ", ".join(w.value for w in Workload)
        raise UnknownWorkloadError(f"Unknown workload {name!r}; expected one of: {known}") from e


def build_checker(
    workload: str | Workload,
    settings: Settings | None = None,
    external: Mapping[str, ExternalChecker] | None = None,
) -> CompositeChecker:
    """
    Build the checker composition for a workload.

    Args:
        workload: Workload name
        settings: Model configuration (defaults to environment settings)
        external: Named external checkers (e.g. ``perf``, ``linear``) to
            include in the report

    Raises:
        UnknownWorkloadError: Unknown workload name
        MissingCheckerError: A required external checker was not supplied
    """
    kind = resolve_workload(workload)
    settings = settings or get_settings()
    external = dict(external or {})

    missing = [name for name in REQUIRED_EXTERNAL.get(kind, ()) if name not in external]
    if missing:
        raise MissingCheckerError(
            f"Workload {kind.value!r} requires external checker(s): {', '.join(missing)}"
        )

    checkers: dict[str, ExternalChecker] = dict(external)
    checkers.update(_FACTORIES[kind](settings))
    return CompositeChecker(checkers)

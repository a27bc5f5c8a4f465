"""
Exceptions raised at the edges of histcheck.

Checkers never raise for problems in the history itself; they return an
invalid verdict instead. These errors cover malformed input files and
misconfigured workload lookups.
"""


class HistcheckError(Exception):
    """Base error for histcheck."""


class HistoryFormatError(HistcheckError):
    """A history file line could not be parsed into an operation."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class UnknownWorkloadError(HistcheckError):
    """No checker composition is registered for the workload name."""


class MissingCheckerError(HistcheckError):
    """A workload needs an external checker that was not supplied."""

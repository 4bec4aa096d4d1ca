"""Error hierarchy for soter.

All errors inherit from SoterError. The CLI only recovers from CheckError and
FieldValidationError; ProgressContractError signals misuse of the orchestrator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .models import Package


class SoterError(Exception):
    """Base exception for all soter errors."""


class CheckError(SoterError):
    """A package check failed (unreadable database, malformed entry, lookup failure)."""

    def __init__(self, message: str, package: Optional["Package"] = None) -> None:
        self.package = package
        super().__init__(message)


class FieldValidationError(SoterError, ValueError):
    """Requested output fields are not in the allow-list."""

    def __init__(self, invalid_fields: Sequence[str]) -> None:
        self.invalid_fields = tuple(invalid_fields)
        names = ", ".join(self.invalid_fields)
        if len(self.invalid_fields) == 1:
            message = f"{names} is not a valid field"
        else:
            message = f"{names} are not valid fields"
        super().__init__(message)


class ProgressContractError(SoterError, RuntimeError):
    """Progress reporter used out of order (e.g. opened twice)."""

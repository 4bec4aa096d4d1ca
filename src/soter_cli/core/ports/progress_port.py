from __future__ import annotations

from typing import Protocol


class ProgressPort(Protocol):
    @property
    def is_open(self) -> bool:
        ...

    def open(self, total: int, label: str = "") -> None:
        """Start tracking `total` steps. Raises ProgressContractError if already open."""

    def tick(self) -> None:
        """Advance by one step. Raises ProgressContractError if not open."""

    def finish(self) -> None:
        """Render the final state and close. No-op when already closed."""

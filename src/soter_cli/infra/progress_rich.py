from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn, TimeElapsedColumn

from ..core.domain.errors import ProgressContractError
from ..core.ports.progress_port import ProgressPort

logger = logging.getLogger(__name__)


class RichProgressReporter(ProgressPort):
    """Progress bar drawn on stderr so stdout only carries results."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    @property
    def is_open(self) -> bool:
        return self._progress is not None

    @property
    def completed(self) -> int:
        if self._progress is None or self._task is None:
            return 0
        return int(self._progress.tasks[0].completed)

    def open(self, total: int, label: str = "") -> None:
        if self._progress is not None:
            raise ProgressContractError("Progress reporter is already open")
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        self._task = progress.add_task(label, total=total)
        progress.start()
        self._progress = progress
        logger.debug(f"Progress opened: {label} (total={total})")

    def tick(self) -> None:
        if self._progress is None or self._task is None:
            raise ProgressContractError("Progress reporter is not open")
        self._progress.advance(self._task)

    def finish(self) -> None:
        if self._progress is None:
            return
        self._progress.refresh()
        self._progress.stop()
        logger.debug(f"Progress finished at {self.completed}")
        self._progress = None
        self._task = None

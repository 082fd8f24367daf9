"""Console progress counter shared by the concurrent tasks of one stage."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

logger = structlog.get_logger()


@dataclass
class ProgressCounter:
    """Counts completed tasks of a stage for display only.

    Tasks finish in any order; nothing may depend on which task saw which count.
    """

    stage: str
    total: int
    completed: int = 0

    def advance(self, **fields: object) -> int:
        self.completed += 1
        logger.info(
            f"Completed {self.stage} {self.completed}/{self.total}",
            **fields,
        )
        return self.completed

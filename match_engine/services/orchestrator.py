"""
Invalidation & Precompute Orchestrator

Maps every catalog change to the cache invalidations it requires and,
for student saves, a background precompute.

Policy:
| Change                  | Cache action                          | Background  |
|-------------------------|---------------------------------------|-------------|
| StudentProfileSaved     | invalidate student                    | precompute  |
| StudentProfileDeleted   | invalidate student                    | none        |
| ProgramCreated/Updated  | invalidate catalog + program entries  | none        |
| ProgramDeleted          | invalidate catalog + all match entries| none        |

All cache actions are awaited before `apply` returns, so a caller that
persisted a change and then applied it can acknowledge the write knowing
no stale entry survives.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from match_engine.domain.changes import (
    CatalogChange,
    ProgramCreated,
    ProgramDeleted,
    ProgramUpdated,
    StudentProfileDeleted,
    StudentProfileSaved,
)
from match_engine.infrastructure.cache.match_cache import MatchCache
from match_engine.services.precompute import PrecomputeQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorConfig:
    precompute_enabled: bool = True
    precompute_timeout_seconds: float = 10.0


class Orchestrator:
    """Single entry point for reacting to writes."""

    def __init__(
        self,
        match_cache: MatchCache,
        config: Optional[OrchestratorConfig] = None,
        precompute_queue: Optional[PrecomputeQueue] = None,
    ):
        self._cache = match_cache
        self._config = config or OrchestratorConfig()
        self._queue = precompute_queue or PrecomputeQueue(
            match_cache, timeout_seconds=self._config.precompute_timeout_seconds
        )

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def precompute_queue(self) -> PrecomputeQueue:
        return self._queue

    async def apply(self, change: CatalogChange) -> None:
        """
        Apply the invalidation policy for a change.

        Raises:
            TypeError: Unknown change type
        """
        if isinstance(change, StudentProfileSaved):
            await self._cache.invalidate_student(change.student_id)
            self.schedule_precompute(change.student_id)
        elif isinstance(change, StudentProfileDeleted):
            await self._cache.invalidate_student(change.student_id)
        elif isinstance(change, (ProgramCreated, ProgramUpdated)):
            await self._cache.invalidate_programs()
            await self._cache.invalidate_program(change.program_id)
        elif isinstance(change, ProgramDeleted):
            await self._cache.invalidate_programs()
            await self._cache.clear_all_matches()
        else:
            raise TypeError(f"Unsupported change: {change!r}")

        logger.info(f"[ORCHESTRATOR] Applied {change.kind}")

    def schedule_precompute(self, student_id: str) -> bool:
        """Queue a background precompute unless disabled."""
        if not self._config.precompute_enabled:
            logger.debug(f"[ORCHESTRATOR] Precompute disabled, skipping {student_id}")
            return False
        return self._queue.submit(student_id)

    async def invalidate_student(self, student_id: str) -> int:
        return await self._cache.invalidate_student(student_id)

    async def invalidate_program(self, program_id: str) -> int:
        removed = await self._cache.invalidate_programs()
        return removed + await self._cache.invalidate_program(program_id)

    async def clear_all(self) -> int:
        removed = await self._cache.invalidate_programs()
        return removed + await self._cache.clear_all_matches()

"""
Precompute Queue

Fire-and-forget background warming of a student's match list.

Jobs run on the event loop as tasks. A job that fails, times out or finds
no profile is logged and dropped: it is never retried and never surfaces
to the request that scheduled it. A timeout only stops this job waiting;
the shared cache computation it started keeps running for any reader that
joined it.
"""

import asyncio
import logging
from typing import Dict, Set

from match_engine.infrastructure.cache.match_cache import MatchCache
from match_engine.infrastructure.exceptions import PrecomputeError, ProfileNotFoundError

logger = logging.getLogger(__name__)


class PrecomputeQueue:
    """
    In-process task queue for match precomputation.

    Submissions for a student whose job is still pending are coalesced into
    one follow-up run after that job finishes.
    Task references are kept until completion so jobs are not garbage
    collected mid-flight.
    """

    def __init__(self, match_cache: MatchCache, timeout_seconds: float = 10.0):
        self._cache = match_cache
        self._timeout = timeout_seconds
        self._tasks: Dict[str, asyncio.Task] = {}
        self._rerun: Set[str] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, student_id: str) -> bool:
        """
        Schedule a precompute job and return immediately.

        Returns:
            True if a new job was scheduled, False if one was already pending
        """
        existing = self._tasks.get(student_id)
        if existing is not None and not existing.done():
            self._rerun.add(student_id)
            logger.debug(f"[PRECOMPUTE] Coalesced job for student {student_id}")
            return False

        task = asyncio.create_task(
            self._run(student_id),
            name=f"precompute:{student_id}",
        )
        self._tasks[student_id] = task
        task.add_done_callback(lambda t: self._forget(student_id, t))
        return True

    async def drain(self) -> None:
        """Wait for every outstanding job (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def _run(self, student_id: str) -> None:
        try:
            results = await asyncio.wait_for(
                self._cache.get_matches(student_id),
                timeout=self._timeout,
            )
        except ProfileNotFoundError:
            logger.info(f"[PRECOMPUTE] Skipped student {student_id}: no profile")
        except asyncio.TimeoutError:
            logger.warning(
                f"[PRECOMPUTE] Timed out after {self._timeout}s for student {student_id}"
            )
        except Exception as e:
            error = PrecomputeError(
                f"Precompute failed for student {student_id}",
                student_id=student_id,
                original_error=e,
            )
            logger.error(f"[PRECOMPUTE] {error.message}: {e}")
        else:
            logger.info(
                f"[PRECOMPUTE] Warmed {len(results)} matches for student {student_id}"
            )

    def _forget(self, student_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(student_id) is task:
            del self._tasks[student_id]
        if student_id in self._rerun:
            self._rerun.discard(student_id)
            self.submit(student_id)

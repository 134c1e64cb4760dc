"""
Match Cache

Read-through cache in front of the match scorer.

Key layout:
- matches:{student_id}:{weights}:v{catalog_version}   ranked list per student
- match:{student_id}:{program_id}:{weights}           single program entry
- programs:all                                        shared active catalog

Ids are percent-encoded inside keys, so a `:` in a student or program id
never shifts the segments.

The catalog version in the list key is bumped by every catalog
invalidation, so any create, edit or delete of a program moves every list
to a new key.

Concurrency:
- Concurrent misses on the same key share one computation (single-flight).
  The computation runs as its own task; a waiter that is cancelled or
  times out stops waiting without cancelling it for the others.
- Every invalidation bumps a generation counter. A computation started
  under an older generation is never written back, and readers arriving
  after the invalidation start a fresh computation instead of joining it.
- The generation check and the write back run without yielding for the
  in-memory backend. A networked backend leaves a short window between
  the two.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple
from urllib.parse import quote, unquote

from match_engine.domain.models import StudentAcademicProfile, ProgramRequirement
from match_engine.domain.scoring import (
    MatchingMode,
    MatchResult,
    MatchScorer,
    WeightConfig,
    resolve_weights,
)
from match_engine.infrastructure.cache.backend import CacheBackend
from match_engine.infrastructure.exceptions import (
    CacheBackendError,
    NotFoundError,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)


PROGRAMS_KEY = "programs:all"
MATCHES_PREFIX = "matches:"
MATCH_PREFIX = "match:"

Generation = Tuple[int, ...]
FlightKey = Tuple[str, Generation]


class MatchDataSource(Protocol):
    """Read access to the records the scorer needs."""

    async def get_profile(self, student_id: str) -> Optional[StudentAcademicProfile]:
        ...

    async def list_active_programs(self) -> List[ProgramRequirement]:
        ...


def _segment(value: str) -> str:
    return quote(value, safe="")


def matches_key(student_id: str, weights_token: str, catalog_version: int) -> str:
    return f"{MATCHES_PREFIX}{_segment(student_id)}:{weights_token}:v{catalog_version}"


def match_key(student_id: str, program_id: str, weights_token: str) -> str:
    return f"{MATCH_PREFIX}{_segment(student_id)}:{_segment(program_id)}:{weights_token}"


class MatchCache:
    """
    Transparent caching for match lists, single matches and the catalog.

    Backend failures never reach callers: reads fall back to direct
    computation and failed writes are logged.
    """

    def __init__(
        self,
        backend: CacheBackend,
        data_source: MatchDataSource,
        scorer: Optional[MatchScorer] = None,
        match_ttl_seconds: float = 1800,
        programs_ttl_seconds: float = 3600,
        default_mode: MatchingMode = MatchingMode.BALANCED,
    ):
        self._backend = backend
        self._source = data_source
        self._scorer = scorer or MatchScorer()
        self._match_ttl = match_ttl_seconds
        self._programs_ttl = programs_ttl_seconds
        self._default_mode = default_mode

        self._in_flight: Dict[FlightKey, asyncio.Task] = {}
        self._global_generation = 0
        self._catalog_generation = 0
        # One entry per invalidated id; both maps are reset by clear_all_matches
        self._student_generations: Dict[str, int] = {}
        self._program_generations: Dict[str, int] = {}

    # ============== Reads ==============

    async def get_programs(self) -> List[ProgramRequirement]:
        """Active catalog, cached under programs:all."""
        generation = self._catalog_token()
        return await self._get_or_compute(
            PROGRAMS_KEY,
            generation,
            self._catalog_token,
            self._source.list_active_programs,
            self._programs_ttl,
        )

    async def get_matches(
        self,
        student_id: str,
        mode: Optional[MatchingMode] = None,
        weights: Optional[WeightConfig] = None,
    ) -> List[MatchResult]:
        """
        Ranked matches for a student against every active program.

        Raises:
            ProfileNotFoundError: Student has no academic profile
        """
        resolved = resolve_weights(mode or self._default_mode, weights)

        def current() -> Generation:
            return self._student_token(student_id)

        generation = current()
        key = matches_key(student_id, resolved.cache_token(), self._catalog_generation)
        programs = await self.get_programs()

        async def compute() -> List[MatchResult]:
            profile = await self._load_profile(student_id)
            return self._scorer.score_programs(profile, programs, weights=resolved)

        return await self._get_or_compute(
            key, generation, current, compute, self._match_ttl
        )

    async def get_match(
        self,
        student_id: str,
        program_id: str,
        mode: Optional[MatchingMode] = None,
        weights: Optional[WeightConfig] = None,
    ) -> MatchResult:
        """
        Match between one student and one program.

        Raises:
            ProfileNotFoundError: Student has no academic profile
            NotFoundError: Program is unknown or inactive
        """
        resolved = resolve_weights(mode or self._default_mode, weights)

        def current() -> Generation:
            return self._program_token(student_id, program_id)

        generation = current()
        key = match_key(student_id, program_id, resolved.cache_token())

        async def compute() -> MatchResult:
            profile = await self._load_profile(student_id)
            programs = await self.get_programs()
            program = next((p for p in programs if p.program_id == program_id), None)
            if program is None:
                raise NotFoundError(
                    f"Program {program_id} not found",
                    operation="select",
                    table="programs",
                )
            return self._scorer.score_program(profile, program, weights=resolved)

        return await self._get_or_compute(
            key, generation, current, compute, self._match_ttl
        )

    async def warm_programs(self) -> Optional[int]:
        """Best-effort catalog preload. Returns the program count, or None on failure."""
        try:
            programs = await self.get_programs()
        except Exception as e:
            logger.warning(f"[MATCH-CACHE] Catalog warm-up failed: {e}")
            return None
        logger.info(f"[MATCH-CACHE] Catalog warmed with {len(programs)} programs")
        return len(programs)

    # ============== Invalidation ==============

    async def invalidate_student(self, student_id: str) -> int:
        """Drop every list and single entry for a student."""
        self._student_generations[student_id] = self._student_generations.get(student_id, 0) + 1
        segment = _segment(student_id)
        removed = await self._safe_delete_prefix(f"{MATCHES_PREFIX}{segment}:")
        removed += await self._safe_delete_prefix(f"{MATCH_PREFIX}{segment}:")
        logger.info(f"[MATCH-CACHE] Invalidated student {student_id} ({removed} keys)")
        return removed

    async def invalidate_program(self, program_id: str) -> int:
        """Drop every single-program entry for a program, across all students."""
        self._program_generations[program_id] = self._program_generations.get(program_id, 0) + 1
        try:
            keys = await self._backend.keys(MATCH_PREFIX)
            doomed = [k for k in keys if _program_of(k) == program_id]
            removed = await self._backend.delete(*doomed) if doomed else 0
        except Exception as e:
            logger.error(f"[MATCH-CACHE] Program invalidation failed for {program_id}: {e}")
            return 0
        logger.info(f"[MATCH-CACHE] Invalidated program {program_id} ({removed} keys)")
        return removed

    async def invalidate_programs(self) -> int:
        """Drop the shared catalog entry and retire every list key."""
        self._catalog_generation += 1
        try:
            removed = await self._backend.delete(PROGRAMS_KEY)
        except Exception as e:
            logger.error(f"[MATCH-CACHE] Catalog invalidation failed: {e}")
            return 0
        logger.info("[MATCH-CACHE] Invalidated program catalog")
        return removed

    async def clear_all_matches(self) -> int:
        """Drop every per-student list and single entry."""
        self._global_generation += 1
        # Every token now differs in its global part, so per-id counters can restart
        self._student_generations.clear()
        self._program_generations.clear()
        removed = await self._safe_delete_prefix(MATCHES_PREFIX)
        removed += await self._safe_delete_prefix(MATCH_PREFIX)
        logger.info(f"[MATCH-CACHE] Cleared all match entries ({removed} keys)")
        return removed

    async def stats(self) -> Dict[str, Any]:
        """Key counts per partition."""
        try:
            keys = await self._backend.keys()
        except Exception as e:
            logger.warning(f"[MATCH-CACHE] Stats unavailable: {e}")
            return {"available": False, "inFlight": len(self._in_flight)}

        return {
            "available": True,
            "studentLists": sum(1 for k in keys if k.startswith(MATCHES_PREFIX)),
            "programEntries": sum(1 for k in keys if k.startswith(MATCH_PREFIX)),
            "catalogCached": PROGRAMS_KEY in keys,
            "totalKeys": len(keys),
            "inFlight": len(self._in_flight),
        }

    async def settle(self) -> None:
        """Wait until no shared computation is running (shutdown and tests)."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)

    # ============== Internals ==============

    def _catalog_token(self) -> Generation:
        return (self._catalog_generation,)

    def _student_token(self, student_id: str) -> Generation:
        return (
            self._global_generation,
            self._catalog_generation,
            self._student_generations.get(student_id, 0),
        )

    def _program_token(self, student_id: str, program_id: str) -> Generation:
        return self._student_token(student_id) + (
            self._program_generations.get(program_id, 0),
        )

    async def _load_profile(self, student_id: str) -> StudentAcademicProfile:
        profile = await self._source.get_profile(student_id)
        if profile is None:
            raise ProfileNotFoundError(student_id)
        return profile

    async def _get_or_compute(
        self,
        key: str,
        generation: Generation,
        current_generation: Callable[[], Generation],
        compute: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
    ) -> Any:
        cached = await self._safe_get(key)
        if cached is not None:
            logger.debug(f"[MATCH-CACHE] Hit: {key}")
            return cached

        flight_key = (key, generation)
        task = self._in_flight.get(flight_key)
        if task is not None:
            logger.debug(f"[MATCH-CACHE] Joining in-flight computation: {key}")
        else:
            logger.debug(f"[MATCH-CACHE] Miss: {key}")
            task = asyncio.ensure_future(
                self._fill(key, generation, current_generation, compute, ttl_seconds)
            )
            self._in_flight[flight_key] = task
            task.add_done_callback(lambda t: self._land(flight_key, t))

        return await asyncio.shield(task)

    async def _fill(
        self,
        key: str,
        generation: Generation,
        current_generation: Callable[[], Generation],
        compute: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
    ) -> Any:
        value = await compute()
        if current_generation() == generation:
            await self._safe_set(key, value, ttl_seconds)
        else:
            logger.debug(f"[MATCH-CACHE] Discarding stale result: {key}")
        return value

    def _land(self, flight_key: FlightKey, task: asyncio.Task) -> None:
        if self._in_flight.get(flight_key) is task:
            del self._in_flight[flight_key]
        # Every waiter may have gone; mark the outcome as retrieved
        if not task.cancelled():
            task.exception()

    async def _safe_get(self, key: str) -> Optional[Any]:
        try:
            return await self._backend.get(key)
        except Exception as e:
            _log_degraded("get", key, e)
            return None

    async def _safe_set(self, key: str, value: Any, ttl_seconds: float) -> None:
        try:
            await self._backend.set(key, value, ttl_seconds)
        except Exception as e:
            _log_degraded("set", key, e)

    async def _safe_delete_prefix(self, prefix: str) -> int:
        try:
            return await self._backend.delete_prefix(prefix)
        except Exception as e:
            logger.error(f"[MATCH-CACHE] Prefix delete failed for {prefix}: {e}")
            return 0


def _program_of(key: str) -> Optional[str]:
    parts = key.split(":")
    return unquote(parts[2]) if len(parts) == 4 else None


def _log_degraded(operation: str, key: str, error: Exception) -> None:
    wrapped = error if isinstance(error, CacheBackendError) else CacheBackendError(
        str(error), operation=operation, key=key, original_error=error
    )
    logger.warning(
        f"[MATCH-CACHE] Backend {operation} failed, computing directly: "
        f"{wrapped.message} {wrapped.details}"
    )

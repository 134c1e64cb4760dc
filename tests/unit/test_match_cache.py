"""
Unit tests for the match cache.

Read-through behavior, key layout, invalidation scopes, single-flight,
the guarantee that invalidated data is never written back, and degraded
operation when the backend fails.
"""

import asyncio

import pytest

from factories import FailingCacheBackend, FakeMatchDataSource, make_program
from match_engine.infrastructure.cache import InMemoryCacheBackend, MatchCache
from match_engine.infrastructure.cache.match_cache import PROGRAMS_KEY
from match_engine.domain.changes import ProgramCreated, ProgramUpdated
from match_engine.infrastructure.exceptions import NotFoundError, ProfileNotFoundError
from match_engine.services import Orchestrator, OrchestratorConfig


BALANCED_TOKEN = "0.60_0.30_0.10"


class TestReadThrough:

    @pytest.mark.asyncio
    async def test_miss_computes_and_hit_reuses(self, match_cache, data_source):
        first = await match_cache.get_matches("student-1")
        second = await match_cache.get_matches("student-1")

        assert first == second
        assert data_source.profile_calls == 1
        assert data_source.program_calls == 1

    @pytest.mark.asyncio
    async def test_results_are_ranked(self, match_cache):
        results = await match_cache.get_matches("student-1")
        assert [r.program_id for r in results] == ["prog-1", "prog-3", "prog-2"]

    @pytest.mark.asyncio
    async def test_key_layout(self, match_cache, backend):
        await match_cache.get_matches("student-1")
        await match_cache.get_match("student-1", "prog-2")

        assert await backend.keys() == sorted([
            f"matches:student-1:{BALANCED_TOKEN}:v0",
            f"match:student-1:prog-2:{BALANCED_TOKEN}",
            PROGRAMS_KEY,
        ])

    @pytest.mark.asyncio
    async def test_missing_profile_raises_and_is_not_cached(self, match_cache, data_source):
        with pytest.raises(ProfileNotFoundError):
            await match_cache.get_matches("ghost")
        with pytest.raises(ProfileNotFoundError):
            await match_cache.get_matches("ghost")
        assert data_source.profile_calls == 2

    @pytest.mark.asyncio
    async def test_unknown_program_raises(self, match_cache):
        with pytest.raises(NotFoundError):
            await match_cache.get_match("student-1", "missing")

    @pytest.mark.asyncio
    async def test_single_match_equals_list_entry(self, match_cache):
        listed = {r.program_id: r for r in await match_cache.get_matches("student-1")}
        single = await match_cache.get_match("student-1", "prog-2")
        assert single.to_dict() == listed["prog-2"].to_dict()

    @pytest.mark.asyncio
    async def test_entries_expire_after_ttl(self, data_source):
        clock = [0.0]
        cache = MatchCache(
            backend=InMemoryCacheBackend(clock=lambda: clock[0]),
            data_source=data_source,
            match_ttl_seconds=10,
            programs_ttl_seconds=100,
        )
        await cache.get_matches("student-1")
        clock[0] = 11.0
        await cache.get_matches("student-1")

        assert data_source.profile_calls == 2
        assert data_source.program_calls == 1


class TestInvalidation:

    @pytest.mark.asyncio
    async def test_invalidate_student_is_scoped(self, match_cache, data_source, backend, profile):
        data_source.profiles["student-2"] = profile.model_copy(update={"student_id": "student-2"})
        await match_cache.get_matches("student-1")
        await match_cache.get_match("student-1", "prog-1")
        await match_cache.get_matches("student-2")

        await match_cache.invalidate_student("student-1")

        remaining = await backend.keys()
        assert not any(":student-1:" in k for k in remaining)
        assert any(k.startswith("matches:student-2:") for k in remaining)

    @pytest.mark.asyncio
    async def test_invalidate_program_drops_only_that_program(self, match_cache, backend):
        await match_cache.get_match("student-1", "prog-1")
        await match_cache.get_match("student-1", "prog-2")

        assert await match_cache.invalidate_program("prog-1") == 1

        assert await backend.keys("match:") == [f"match:student-1:prog-2:{BALANCED_TOKEN}"]

    @pytest.mark.asyncio
    async def test_new_program_moves_list_key(self, match_cache, data_source):
        before = await match_cache.get_matches("student-1")

        data_source.programs.append(make_program("prog-4"))
        await match_cache.invalidate_programs()
        after = await match_cache.get_matches("student-1")

        assert len(before) == 3
        assert "prog-4" in {r.program_id for r in after}

    @pytest.mark.asyncio
    async def test_invalidate_program_with_colon_in_student_id(self, match_cache, data_source, backend, profile):
        data_source.profiles["auth0:123"] = profile.model_copy(update={"student_id": "auth0:123"})
        await match_cache.get_match("auth0:123", "prog-1")

        assert await match_cache.invalidate_program("prog-1") == 1
        assert await backend.keys("match:") == []

    @pytest.mark.asyncio
    async def test_invalidate_student_with_colon_leaves_prefix_sibling(self, match_cache, data_source, backend, profile):
        for student_id in ("auth0", "auth0:123"):
            data_source.profiles[student_id] = profile.model_copy(update={"student_id": student_id})
            await match_cache.get_matches(student_id)

        await match_cache.invalidate_student("auth0")

        remaining = await backend.keys("matches:")
        assert len(remaining) == 1
        assert remaining[0].startswith("matches:auth0%3A123:")

    @pytest.mark.asyncio
    async def test_clear_all_matches_resets_generation_counters(self, match_cache):
        await match_cache.invalidate_student("student-1")
        await match_cache.invalidate_program("prog-1")

        await match_cache.clear_all_matches()

        assert match_cache._student_generations == {}
        assert match_cache._program_generations == {}

    @pytest.mark.asyncio
    async def test_clear_all_matches_keeps_nothing(self, match_cache, backend):
        await match_cache.get_matches("student-1")
        await match_cache.get_match("student-1", "prog-1")

        await match_cache.clear_all_matches()

        assert await backend.keys() == [PROGRAMS_KEY]

    @pytest.mark.asyncio
    async def test_stats(self, match_cache):
        await match_cache.get_matches("student-1")
        await match_cache.get_match("student-1", "prog-1")

        stats = await match_cache.stats()

        assert stats["available"] is True
        assert stats["studentLists"] == 1
        assert stats["programEntries"] == 1
        assert stats["catalogCached"] is True
        assert stats["inFlight"] == 0


class TestCatalogVersioning:

    @pytest.fixture
    def orchestrator(self, match_cache):
        return Orchestrator(match_cache, OrchestratorConfig(precompute_enabled=False))

    @pytest.mark.asyncio
    async def test_deactivate_then_create_serves_fresh_list(self, match_cache, data_source, orchestrator):
        data_source.programs = [make_program("prog-a"), make_program("prog-b")]
        before = await match_cache.get_matches("student-1")
        assert [r.program_id for r in before] == ["prog-a", "prog-b"]

        data_source.programs = [make_program("prog-a", is_active=False), make_program("prog-b")]
        await orchestrator.apply(ProgramUpdated("prog-a", frozenset({"is_active"})))
        data_source.programs.append(make_program("prog-c"))
        await orchestrator.apply(ProgramCreated("prog-c"))

        after = await match_cache.get_matches("student-1")
        assert [r.program_id for r in after] == ["prog-b", "prog-c"]

    @pytest.mark.asyncio
    async def test_raising_minimum_points_flips_requirement(self, match_cache, data_source, orchestrator):
        data_source.programs = [make_program("prog-a", minimum_points=36)]
        single = await match_cache.get_match("student-1", "prog-a")
        await match_cache.get_matches("student-1")
        assert single.academic_match.meets_points_requirement is True

        data_source.programs = [make_program("prog-a", minimum_points=40)]
        await orchestrator.apply(ProgramUpdated("prog-a", frozenset({"minimum_points"})))

        single = await match_cache.get_match("student-1", "prog-a")
        listed = await match_cache.get_matches("student-1")
        assert single.academic_match.meets_points_requirement is False
        assert single.academic_match.points_shortfall == 2
        assert listed[0].academic_match.meets_points_requirement is False


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_computation(self, match_cache, data_source):
        data_source.gate = asyncio.Event()

        first = asyncio.create_task(match_cache.get_matches("student-1"))
        second = asyncio.create_task(match_cache.get_matches("student-1"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        data_source.gate.set()

        a, b = await asyncio.gather(first, second)
        assert a == b
        assert data_source.profile_calls == 1

    @pytest.mark.asyncio
    async def test_invalidated_computation_is_not_stored(self, match_cache, data_source, backend):
        data_source.gate = asyncio.Event()
        pending = asyncio.create_task(match_cache.get_matches("student-1"))
        await asyncio.sleep(0)

        await match_cache.invalidate_student("student-1")
        data_source.gate.set()
        await pending

        assert await backend.keys("matches:") == []

    @pytest.mark.asyncio
    async def test_reader_after_invalidation_does_not_join_stale_flight(self, match_cache, data_source):
        data_source.gate = asyncio.Event()
        stale = asyncio.create_task(match_cache.get_matches("student-1"))
        await asyncio.sleep(0)

        await match_cache.invalidate_student("student-1")
        fresh = asyncio.create_task(match_cache.get_matches("student-1"))
        await asyncio.sleep(0)
        data_source.gate.set()
        await asyncio.gather(stale, fresh)

        assert data_source.profile_calls == 2

    @pytest.mark.asyncio
    async def test_deleted_program_never_reappears(self, match_cache, data_source, backend):
        data_source.gate = asyncio.Event()
        in_flight = asyncio.create_task(match_cache.get_matches("student-1"))
        await asyncio.sleep(0)

        data_source.programs = [p for p in data_source.programs if p.program_id != "prog-2"]
        await match_cache.invalidate_programs()
        await match_cache.clear_all_matches()
        data_source.gate.set()
        await in_flight

        assert await backend.keys("matches:") == []

        data_source.gate = None
        results = await match_cache.get_matches("student-1")
        assert "prog-2" not in {r.program_id for r in results}
        with pytest.raises(NotFoundError):
            await match_cache.get_match("student-1", "prog-2")

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self, match_cache, data_source):
        data_source.gate = asyncio.Event()
        first = asyncio.create_task(match_cache.get_matches("ghost"))
        second = asyncio.create_task(match_cache.get_matches("ghost"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        data_source.gate.set()

        results = await asyncio.gather(first, second, return_exceptions=True)
        assert all(isinstance(r, ProfileNotFoundError) for r in results)
        assert data_source.profile_calls == 1


    @pytest.mark.asyncio
    async def test_cancelled_leader_leaves_followers_unharmed(self, match_cache, data_source, backend):
        data_source.gate = asyncio.Event()
        leader = asyncio.create_task(match_cache.get_matches("student-1"))
        while data_source.profile_calls == 0:
            await asyncio.sleep(0)
        follower = asyncio.create_task(match_cache.get_matches("student-1"))
        await asyncio.sleep(0)

        leader.cancel()
        with pytest.raises(asyncio.CancelledError):
            await leader
        data_source.gate.set()
        results = await follower

        assert [r.program_id for r in results] == ["prog-1", "prog-3", "prog-2"]
        assert data_source.profile_calls == 1
        assert len(await backend.keys("matches:")) == 1

    @pytest.mark.asyncio
    async def test_abandoned_computation_still_fills_cache(self, match_cache, data_source, backend):
        data_source.gate = asyncio.Event()
        waiter = asyncio.create_task(match_cache.get_matches("student-1"))
        while data_source.profile_calls == 0:
            await asyncio.sleep(0)

        waiter.cancel()
        data_source.gate.set()
        await match_cache.settle()

        assert len(await backend.keys("matches:")) == 1
        assert (await match_cache.stats())["inFlight"] == 0


class TestDegradedBackend:

    @pytest.mark.asyncio
    async def test_failing_backend_computes_directly(self, data_source):
        cache = MatchCache(backend=FailingCacheBackend(), data_source=data_source)

        first = await cache.get_matches("student-1")
        second = await cache.get_matches("student-1")

        assert [r.program_id for r in first] == [r.program_id for r in second]
        assert data_source.profile_calls == 2

    @pytest.mark.asyncio
    async def test_warm_programs(self, match_cache):
        assert await match_cache.warm_programs() == 3

    @pytest.mark.asyncio
    async def test_warm_programs_swallows_source_errors(self, backend):
        source = FakeMatchDataSource()

        async def broken():
            raise ConnectionError("db down")

        source.list_active_programs = broken
        cache = MatchCache(backend=backend, data_source=source)
        assert await cache.warm_programs() is None

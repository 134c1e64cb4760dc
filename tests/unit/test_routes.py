"""
Unit tests for the HTTP API.

Routes run against the real match cache over an in-memory data source;
database-backed services are replaced through dependency overrides.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from match_engine.api.dependencies import (
    get_match_cache,
    get_orchestrator,
    get_program_catalog_service,
    get_student_profile_service,
)
from match_engine.config.settings import get_settings
from match_engine.services import StudentProfileService


AUTH = {"Authorization": "Bearer student-1"}


@pytest.fixture
def orchestrator_mock():
    mock = MagicMock()
    mock.apply = AsyncMock()
    mock.schedule_precompute = MagicMock(return_value=True)
    mock.precompute_queue.pending = 1
    mock.invalidate_student = AsyncMock(return_value=2)
    mock.invalidate_program = AsyncMock(return_value=1)
    mock.clear_all = AsyncMock(return_value=7)
    return mock


@pytest.fixture
def api(app, client, match_cache, orchestrator_mock):
    app.dependency_overrides[get_match_cache] = lambda: match_cache
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator_mock
    return client


@pytest.fixture
def keys(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "internal_api_key", "internal-secret")
    monkeypatch.setattr(settings, "admin_api_key", "admin-secret")
    return settings


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMatchRoutes:

    def test_requires_authorization(self, api):
        assert api.get("/api/students/matches").status_code == 401

    def test_rejects_malformed_authorization(self, api):
        response = api.get("/api/students/matches", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_lists_ranked_matches(self, api):
        response = api.get("/api/students/matches", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["studentId"] == "student-1"
        assert body["total"] == 3
        assert [m["programId"] for m in body["matches"]] == ["prog-1", "prog-3", "prog-2"]
        assert body["matches"][0]["program"]["university_name"] == "Test University"

    def test_limit(self, api):
        response = api.get("/api/students/matches?limit=1", headers=AUTH)
        assert len(response.json()["matches"]) == 1

    def test_mode_query(self, api):
        response = api.get("/api/students/matches?mode=ACADEMIC_FOCUSED", headers=AUTH)
        assert response.json()["matches"][0]["weightsUsed"]["academic"] == pytest.approx(0.8)

    def test_missing_profile_is_404(self, api):
        response = api.get("/api/students/matches", headers={"Authorization": "Bearer ghost"})
        assert response.status_code == 404
        assert response.json()["error"] == "ProfileNotFoundError"

    def test_single_program_match(self, api):
        response = api.get("/api/programs/prog-2/match", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["programId"] == "prog-2"
        assert body["academicMatch"]["pointsShortfall"] == 2
        assert body["locationMatch"]["isMatch"] is False
        assert body["category"]["category"] in {"SAFETY", "MATCH", "REACH", "UNLIKELY"}

    def test_list_entries_carry_category(self, api):
        response = api.get("/api/students/matches", headers=AUTH)

        first = response.json()["matches"][0]
        assert first["category"]["factors"][0]["type"] == "SCORE"
        assert "overallScore" in first

    def test_unknown_program_is_404(self, api):
        response = api.get("/api/programs/nope/match", headers=AUTH)
        assert response.status_code == 404


class TestPrecomputeTrigger:

    def test_unconfigured_key_is_503(self, api, monkeypatch):
        monkeypatch.setattr(get_settings(), "internal_api_key", None)
        response = api.post(
            "/api/students/matches/precompute",
            json={"studentId": "student-1"},
            headers={"X-Internal-Key": "anything"},
        )
        assert response.status_code == 503

    def test_wrong_key_is_403(self, api, keys):
        response = api.post(
            "/api/students/matches/precompute",
            json={"studentId": "student-1"},
            headers={"X-Internal-Key": "wrong"},
        )
        assert response.status_code == 403

    def test_schedules(self, api, keys, orchestrator_mock):
        response = api.post(
            "/api/students/matches/precompute",
            json={"studentId": "student-1"},
            headers={"X-Internal-Key": "internal-secret"},
        )
        assert response.status_code == 202
        assert response.json() == {"scheduled": True, "pending": 1}
        orchestrator_mock.schedule_precompute.assert_called_once_with("student-1")


class TestProfileRoutes:

    @pytest.fixture
    def repo(self, profile):
        repo = MagicMock()
        repo.session.commit = AsyncMock()
        repo.session.rollback = AsyncMock()
        repo.get_profile = AsyncMock(return_value=profile)
        repo.save_profile = AsyncMock(side_effect=lambda p: p)
        repo.delete = AsyncMock(return_value=True)
        return repo

    @pytest.fixture
    def profile_api(self, app, api, repo, orchestrator_mock):
        app.dependency_overrides[get_student_profile_service] = (
            lambda: StudentProfileService(repo, orchestrator_mock)
        )
        return api

    def test_get_profile(self, profile_api):
        response = profile_api.get("/api/students/profile", headers=AUTH)
        assert response.status_code == 200
        assert response.json()["total_points"] == 38

    def test_save_profile(self, profile_api, orchestrator_mock):
        response = profile_api.put(
            "/api/students/profile",
            json={"total_points": 41},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.json()["profile"]["total_points"] == 41
        assert response.json()["warnings"] == []
        orchestrator_mock.apply.assert_awaited_once()

    def test_contradiction_is_400(self, profile_api, orchestrator_mock):
        response = profile_api.put(
            "/api/students/profile",
            json={"open_to_all_fields": True},
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["details"]["errors"][0]["code"] == "BOTH_PREFS_AND_FLAG"
        orchestrator_mock.apply.assert_not_awaited()

    def test_out_of_range_points_is_422(self, profile_api):
        response = profile_api.put(
            "/api/students/profile",
            json={"total_points": 46},
            headers=AUTH,
        )
        assert response.status_code == 422

    def test_null_preference_list_is_422(self, profile_api, repo):
        response = profile_api.put(
            "/api/students/profile",
            json={"preferred_fields": None},
            headers=AUTH,
        )
        assert response.status_code == 422
        repo.save_profile.assert_not_awaited()

    def test_delete_profile(self, profile_api):
        response = profile_api.delete("/api/students/profile", headers=AUTH)
        assert response.status_code == 204


class TestAdminRoutes:

    def test_requires_key(self, api, keys):
        assert api.get("/api/admin/cache/stats").status_code == 403

    def test_cache_stats(self, api, keys):
        response = api.get("/api/admin/cache/stats", headers={"X-Admin-Key": "admin-secret"})
        assert response.status_code == 200
        assert response.json()["available"] is True

    @pytest.mark.parametrize("body, expected", [
        ({"scope": "all"}, 7),
        ({"scope": "student", "id": "student-1"}, 2),
        ({"scope": "program", "id": "prog-1"}, 1),
    ])
    def test_invalidate(self, api, keys, body, expected):
        response = api.post(
            "/api/admin/cache/invalidate",
            json=body,
            headers={"X-Admin-Key": "admin-secret"},
        )
        assert response.status_code == 200
        assert response.json()["keys_removed"] == expected

    def test_scoped_invalidation_requires_id(self, api, keys):
        response = api.post(
            "/api/admin/cache/invalidate",
            json={"scope": "student"},
            headers={"X-Admin-Key": "admin-secret"},
        )
        assert response.status_code == 422

    def test_create_program(self, app, api, keys, program):
        service = MagicMock()
        service.create_program = AsyncMock(return_value=program)
        app.dependency_overrides[get_program_catalog_service] = lambda: service

        response = api.post(
            "/api/admin/programs",
            json={
                "name": "Mechanical Engineering",
                "university_name": "TU Delft",
                "field_id": "engineering",
                "country_id": "NL",
                "minimum_points": 36,
                "requirement_groups": [
                    {"options": [{"course_id": "math-aa", "level": "HL", "minimum_grade": 5, "is_critical": True}]}
                ],
            },
            headers={"X-Admin-Key": "admin-secret"},
        )

        assert response.status_code == 201
        assert response.json()["program_id"] == "prog-1"
        sent = service.create_program.await_args.args[0]
        assert sent.requirement_groups[0]["options"][0]["level"] == "HL"

    def test_invalid_requirement_group_is_422(self, app, api, keys):
        service = MagicMock()
        service.create_program = AsyncMock()
        app.dependency_overrides[get_program_catalog_service] = lambda: service

        response = api.post(
            "/api/admin/programs",
            json={
                "name": "X",
                "university_name": "Y",
                "field_id": "f",
                "country_id": "c",
                "requirement_groups": [{"options": []}],
            },
            headers={"X-Admin-Key": "admin-secret"},
        )
        assert response.status_code == 422

    def test_delete_program(self, app, api, keys):
        service = MagicMock()
        service.delete_program = AsyncMock(return_value=None)
        app.dependency_overrides[get_program_catalog_service] = lambda: service

        response = api.delete("/api/admin/programs/prog-1", headers={"X-Admin-Key": "admin-secret"})

        assert response.status_code == 204
        service.delete_program.assert_awaited_once_with("prog-1")

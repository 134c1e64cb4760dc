"""
Test configuration and fixtures for the Match Engine.

Provides shared fixtures for unit tests: sample students and programs,
an in-memory data source and a ready-to-use match cache.
"""

import pytest
from fastapi.testclient import TestClient

from factories import FakeMatchDataSource, make_profile, make_program
from match_engine.domain.models import ProgramRequirement, StudentAcademicProfile
from match_engine.infrastructure.cache import InMemoryCacheBackend, MatchCache


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def profile() -> StudentAcademicProfile:
    return make_profile()


@pytest.fixture
def program() -> ProgramRequirement:
    return make_program()


@pytest.fixture
def data_source(profile, program) -> FakeMatchDataSource:
    return FakeMatchDataSource(
        profiles={profile.student_id: profile},
        programs=[
            program,
            make_program("prog-2", field_id="medicine", country_id="UK", minimum_points=40),
            make_program("prog-3", requirement_groups=[]),
        ],
    )


@pytest.fixture
def backend() -> InMemoryCacheBackend:
    return InMemoryCacheBackend()


@pytest.fixture
def match_cache(backend, data_source) -> MatchCache:
    return MatchCache(backend=backend, data_source=data_source)


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application with dependency overrides cleared after use."""
    from match_engine.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)

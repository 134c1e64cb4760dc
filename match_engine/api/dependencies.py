"""
API Dependencies

FastAPI dependency injection for authentication and the match engine
services.

Authentication is development-grade: the bearer token is the student id.
Internal and admin endpoints are gated by static keys compared in
constant time.
"""

import logging
import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from match_engine.config.settings import get_settings
from match_engine.domain.scoring import MatchingMode
from match_engine.infrastructure.cache import InMemoryCacheBackend, MatchCache
from match_engine.infrastructure.db.dependencies import (
    ProgramRepoDep,
    StudentProfileRepoDep,
)
from match_engine.infrastructure.db.match_data_source import SqlMatchDataSource
from match_engine.services import (
    Orchestrator,
    OrchestratorConfig,
    PreferenceLimits,
    ProgramCatalogService,
    StudentProfileService,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Authentication
# =============================================================================

async def get_current_student_id(
    authorization: Optional[str] = Header(None)
) -> str:
    """
    Extract the student id from the authorization header.

    Expects `Bearer <student-id>`.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return parts[1]


def _check_key(provided: Optional[str], expected: Optional[str], name: str) -> None:
    if not expected:
        logger.error(f"{name} is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} authentication not configured",
        )

    # Use secrets.compare_digest for timing-attack resistance
    if not provided or not secrets.compare_digest(provided, expected):
        logger.warning(f"Invalid {name} attempt")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Invalid {name}",
        )


async def verify_internal_api_key(
    x_internal_key: Optional[str] = Header(None, description="Internal service key")
) -> bool:
    """Gate for service-to-service triggers (INTERNAL_API_KEY)."""
    _check_key(x_internal_key, get_settings().internal_api_key, "internal API key")
    return True


async def verify_admin_api_key(
    x_admin_key: Optional[str] = Header(None, description="Admin API key for protected operations")
) -> bool:
    """Gate for catalog administration (ADMIN_API_KEY)."""
    _check_key(x_admin_key, get_settings().admin_api_key, "admin API key")
    return True


# =============================================================================
# Match engine singletons
# =============================================================================

@lru_cache
def get_match_cache() -> MatchCache:
    """Process-wide match cache."""
    settings = get_settings()
    return MatchCache(
        backend=InMemoryCacheBackend(),
        data_source=SqlMatchDataSource(),
        match_ttl_seconds=settings.match_cache_ttl_seconds,
        programs_ttl_seconds=settings.programs_cache_ttl_seconds,
        default_mode=MatchingMode(settings.default_matching_mode),
    )


@lru_cache
def get_orchestrator() -> Orchestrator:
    """Process-wide orchestrator; owns the precompute queue."""
    settings = get_settings()
    return Orchestrator(
        get_match_cache(),
        OrchestratorConfig(
            precompute_enabled=settings.precompute_enabled,
            precompute_timeout_seconds=settings.precompute_timeout_seconds,
        ),
    )


# =============================================================================
# Request-scoped services
# =============================================================================

async def get_student_profile_service(
    repo: StudentProfileRepoDep,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> StudentProfileService:
    settings = get_settings()
    return StudentProfileService(
        repo,
        orchestrator,
        PreferenceLimits(
            max_fields=settings.max_field_preferences,
            max_countries=settings.max_country_preferences,
            require_explicit=settings.require_explicit_preferences,
        ),
    )


async def get_program_catalog_service(
    repo: ProgramRepoDep,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> ProgramCatalogService:
    return ProgramCatalogService(repo, orchestrator)

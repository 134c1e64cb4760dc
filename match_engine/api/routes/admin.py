"""
Admin Routes for Catalog and Cache Maintenance

Program create/update/delete and manual cache controls.
Protected by API key authentication.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, model_validator

from match_engine.api.dependencies import (
    get_match_cache,
    get_orchestrator,
    get_program_catalog_service,
    verify_admin_api_key,
)
from match_engine.infrastructure.cache import MatchCache
from match_engine.infrastructure.db.models.program import ProgramCreate, ProgramUpdate
from match_engine.services import Orchestrator, ProgramCatalogService

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(verify_admin_api_key)]  # Protect ALL admin routes
)


class CacheInvalidationRequest(BaseModel):
    """Manual invalidation request."""
    scope: Literal["all", "student", "program"]
    id: Optional[str] = None

    @model_validator(mode="after")
    def require_id_for_scoped(self) -> "CacheInvalidationRequest":
        if self.scope != "all" and not self.id:
            raise ValueError(f"id is required for scope '{self.scope}'")
        return self


class CacheInvalidationResult(BaseModel):
    scope: str
    id: Optional[str] = None
    keys_removed: int


# ============================================================================
# Programs
# ============================================================================

@router.post("/programs", status_code=status.HTTP_201_CREATED)
async def create_program(
    request: ProgramCreate,
    service: ProgramCatalogService = Depends(get_program_catalog_service),
):
    program = await service.create_program(request)
    return program.model_dump(mode="json")


@router.patch("/programs/{program_id}")
async def update_program(
    program_id: str,
    request: ProgramUpdate,
    service: ProgramCatalogService = Depends(get_program_catalog_service),
):
    program = await service.update_program(program_id, request)
    return program.model_dump(mode="json")


@router.delete("/programs/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(
    program_id: str,
    service: ProgramCatalogService = Depends(get_program_catalog_service),
):
    await service.delete_program(program_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Cache
# ============================================================================

@router.post("/cache/invalidate", response_model=CacheInvalidationResult)
async def invalidate_cache(
    request: CacheInvalidationRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> CacheInvalidationResult:
    """
    Manually invalidate cached matches.

    - all: catalog and every match entry
    - student: one student's lists and entries
    - program: catalog and every entry for one program
    """
    if request.scope == "student":
        removed = await orchestrator.invalidate_student(request.id)
    elif request.scope == "program":
        removed = await orchestrator.invalidate_program(request.id)
    else:
        removed = await orchestrator.clear_all()

    logger.info(f"Admin cache invalidation: scope={request.scope} id={request.id} removed={removed}")
    return CacheInvalidationResult(scope=request.scope, id=request.id, keys_removed=removed)


@router.get("/cache/stats")
async def cache_stats(cache: MatchCache = Depends(get_match_cache)):
    return await cache.stats()

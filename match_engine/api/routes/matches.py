"""
Match Routes

Read endpoints for a student's program matches, plus the internal
precompute trigger.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from match_engine.api.dependencies import (
    get_current_student_id,
    get_match_cache,
    get_orchestrator,
    verify_internal_api_key,
)
from match_engine.config.settings import get_settings
from match_engine.domain.models import ProgramRequirement
from match_engine.domain.scoring import MatchingMode, MatchResult, categorize_match
from match_engine.infrastructure.cache import MatchCache
from match_engine.services import Orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class PrecomputeRequest(BaseModel):
    """Internal trigger body."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., min_length=1, alias="studentId")


class PrecomputeResponse(BaseModel):
    scheduled: bool
    pending: int


def _with_program(
    result: MatchResult,
    programs: Dict[str, ProgramRequirement],
) -> Dict[str, Any]:
    body = result.to_dict()
    program = programs.get(result.program_id)
    body["program"] = program.summary().model_dump() if program else None
    body["category"] = categorize_match(result).to_dict()
    return body


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/students/matches")
async def list_matches(
    limit: Optional[int] = Query(None, ge=1, le=100),
    mode: Optional[MatchingMode] = None,
    student_id: str = Depends(get_current_student_id),
    cache: MatchCache = Depends(get_match_cache),
):
    """Top matches for the current student, best first."""
    limit = limit or get_settings().max_matches_returned
    results = await cache.get_matches(student_id, mode=mode)
    programs = {p.program_id: p for p in await cache.get_programs()}

    return {
        "studentId": student_id,
        "total": len(results),
        "matches": [_with_program(r, programs) for r in results[:limit]],
    }


@router.get("/programs/{program_id}/match")
async def get_program_match(
    program_id: str,
    mode: Optional[MatchingMode] = None,
    student_id: str = Depends(get_current_student_id),
    cache: MatchCache = Depends(get_match_cache),
):
    """Match between the current student and one program."""
    result = await cache.get_match(student_id, program_id, mode=mode)
    programs = {p.program_id: p for p in await cache.get_programs()}
    return _with_program(result, programs)


@router.post(
    "/students/matches/precompute",
    response_model=PrecomputeResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(verify_internal_api_key)],
)
async def trigger_precompute(
    request: PrecomputeRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> PrecomputeResponse:
    """Queue a background warm-up of a student's matches."""
    scheduled = orchestrator.schedule_precompute(request.student_id)
    logger.info(
        f"Precompute trigger for student {request.student_id}: "
        f"{'scheduled' if scheduled else 'not scheduled'}"
    )
    return PrecomputeResponse(
        scheduled=scheduled,
        pending=orchestrator.precompute_queue.pending,
    )

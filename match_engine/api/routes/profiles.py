"""
Profile Routes

Read, save and delete the current student's academic profile.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status

from match_engine.api.dependencies import (
    get_current_student_id,
    get_student_profile_service,
)
from match_engine.domain.models import StudentProfileUpdate
from match_engine.services import StudentProfileService


router = APIRouter()


@router.get("/students/profile")
async def get_profile(
    student_id: str = Depends(get_current_student_id),
    service: StudentProfileService = Depends(get_student_profile_service),
):
    """Get the current student's profile."""
    profile = await service.get_profile(student_id)
    return profile.model_dump(mode="json")


@router.put("/students/profile")
async def save_profile(
    request: StudentProfileUpdate,
    student_id: str = Depends(get_current_student_id),
    service: StudentProfileService = Depends(get_student_profile_service),
) -> Dict[str, Any]:
    """
    Create or update the current student's profile.

    Only fields present in the body are changed. Contradictory preference
    settings are rejected with 400; soft issues come back as warnings.
    """
    profile, warnings = await service.save_profile(student_id, request)
    issues: List[Dict[str, str]] = [w.to_dict() for w in warnings]
    return {
        "profile": profile.model_dump(mode="json"),
        "warnings": issues,
    }


@router.delete("/students/profile", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    student_id: str = Depends(get_current_student_id),
    service: StudentProfileService = Depends(get_student_profile_service),
):
    """Delete the current student's profile and their cached matches."""
    await service.delete_profile(student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

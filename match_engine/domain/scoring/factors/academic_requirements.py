"""
Academic Requirements Factor

Checks a student's transcript against a program's entry requirements.

Two parts:
- Diploma points against the program minimum
- Subject requirement groups (OR inside a group, AND across groups)

A course satisfies an option when the course id matches, its level is at
least the required level (HL covers SL) and its grade is at least the
option's minimum grade.
"""

from typing import Optional

from match_engine.domain.models import (
    StudentAcademicProfile,
    ProgramRequirement,
    RequirementGroup,
)
from match_engine.domain.scoring.interfaces import (
    AcademicMatch,
    BaseScoringFactor,
    GroupMatch,
    clamp_unit,
)


class AcademicRequirementsFactor(BaseScoringFactor):
    """
    Academic sub-score: subject coverage scaled by a points factor.

    Points factor:
    - 1.0 when the minimum is met (or there is none)
    - 0.8 when the student's total is unknown, or short by 3 points or less
    - otherwise shrinks with the shortfall, floored at 0.5
    """

    NEAR_POINTS_SHORTFALL = 3
    NEAR_POINTS_FACTOR = 0.8
    MIN_POINTS_FACTOR = 0.5

    # A critical group whose best grade is at most this far above the minimum
    # counts as a near miss
    NEAR_MISS_MARGIN = 1

    # Points margin is measured against this total when a program sets no minimum
    POINTS_BASELINE = 30

    @property
    def name(self) -> str:
        return "academic"

    def calculate(
        self,
        profile: StudentAcademicProfile,
        program: ProgramRequirement,
    ) -> AcademicMatch:
        """
        Evaluate the profile against the program's requirements.

        Never raises on missing data: an unknown point total is reported
        as not met with no measured shortfall.
        """
        meets_points, shortfall, points_known = self._evaluate_points(
            profile.total_points, program.minimum_points
        )

        group_matches = [
            self._evaluate_group(profile, group)
            for group in program.requirement_groups
        ]

        if group_matches:
            satisfied = sum(1 for g in group_matches if g.satisfied)
            subjects_score = satisfied / len(group_matches)
        else:
            subjects_score = 1.0

        missing_critical = sum(
            1 for g in group_matches if g.is_critical and not g.satisfied
        )
        near_misses = sum(
            1 for g in group_matches
            if g.is_critical
            and g.satisfied
            and g.margin is not None
            and g.margin <= self.NEAR_MISS_MARGIN
        )

        points_factor = self._points_factor(
            meets_points, shortfall, points_known, program.minimum_points
        )

        return AcademicMatch(
            score=clamp_unit(subjects_score * points_factor),
            meets_points_requirement=meets_points,
            points_shortfall=shortfall,
            points_known=points_known,
            subjects_match_score=subjects_score,
            missing_critical_count=missing_critical,
            critical_near_miss_count=near_misses,
            points_margin=self._points_margin(profile.total_points, program.minimum_points),
            group_matches=group_matches,
        )

    def _evaluate_points(
        self,
        total_points: Optional[int],
        minimum_points: Optional[int],
    ) -> tuple[bool, int, bool]:
        """Returns (met, shortfall, known)."""
        if minimum_points is None:
            return True, 0, total_points is not None
        if total_points is None:
            return False, 0, False
        shortfall = max(0, minimum_points - total_points)
        return shortfall == 0, shortfall, True

    def _points_margin(
        self,
        total_points: Optional[int],
        minimum_points: Optional[int],
    ) -> Optional[int]:
        if total_points is None:
            return None
        reference = minimum_points if minimum_points is not None else self.POINTS_BASELINE
        return total_points - reference

    def _points_factor(
        self,
        met: bool,
        shortfall: int,
        known: bool,
        minimum_points: Optional[int],
    ) -> float:
        if met:
            return 1.0
        if not known or shortfall <= self.NEAR_POINTS_SHORTFALL:
            return self.NEAR_POINTS_FACTOR
        return max(self.MIN_POINTS_FACTOR, 1.0 - shortfall / minimum_points)

    def _evaluate_group(
        self,
        profile: StudentAcademicProfile,
        group: RequirementGroup,
    ) -> GroupMatch:
        best_margin: Optional[int] = None
        best_course: Optional[str] = None

        for option in group.options:
            for course in profile.courses:
                if course.course_id != option.course_id:
                    continue
                if not course.level.satisfies(option.level):
                    continue
                margin = course.grade - option.minimum_grade
                if margin < 0:
                    continue
                if best_margin is None or margin > best_margin:
                    best_margin = margin
                    best_course = course.course_id

        return GroupMatch(
            satisfied=best_margin is not None,
            is_critical=group.is_critical,
            matched_course_id=best_course,
            margin=best_margin,
        )


def evaluate_academic_requirements(
    profile: StudentAcademicProfile,
    program: ProgramRequirement,
) -> AcademicMatch:
    """Functional shortcut for AcademicRequirementsFactor().calculate()."""
    return AcademicRequirementsFactor().calculate(profile, program)


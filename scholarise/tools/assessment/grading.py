"""Map final percentages to letter grades."""

from typing import List, Optional, Tuple

from .models import GradeRange, GradeResult, GradeScale, ValidationResult

NOT_APPLICABLE = 'N/A'

# CBSE-style scale, checked top-down.
DEFAULT_GRADE_THRESHOLDS: List[Tuple[float, str]] = [
    (91, 'A1'),
    (81, 'A2'),
    (71, 'B1'),
    (61, 'B2'),
    (51, 'C1'),
    (41, 'C2'),
    (33, 'D'),
]
DEFAULT_LOWEST_GRADE = 'E'


def _default_grade(percentage: float) -> str:
    for threshold, grade in DEFAULT_GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return DEFAULT_LOWEST_GRADE


def _matching_range(percentage: float, grade_scale: GradeScale) -> Optional[GradeRange]:
    # First match in declaration order; overlapping scales resolve to the earlier range.
    for grade_range in grade_scale.grade_ranges:
        if grade_range.min_percentage <= percentage <= grade_range.max_percentage:
            return grade_range
    return None


def calculate_grade(percentage: float, grade_scale: Optional[GradeScale] = None) -> str:
    """Letter grade for a percentage, using the default scale when none is given."""
    if grade_scale is None:
        return _default_grade(percentage)
    grade_range = _matching_range(percentage, grade_scale)
    return grade_range.grade if grade_range else NOT_APPLICABLE


def calculate_grade_with_point(percentage: float,
                               grade_scale: Optional[GradeScale] = None) -> GradeResult:
    """Like calculate_grade, plus the grade point and description of the matched range."""
    if grade_scale is None:
        return GradeResult(grade=_default_grade(percentage))
    grade_range = _matching_range(percentage, grade_scale)
    if grade_range is None:
        return GradeResult(grade=NOT_APPLICABLE)
    return GradeResult(
        grade=grade_range.grade,
        grade_point=grade_range.grade_point,
        description=grade_range.description or None,
    )


def validate_grade_scale(grade_scale: GradeScale, gap_tolerance: float = 1.0) -> ValidationResult:
    """
    Check a custom grade scale for problems the resolver silently tolerates.

    Reports ranges with bad bounds or empty grades, overlapping ranges, and gaps
    wider than ``gap_tolerance`` between neighbouring ranges. Ranges that only
    touch at a boundary are not an overlap.
    """
    errors: List[str] = []
    ranges = grade_scale.grade_ranges

    if not ranges:
        errors.append("Grade scale must have at least one grade range")

    for r in ranges:
        label = r.grade or '<blank>'
        if not r.grade.strip():
            errors.append("Grade ranges must have a grade")
        if r.min_percentage < 0 or r.max_percentage > 100:
            errors.append(f"Grade {label} must lie between 0 and 100 percent")
        if r.min_percentage >= r.max_percentage:
            errors.append(f"Grade {label} must have a minimum percentage below its maximum")

    for i, a in enumerate(ranges):
        for b in ranges[i + 1:]:
            if a.min_percentage < b.max_percentage and b.min_percentage < a.max_percentage:
                errors.append(f"Grade ranges {a.grade} and {b.grade} overlap")

    ordered = sorted(ranges, key=lambda r: r.min_percentage)
    for lower, upper in zip(ordered, ordered[1:]):
        if upper.min_percentage - lower.max_percentage > gap_tolerance:
            errors.append(
                f"Gap between grade {lower.grade} ({lower.max_percentage}%) "
                f"and grade {upper.grade} ({upper.min_percentage}%)"
            )

    return ValidationResult(is_valid=not errors, errors=errors)

"""Tests for grade resolution and grade scale checks."""

import pytest

from scholarise.tools.assessment.grading import (
    calculate_grade,
    calculate_grade_with_point,
    validate_grade_scale,
)
from scholarise.tools.assessment.models import GradeRange, GradeScale


@pytest.fixture
def ten_point_scale():
    """A contiguous custom scale with grade points."""
    return GradeScale(
        name="Ten point",
        grade_ranges=[
            GradeRange(min_percentage=90, max_percentage=100, grade="O", grade_point=10, description="Outstanding"),
            GradeRange(min_percentage=75, max_percentage=89.99, grade="A", grade_point=8),
            GradeRange(min_percentage=50, max_percentage=74.99, grade="B", grade_point=6),
            GradeRange(min_percentage=0, max_percentage=49.99, grade="F", grade_point=0),
        ],
    )


class TestDefaultScale:
    """CBSE-style default scale."""

    @pytest.mark.parametrize("percentage,expected", [
        (100, "A1"),
        (91, "A1"),
        (90.999, "A2"),
        (81, "A2"),
        (71, "B1"),
        (61, "B2"),
        (51, "C1"),
        (41, "C2"),
        (33, "D"),
        (32.999, "E"),
        (0, "E"),
    ])
    def test_boundaries(self, percentage, expected):
        """Test each threshold is inclusive at its lower bound."""
        assert calculate_grade(percentage) == expected

    def test_grade_with_point_has_no_point(self):
        """Test the default scale carries no grade point."""
        result = calculate_grade_with_point(85)
        assert result.grade == "A2"
        assert result.grade_point is None
        assert result.description is None


class TestCustomScale:
    """Institution-supplied scales."""

    def test_matches_range(self, ten_point_scale):
        """Test lookups inside and on the edges of ranges."""
        assert calculate_grade(95, ten_point_scale) == "O"
        assert calculate_grade(90, ten_point_scale) == "O"
        assert calculate_grade(89.99, ten_point_scale) == "A"
        assert calculate_grade(0, ten_point_scale) == "F"

    def test_falls_through_gap(self, ten_point_scale):
        """Test percentages in a gap between ranges resolve to N/A."""
        assert calculate_grade(89.995, ten_point_scale) == "N/A"
        assert calculate_grade(120, ten_point_scale) == "N/A"

    def test_grade_with_point(self, ten_point_scale):
        """Test grade point and description are returned."""
        result = calculate_grade_with_point(92, ten_point_scale)
        assert result.grade == "O"
        assert result.grade_point == 10
        assert result.description == "Outstanding"

        result = calculate_grade_with_point(80, ten_point_scale)
        assert result.grade == "A"
        assert result.grade_point == 8
        assert result.description is None

    def test_grade_with_point_not_applicable(self, ten_point_scale):
        """Test unmatched percentages."""
        assert calculate_grade_with_point(150, ten_point_scale).grade == "N/A"

    def test_first_match_wins_for_overlaps(self):
        """Test overlapping ranges resolve in declaration order."""
        scale = GradeScale(grade_ranges=[
            GradeRange(min_percentage=0, max_percentage=60, grade="Low"),
            GradeRange(min_percentage=50, max_percentage=100, grade="High"),
        ])
        assert calculate_grade(55, scale) == "Low"

    def test_empty_scale(self):
        """Test an empty custom scale never matches."""
        assert calculate_grade(50, GradeScale()) == "N/A"

    def test_camel_case_input(self):
        """Test scales deserialized from the web app's JSON."""
        scale = GradeScale.model_validate({
            'gradeRanges': [{'minPercentage': 0, 'maxPercentage': 100, 'grade': 'P', 'gradePoint': 4}]
        })
        assert calculate_grade_with_point(40, scale).grade_point == 4


class TestValidateGradeScale:
    """Consistency checks for custom scales."""

    def test_valid_scale(self, ten_point_scale):
        """Test a contiguous scale passes."""
        result = validate_grade_scale(ten_point_scale)
        assert result.is_valid
        assert result.errors == []

    def test_touching_ranges_do_not_overlap(self):
        """Test ranges sharing a boundary are accepted."""
        scale = GradeScale(grade_ranges=[
            GradeRange(min_percentage=0, max_percentage=40, grade="F"),
            GradeRange(min_percentage=40, max_percentage=100, grade="P"),
        ])
        assert validate_grade_scale(scale).is_valid

    def test_overlap(self):
        """Test overlapping ranges are reported."""
        scale = GradeScale(grade_ranges=[
            GradeRange(min_percentage=0, max_percentage=60, grade="Low"),
            GradeRange(min_percentage=50, max_percentage=100, grade="High"),
        ])
        result = validate_grade_scale(scale)
        assert not result.is_valid
        assert result.errors == ["Grade ranges Low and High overlap"]

    def test_gap(self):
        """Test gaps wider than the tolerance are reported."""
        scale = GradeScale(grade_ranges=[
            GradeRange(min_percentage=60, max_percentage=100, grade="P"),
            GradeRange(min_percentage=0, max_percentage=50, grade="F"),
        ])
        result = validate_grade_scale(scale)
        assert result.errors == ["Gap between grade F (50.0%) and grade P (60.0%)"]

    def test_bad_bounds(self):
        """Test inverted and out-of-range bounds."""
        scale = GradeScale(grade_ranges=[
            GradeRange(min_percentage=80, max_percentage=70, grade="X"),
            GradeRange(min_percentage=-5, max_percentage=110, grade="Y"),
        ])
        result = validate_grade_scale(scale)
        assert "Grade X must have a minimum percentage below its maximum" in result.errors
        assert "Grade Y must lie between 0 and 100 percent" in result.errors

    def test_empty_scale(self):
        """Test a scale with no ranges."""
        result = validate_grade_scale(GradeScale())
        assert result.errors == ["Grade scale must have at least one grade range"]

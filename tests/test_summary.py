"""Tests for class summaries."""

import pytest

from scholarise.tools.assessment.models import (
    AssessmentCalculationResult,
    AssessmentComponent,
    AssessmentSchema,
    CalculatedComponentScore,
    ComponentScore,
    GradeRange,
    GradeScale,
    StudentScores,
)
from scholarise.tools.assessment.summary import generate_class_summary, summarize_results


@pytest.fixture
def schema():
    """Two equally weighted components, each reduced to 50 marks."""
    return AssessmentSchema(
        id="math-t1",
        total_marks=100,
        components=[
            AssessmentComponent(id="ut", name="Unit Test", weightage=1, raw_max_score=50, reduced_score=100),
            AssessmentComponent(id="ex", name="Exam", weightage=1, raw_max_score=100, reduced_score=100),
        ],
    )


def student(student_id, unit_test=None, exam=None):
    scores = []
    if unit_test is not None:
        scores.append(ComponentScore(component_id="ut", raw_score=unit_test))
    if exam is not None:
        scores.append(ComponentScore(component_id="ex", raw_score=exam))
    return StudentScores(student_id=student_id, component_scores=scores)


class TestClassSummary:
    """Cohort aggregation."""

    def test_empty_cohort(self, schema):
        """Test an empty cohort yields zeros, not infinity."""
        summary = generate_class_summary(schema, [])
        assert summary.total_students == 0
        assert summary.average_score == 0
        assert summary.average_percentage == 0
        assert summary.highest_score == 0
        assert summary.lowest_score == 0
        assert summary.grade_distribution == {}
        assert summary.component_averages == {}

    def test_two_students(self, schema):
        """Test grade distribution and averages for 80% and 90%."""
        summary = generate_class_summary(schema, [
            student("s1", unit_test=40, exam=80),
            student("s2", unit_test=45, exam=90),
        ])
        assert summary.total_students == 2
        assert summary.grade_distribution == {"A2": 1, "A1": 1}
        assert summary.average_percentage == pytest.approx(85.0)
        assert summary.average_score == pytest.approx(85.0)
        assert summary.highest_score == pytest.approx(90.0)
        assert summary.lowest_score == pytest.approx(80.0)
        assert summary.component_averages == {
            "Unit Test": pytest.approx(85.0),
            "Exam": pytest.approx(85.0),
        }

    def test_component_average_counts_only_scored_students(self, schema):
        """Test component averages ignore students missing that component."""
        summary = generate_class_summary(schema, [
            student("s1", unit_test=50, exam=60),
            student("s2", exam=100),
        ])
        assert summary.component_averages["Unit Test"] == pytest.approx(100.0)
        assert summary.component_averages["Exam"] == pytest.approx(80.0)
        # s1: (100 + 60) / 2, s2: exam only
        assert summary.average_score == pytest.approx((80.0 + 100.0) / 2)

    def test_student_with_no_scores(self, schema):
        """Test a student with nothing entered counts as zero."""
        summary = generate_class_summary(schema, [student("s1", unit_test=50, exam=100), student("s2")])
        assert summary.total_students == 2
        assert summary.lowest_score == 0
        assert summary.grade_distribution == {"A1": 1, "E": 1}

    def test_custom_grade_scale(self, schema):
        """Test the distribution uses the supplied scale."""
        scale = GradeScale(grade_ranges=[
            GradeRange(min_percentage=50, max_percentage=100, grade="Pass"),
            GradeRange(min_percentage=0, max_percentage=49.99, grade="Fail"),
        ])
        summary = generate_class_summary(schema, [
            student("s1", unit_test=50, exam=100),
            student("s2", unit_test=10, exam=20),
            student("s3", unit_test=30, exam=60),
        ], grade_scale=scale)
        assert summary.grade_distribution == {"Pass": 2, "Fail": 1}

    def test_accepts_bare_component_score_lists(self, schema):
        """Test rows may be plain lists of component scores."""
        rows = [
            [ComponentScore(component_id="ut", raw_score=25), ComponentScore(component_id="ex", raw_score=50)],
        ]
        summary = generate_class_summary(schema, rows)
        assert summary.average_percentage == pytest.approx(50.0)
        assert summary.grade_distribution == {"C2": 1}

    def test_order_independent(self, schema):
        """Test student order does not change the aggregate."""
        students = [
            student("s1", unit_test=10, exam=30),
            student("s2", unit_test=45, exam=95),
            student("s3", unit_test=30, exam=70),
        ]
        forward = generate_class_summary(schema, students)
        backward = generate_class_summary(schema, list(reversed(students)))
        assert forward.grade_distribution == backward.grade_distribution
        assert forward.average_score == pytest.approx(backward.average_score)
        assert forward.average_percentage == pytest.approx(backward.average_percentage)
        assert forward.highest_score == backward.highest_score
        assert forward.lowest_score == backward.lowest_score
        assert forward.component_averages == pytest.approx(backward.component_averages)

    def test_unknown_component_in_results(self, schema):
        """Test results for components outside the schema are grouped as Unknown."""
        result = AssessmentCalculationResult(
            component_scores=[
                CalculatedComponentScore(component_id="ut", raw_score=25, reduced_score=100, calculated_score=50),
                CalculatedComponentScore(component_id="gone", raw_score=4, reduced_score=10, calculated_score=8),
            ],
            final_score=50,
            final_percentage=50,
        )
        summary = summarize_results(schema, [result])
        assert summary.component_averages == {"Unit Test": 50.0, "Unknown": 8.0}

    def test_component_by_id(self, schema):
        """Test schema components are looked up by id."""
        assert schema.component_by_id("ex").name == "Exam"
        assert schema.component_by_id("missing") is None

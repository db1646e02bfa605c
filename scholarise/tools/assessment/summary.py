"""Cohort-level statistics for an assessment schema."""

import logging
import math
from typing import Dict, List, Optional, Sequence, Union

from .calculator import AssessmentCalculator, assessment_calculator
from .grading import calculate_grade
from .models import (
    AssessmentCalculationResult,
    AssessmentSchema,
    ClassSummary,
    ComponentScore,
    GradeScale,
    StudentScores,
)

LOG = logging.getLogger(__name__)

StudentRow = Union[StudentScores, Sequence[ComponentScore]]


def _component_scores(row: StudentRow) -> Sequence[ComponentScore]:
    if isinstance(row, StudentScores):
        return row.component_scores
    return row


def summarize_results(schema: AssessmentSchema,
                      results: Sequence[AssessmentCalculationResult],
                      grade_scale: Optional[GradeScale] = None) -> ClassSummary:
    """Fold per-student results into a ClassSummary."""
    if not results:
        return ClassSummary()

    total_score = 0.0
    total_percentage = 0.0
    highest_score = 0.0
    lowest_score = math.inf
    grade_distribution: Dict[str, int] = {}
    component_totals: Dict[str, float] = {}
    component_counts: Dict[str, int] = {}

    for result in results:
        total_score += result.final_score
        total_percentage += result.final_percentage
        highest_score = max(highest_score, result.final_score)
        lowest_score = min(lowest_score, result.final_score)

        grade = calculate_grade(result.final_percentage, grade_scale)
        grade_distribution[grade] = grade_distribution.get(grade, 0) + 1

        for component_score in result.component_scores:
            component = schema.component_by_id(component_score.component_id)
            name = component.name if component else 'Unknown'
            component_totals[name] = component_totals.get(name, 0.0) + component_score.calculated_score
            component_counts[name] = component_counts.get(name, 0) + 1

    count = len(results)
    return ClassSummary(
        total_students=count,
        average_score=total_score / count,
        average_percentage=total_percentage / count,
        highest_score=highest_score,
        lowest_score=0.0 if math.isinf(lowest_score) else lowest_score,
        grade_distribution=grade_distribution,
        component_averages={
            name: total / component_counts[name] for name, total in component_totals.items()
        },
    )


def generate_class_summary(schema: AssessmentSchema,
                           all_student_scores: Sequence[StudentRow],
                           grade_scale: Optional[GradeScale] = None,
                           calculator: Optional[AssessmentCalculator] = None) -> ClassSummary:
    """
    Score every student and summarise the cohort.

    Args:
        schema: The assessment schema
        all_student_scores: One entry per student, either StudentScores or a list of ComponentScore
        grade_scale: Custom grade scale for the distribution (default CBSE scale when None)
        calculator: Calculator to use (defaults to the shared instance)

    Returns:
        ClassSummary; all zeros with empty maps for an empty cohort
    """
    calculator = calculator or assessment_calculator
    results: List[AssessmentCalculationResult] = [
        calculator.calculate_assessment(schema, _component_scores(row))
        for row in all_student_scores
    ]
    summary = summarize_results(schema, results, grade_scale)
    LOG.info(
        "Summarized %d students for schema %s: average %.2f%%",
        summary.total_students, schema.id, summary.average_percentage
    )
    return summary

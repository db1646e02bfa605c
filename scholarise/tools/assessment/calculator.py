"""Weighted assessment scoring for a single student."""

import logging
import re
from typing import Dict, List, Optional, Sequence

from .formula import FormulaError, FormulaEvaluator, formula_evaluator
from .models import (
    AssessmentCalculationResult,
    AssessmentComponent,
    AssessmentSchema,
    CalculatedComponentScore,
    ComponentScore,
    FormulaContext,
)

LOG = logging.getLogger(__name__)

RESERVED_VARIABLES = frozenset({'raw', 'rawMax', 'totalMax', 'subScores'})


def slugify_name(name: str) -> str:
    """'Content Accuracy' -> 'content_accuracy'."""
    return re.sub(r'\s+', '_', name.strip().lower())


def build_formula_context(component: AssessmentComponent,
                          raw_score: float,
                          sub_scores: Optional[Dict[str, float]] = None) -> FormulaContext:
    """
    Variables a component formula can see.

    Args:
        component: The component being scored
        raw_score: The student's raw score for the component
        sub_scores: Scores keyed by sub-criterion id; missing entries count as 0

    Returns:
        Context with raw, rawMax, totalMax, subScores, sub1..subN and
        slugified sub-criterion names
    """
    sub_scores = sub_scores or {}
    context: FormulaContext = {
        'raw': raw_score,
        'rawMax': component.raw_max_score,
        'totalMax': sum(sc.max_score for sc in component.sub_criteria),
    }

    if component.sub_criteria:
        ordered = [sub_scores.get(sc.id, 0.0) for sc in component.sub_criteria]
    else:
        ordered = list(sub_scores.values())
    context['subScores'] = ordered

    for index, sub_criteria in enumerate(component.sub_criteria, start=1):
        score = ordered[index - 1]
        context[f'sub{index}'] = score
        slug = slugify_name(sub_criteria.name)
        if slug and slug not in RESERVED_VARIABLES:
            context[slug] = score

    return context


class AssessmentCalculator:
    """Score students against an assessment schema."""

    def __init__(self, evaluator: Optional[FormulaEvaluator] = None):
        self.evaluator = evaluator or formula_evaluator

    def calculate_assessment(self,
                             schema: AssessmentSchema,
                             component_scores: Sequence[ComponentScore]) -> AssessmentCalculationResult:
        """
        Calculate one student's result.

        Components are scored in schema order. A component without a score, or
        whose calculation fails, is reported in ``errors`` and left out of the
        weighted average; the remaining components are still scored.

        Args:
            schema: The assessment schema
            component_scores: The student's component scores

        Returns:
            AssessmentCalculationResult with component scores, final score and percentage
        """
        # First entry wins when a component was scored more than once.
        scores_by_component: Dict[str, ComponentScore] = {}
        for cs in component_scores:
            scores_by_component.setdefault(cs.component_id, cs)
        calculated: List[CalculatedComponentScore] = []
        errors: List[str] = []
        total_weighted_score = 0.0
        total_weight = 0.0

        for component in schema.components:
            component_score = scores_by_component.get(component.id)
            if component_score is None:
                LOG.debug("No score for component %s in schema %s", component.name, schema.id)
                errors.append(f"Missing score for component: {component.name}")
                continue

            try:
                calculated_score = self._calculate_component_score(component, component_score)
            except (FormulaError, ArithmeticError) as e:
                LOG.warning("Error calculating %s in schema %s: %s", component.name, schema.id, e)
                errors.append(f"Error calculating {component.name}: {e}")
                continue

            calculated.append(CalculatedComponentScore(
                component_id=component.id,
                raw_score=component_score.raw_score,
                reduced_score=component.reduced_score,
                calculated_score=calculated_score,
            ))
            total_weighted_score += calculated_score * component.weightage
            total_weight += component.weightage

        final_score = 0.0
        final_percentage = 0.0
        if total_weight > 0:
            final_score = total_weighted_score / total_weight
            final_percentage = (final_score / schema.total_marks) * 100

        return AssessmentCalculationResult(
            component_scores=calculated,
            final_score=final_score,
            final_percentage=final_percentage,
            errors=errors,
        )

    def _calculate_component_score(self,
                                   component: AssessmentComponent,
                                   component_score: ComponentScore) -> float:
        if component.formula:
            sub_scores: Dict[str, float] = {}
            for scs in component_score.sub_criteria_scores:
                sub_scores.setdefault(scs.sub_criteria_id, scs.score)
            context = build_formula_context(component, component_score.raw_score, sub_scores)
            return self.evaluator.evaluate(component.formula, context)

        # Not clamped: raw scores above the maximum carry through as bonus marks.
        return (component_score.raw_score / component.raw_max_score) * component.reduced_score


assessment_calculator = AssessmentCalculator()


def calculate_assessment(schema: AssessmentSchema,
                         component_scores: Sequence[ComponentScore]) -> AssessmentCalculationResult:
    return assessment_calculator.calculate_assessment(schema, component_scores)

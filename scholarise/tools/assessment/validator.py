"""Static checks run on an assessment schema before it is used for scoring."""

from typing import List, Optional

from .calculator import build_formula_context
from .formula import FormulaEvaluator, formula_evaluator
from .models import AssessmentSchema, ValidationResult


def validate_schema(schema: AssessmentSchema,
                    evaluator: Optional[FormulaEvaluator] = None) -> ValidationResult:
    """
    Collect every structural and formula problem in a schema.

    Formulas are dry-run as if the student had a perfect score: raw equals the
    raw maximum and every sub-criterion is at its maximum.
    """
    evaluator = evaluator or formula_evaluator
    errors: List[str] = []

    if not schema.components:
        errors.append("Assessment schema must have at least one component")
    if schema.total_marks <= 0:
        errors.append("Assessment schema must have positive total marks")

    for component in schema.components:
        if component.raw_max_score <= 0:
            errors.append(f'Component "{component.name}" must have a positive raw max score')

        if component.reduced_score <= 0:
            errors.append(f'Component "{component.name}" must have a positive reduced score')

        if component.formula:
            perfect_scores = {sc.id: sc.max_score for sc in component.sub_criteria}
            context = build_formula_context(component, component.raw_max_score, perfect_scores)
            test_result = evaluator.test_formula(component.formula, context)
            if not test_result.success:
                errors.append(f'Invalid formula in component "{component.name}": {test_result.error}')

        for sub_criteria in component.sub_criteria:
            if sub_criteria.max_score <= 0:
                errors.append(
                    f'Sub-criteria "{sub_criteria.name}" in component "{component.name}" '
                    f'must have a positive max score'
                )

    return ValidationResult(is_valid=not errors, errors=errors)

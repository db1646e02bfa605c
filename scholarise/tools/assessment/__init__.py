"""Assessment scoring engine: formulas, weighted scores, grades and class summaries."""

from .calculator import AssessmentCalculator, calculate_assessment
from .formula import FormulaError, FormulaEvaluator, apply_formula_template, evaluate, test_formula
from .grading import calculate_grade, calculate_grade_with_point, validate_grade_scale
from .models import (
    AssessmentCalculationResult,
    AssessmentComponent,
    AssessmentSchema,
    AssessmentSubCriteria,
    ClassSummary,
    ComponentScore,
    GradeRange,
    GradeScale,
    StudentScores,
    SubCriteriaScore,
)
from .summary import generate_class_summary
from .validator import validate_schema

__all__ = [
    'AssessmentCalculator',
    'calculate_assessment',
    'FormulaError',
    'FormulaEvaluator',
    'apply_formula_template',
    'evaluate',
    'test_formula',
    'calculate_grade',
    'calculate_grade_with_point',
    'validate_grade_scale',
    'AssessmentCalculationResult',
    'AssessmentComponent',
    'AssessmentSchema',
    'AssessmentSubCriteria',
    'ClassSummary',
    'ComponentScore',
    'GradeRange',
    'GradeScale',
    'StudentScores',
    'SubCriteriaScore',
    'generate_class_summary',
    'validate_schema',
]

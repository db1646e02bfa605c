"""Restricted evaluator for admin-authored scoring formulas.

Formulas are small arithmetic expressions such as ``(sum(subScores) / totalMax) * 5``.
They are screened textually first and then parsed with :mod:`ast`; the tree is
walked by an evaluator that understands numbers, context variables, the four
arithmetic operators, unary signs and a closed set of helper functions.
Nothing is ever compiled or executed as Python code.
"""

import ast
import logging
import math
import re
from typing import Any, Callable, Dict, List, Sequence

from .models import FormulaContext, FormulaTestResult

LOG = logging.getLogger(__name__)

ALLOWED_CHARACTERS = re.compile(r'^[a-zA-Z0-9+\-*/().,_\s]+$')
FORBIDDEN_PATTERNS = ('eval', 'function', 'constructor', 'prototype', '__', '[', ']', ';', '=')

FORMULA_TEMPLATES: Dict[str, str] = {
    'SIMPLE_REDUCTION': '(raw / rawMax) * {reduced}',
    'SUB_CRITERIA_SUM': '(sum(subScores) / totalMax) * {reduced}',
    'SUB_CRITERIA_AVERAGE': 'avg(subScores)',
    'BEST_OF_SUB_CRITERIA': 'max(subScores)',
    'PASS_RAW': 'raw',
    'ROUNDED_REDUCTION': 'round((raw / rawMax) * {reduced}, {decimals})',
}


class FormulaError(ValueError):
    """A formula was rejected or could not be evaluated to a number."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _values(args: Sequence[Any]) -> List[float]:
    """Numbers an aggregate helper should work on; empty when the input is unusable."""
    if len(args) == 1 and isinstance(args[0], list):
        items = args[0]
    else:
        items = list(args)
    if not all(_is_number(item) for item in items):
        return []
    return [float(item) for item in items]


def _sum(*args: Any) -> float:
    return float(sum(_values(args)))


def _avg(*args: Any) -> float:
    values = _values(args)
    return sum(values) / len(values) if values else 0.0


def _max(*args: Any) -> float:
    values = _values(args)
    return max(values) if values else 0.0


def _min(*args: Any) -> float:
    values = _values(args)
    return min(values) if values else 0.0


def _round(number: Any, decimals: Any = 2) -> float:
    # Half-up rounding, the way report cards are rounded by hand.
    if not _is_number(number) or not _is_number(decimals):
        raise FormulaError("round() expects numeric arguments")
    if not -15 <= decimals <= 15:
        raise FormulaError("round() decimals must be between -15 and 15")
    factor = 10 ** int(decimals)
    return math.floor(number * factor + 0.5) / factor


def _ceil(number: Any) -> float:
    if not _is_number(number):
        raise FormulaError("ceil() expects a number")
    return float(math.ceil(number))


def _floor(number: Any) -> float:
    if not _is_number(number):
        raise FormulaError("floor() expects a number")
    return float(math.floor(number))


FUNCTIONS: Dict[str, Callable[..., float]] = {
    'sum': _sum,
    'avg': _avg,
    'max': _max,
    'min': _min,
    'round': _round,
    'ceil': _ceil,
    'floor': _floor,
}

FUNCTION_DESCRIPTIONS: Dict[str, str] = {
    'raw': 'Raw score entered for the component',
    'rawMax': 'Maximum raw score of the component',
    'totalMax': 'Sum of the sub-criteria maximum scores',
    'subScores': 'List of sub-criteria scores, in sub-criteria order',
    'sub1, sub2, ...': 'Individual sub-criteria scores by position',
    'sum(values)': 'Sum of a list of numbers',
    'avg(values)': 'Average of a list of numbers',
    'max(values)': 'Largest value of a list of numbers',
    'min(values)': 'Smallest value of a list of numbers',
    'round(number, decimals)': 'Round to the given decimals (default 2)',
    'ceil(number)': 'Round up to the nearest integer',
    'floor(number)': 'Round down to the nearest integer',
}


class _ExpressionEvaluator(ast.NodeVisitor):
    """Walks a parsed formula; any node without a visit_ method is rejected."""

    def __init__(self, context: FormulaContext):
        self.context = context

    def generic_visit(self, node: ast.AST):
        raise FormulaError(f"Unsupported syntax: {type(node).__name__}")

    def visit_Expression(self, node: ast.Expression):
        return self.visit(node.body)

    def visit_Constant(self, node: ast.Constant):
        if not _is_number(node.value):
            raise FormulaError(f"Unsupported constant: {node.value!r}")
        return float(node.value)

    def visit_Name(self, node: ast.Name):
        if node.id not in self.context:
            raise FormulaError(f"Unknown variable: {node.id}")
        value = self.context[node.id]
        if isinstance(value, list):
            return list(value)
        return value

    def visit_UnaryOp(self, node: ast.UnaryOp):
        operand = self._number(self.visit(node.operand))
        if isinstance(node.op, ast.USub):
            return -operand
        if isinstance(node.op, ast.UAdd):
            return operand
        return self.generic_visit(node.op)

    def visit_BinOp(self, node: ast.BinOp):
        left = self._number(self.visit(node.left))
        right = self._number(self.visit(node.right))
        if isinstance(node.op, ast.Add):
            return left + right
        if isinstance(node.op, ast.Sub):
            return left - right
        if isinstance(node.op, ast.Mult):
            return left * right
        if isinstance(node.op, ast.Div):
            if right == 0:
                raise FormulaError("Division by zero")
            return left / right
        return self.generic_visit(node.op)

    def visit_Call(self, node: ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
            name = getattr(node.func, 'id', type(node.func).__name__)
            raise FormulaError(f"Unknown function: {name}")
        if node.keywords:
            raise FormulaError(f"Keyword arguments are not supported in {node.func.id}()")
        args = [self.visit(arg) for arg in node.args]
        try:
            return FUNCTIONS[node.func.id](*args)
        except TypeError as e:
            raise FormulaError(f"Invalid arguments for {node.func.id}(): {e}") from e

    @staticmethod
    def _number(value: Any) -> float:
        if not _is_number(value):
            raise FormulaError("Arithmetic is only allowed on numbers")
        return value


class FormulaEvaluator:
    """Evaluate scoring formulas against a named-variable context."""

    def check_syntax(self, formula: str) -> None:
        """Reject formulas that fail the character allowlist or contain forbidden patterns."""
        if not formula or not formula.strip():
            raise FormulaError("Formula is empty")
        if not ALLOWED_CHARACTERS.match(formula):
            raise FormulaError("Formula contains invalid characters")
        lowered = formula.lower()
        for pattern in FORBIDDEN_PATTERNS:
            if pattern in lowered:
                raise FormulaError(f"Formula contains forbidden pattern: {pattern}")

    def evaluate(self, formula: str, context: FormulaContext) -> float:
        """
        Evaluate a formula.

        Args:
            formula: Expression text, e.g. ``round(raw / rawMax * 100, 1)``
            context: Variables visible to the formula

        Returns:
            The finite numeric result

        Raises:
            FormulaError: If the formula is unsafe, malformed, or does not produce a number
        """
        try:
            self.check_syntax(formula)
            tree = ast.parse(" ".join(formula.split()), mode='eval')
            value = _ExpressionEvaluator(context).visit(tree)
        except FormulaError as e:
            LOG.debug("Rejected formula %r: %s", formula, e)
            raise
        except (SyntaxError, ValueError, ArithmeticError, RecursionError) as e:
            LOG.debug("Could not evaluate formula %r: %s", formula, e)
            raise FormulaError(f"Formula evaluation failed: {e}") from e

        if not _is_number(value) or not math.isfinite(value):
            raise FormulaError("Formula did not evaluate to a valid number")
        return float(value)

    def test_formula(self, formula: str, context: FormulaContext) -> FormulaTestResult:
        """Dry-run a formula, reporting failure as a value instead of raising."""
        try:
            return FormulaTestResult(success=True, result=self.evaluate(formula, context))
        except FormulaError as e:
            return FormulaTestResult(success=False, error=str(e))

    def get_available_functions(self) -> Dict[str, str]:
        """Variables and helpers formulas may use, with short descriptions."""
        return dict(FUNCTION_DESCRIPTIONS)


def apply_formula_template(name: str, **params: Any) -> str:
    """Fill the placeholders of one of FORMULA_TEMPLATES."""
    template = FORMULA_TEMPLATES[name]
    try:
        return template.format(**params)
    except KeyError as e:
        raise ValueError(f"Missing parameter {e} for formula template {name}") from e


formula_evaluator = FormulaEvaluator()


def evaluate(formula: str, context: FormulaContext) -> float:
    return formula_evaluator.evaluate(formula, context)


def test_formula(formula: str, context: FormulaContext) -> FormulaTestResult:
    return formula_evaluator.test_formula(formula, context)


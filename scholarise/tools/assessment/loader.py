"""Load schemas, student scores and grade scales from YAML or JSON files."""

import logging
from pathlib import Path
from typing import Any, List

import yaml

from .models import AssessmentSchema, GradeScale, StudentScores

LOG = logging.getLogger(__name__)


def _read_document(path: Path) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Could not read {path}: {e}") from e


def load_schema(path: Path) -> AssessmentSchema:
    """Read an assessment schema document."""
    data = _read_document(path)
    if not isinstance(data, dict):
        raise ValueError(f"Schema file {path} must contain a mapping")
    schema = AssessmentSchema.model_validate(data)
    LOG.info("Loaded schema %s with %d components from %s", schema.id, len(schema.components), path)
    return schema


def load_student_scores(path: Path) -> List[StudentScores]:
    """
    Read student score rows.

    The document is either a list of rows or a mapping with a ``students`` list.
    Each row has an optional ``student_id`` and a ``component_scores`` list.
    """
    data = _read_document(path)
    if isinstance(data, dict):
        data = data.get('students')
    if not isinstance(data, list):
        raise ValueError(f"Scores file {path} must contain a list of students")
    rows = [StudentScores.model_validate(row) for row in data]
    LOG.info("Loaded scores for %d students from %s", len(rows), path)
    return rows


def load_grade_scale(path: Path) -> GradeScale:
    """Read a custom grade scale document."""
    data = _read_document(path)
    if isinstance(data, list):
        data = {'grade_ranges': data}
    if not isinstance(data, dict):
        raise ValueError(f"Grade scale file {path} must contain a mapping or a list of ranges")
    return GradeScale.model_validate(data)

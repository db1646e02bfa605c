"""Pydantic models for assessment schemas, scores and results."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Variables handed to a custom formula: numbers plus the `subScores` list.
FormulaContext = Dict[str, Union[float, List[float]]]


class _Record(BaseModel):
    """Accepts both snake_case field names and the camelCase keys used by the web app."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssessmentSubCriteria(_Record):
    """Finer-grained breakdown inside a component (e.g. 'Neatness')."""
    id: str = Field(description="Sub-criterion identifier")
    name: str = Field(description="Display name; also exposed to formulas as a slug")
    max_score: float = Field(description="Maximum score for this sub-criterion")


class AssessmentComponent(_Record):
    """One scoring unit of a schema (e.g. 'Unit Test 1')."""
    id: str = Field(description="Component identifier")
    name: str = Field(description="Display name")
    weightage: float = Field(description="Relative weight in the weighted average")
    raw_max_score: float = Field(description="Maximum raw marks a student can enter")
    reduced_score: float = Field(description="Points contributed at 100% raw performance")
    formula: Optional[str] = Field(default=None, description="Optional custom scoring formula")
    sub_criteria: List[AssessmentSubCriteria] = Field(default_factory=list)

    @field_validator('formula')
    @classmethod
    def _blank_formula_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class AssessmentSchema(_Record):
    """A gradable assessment made of weighted components."""
    id: str = Field(description="Schema identifier")
    name: Optional[str] = Field(default=None, description="Human readable schema name")
    total_marks: float = Field(description="Ceiling used to normalise the final percentage")
    components: List[AssessmentComponent] = Field(default_factory=list)

    def component_by_id(self, component_id: str) -> Optional[AssessmentComponent]:
        for component in self.components:
            if component.id == component_id:
                return component
        return None


class SubCriteriaScore(_Record):
    sub_criteria_id: str
    score: float = 0.0

    @field_validator('score', mode='before')
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class ComponentScore(_Record):
    """Marks entered for one student on one component."""
    component_id: str
    raw_score: float = 0.0
    sub_criteria_scores: List[SubCriteriaScore] = Field(default_factory=list)

    @field_validator('raw_score', mode='before')
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator('sub_criteria_scores', mode='before')
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class StudentScores(_Record):
    """All component scores of a single student for one schema."""
    student_id: Optional[str] = None
    component_scores: List[ComponentScore] = Field(default_factory=list)

    @field_validator('component_scores', mode='before')
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class CalculatedComponentScore(_Record):
    component_id: str
    raw_score: float
    reduced_score: float
    calculated_score: float


class AssessmentCalculationResult(_Record):
    """Outcome of scoring one student against a schema."""
    component_scores: List[CalculatedComponentScore] = Field(default_factory=list)
    final_score: float = 0.0
    final_percentage: float = 0.0
    errors: List[str] = Field(
        default_factory=list,
        description="Non-fatal per-component failures, in schema order"
    )

    def to_yaml_dict(self) -> dict:
        """Convert to dictionary suitable for YAML serialization."""
        result = {
            'final_score': self.final_score,
            'final_percentage': self.final_percentage,
            'components': [cs.model_dump() for cs in self.component_scores],
        }
        if self.errors:
            result['errors'] = list(self.errors)
        return result


class GradeRange(_Record):
    min_percentage: float
    max_percentage: float
    grade: str
    grade_point: Optional[float] = None
    description: Optional[str] = None


class GradeScale(_Record):
    """Institution-supplied grade ranges, matched in declaration order."""
    name: Optional[str] = None
    grade_ranges: List[GradeRange] = Field(default_factory=list)


class GradeResult(_Record):
    grade: str
    grade_point: Optional[float] = None
    description: Optional[str] = None


class ClassSummary(_Record):
    """Cohort statistics for one schema."""
    total_students: int = 0
    average_score: float = 0.0
    average_percentage: float = 0.0
    highest_score: float = 0.0
    lowest_score: float = 0.0
    grade_distribution: Dict[str, int] = Field(default_factory=dict)
    component_averages: Dict[str, float] = Field(
        default_factory=dict,
        description="Average calculated score keyed by component name"
    )

    def to_yaml_dict(self) -> dict:
        """Convert to dictionary suitable for YAML serialization."""
        return {
            'total_students': self.total_students,
            'average_score': self.average_score,
            'average_percentage': self.average_percentage,
            'highest_score': self.highest_score,
            'lowest_score': self.lowest_score,
            'grade_distribution': dict(self.grade_distribution),
            'component_averages': dict(self.component_averages),
        }


class ValidationResult(_Record):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class FormulaTestResult(_Record):
    """Dry-run outcome of a formula; never carries an exception."""
    success: bool
    result: Optional[float] = None
    error: Optional[str] = None

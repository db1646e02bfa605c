#!/usr/bin/env python3
"""CLI for scoring a class against an assessment schema."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scholarise.libs.config_loader import ConfigType, get_config, load_configs, load_default_configs
from .calculator import AssessmentCalculator
from .grading import calculate_grade_with_point, validate_grade_scale
from .loader import load_grade_scale, load_schema, load_student_scores
from .models import GradeScale
from .summary import summarize_results
from .validator import validate_schema

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)

console = Console()


def _load_config(config_paths) -> ConfigType:
    try:
        if config_paths:
            return load_configs(*[str(p) for p in config_paths])
        return load_default_configs()
    except ValueError as e:
        LOG.warning("No configuration loaded (%s); using built-in defaults", e)
        return {}


def _resolve_grade_scale(grade_scale_path: Optional[Path], config: ConfigType) -> Optional[GradeScale]:
    if grade_scale_path:
        return load_grade_scale(grade_scale_path)
    configured = get_config("assessment.grade_scale", config, default=None)
    if configured:
        return GradeScale.model_validate(configured)
    return None


@click.command()
@click.option(
    '--schema',
    '-s',
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help='Path to the assessment schema (YAML or JSON)'
)
@click.option(
    '--scores',
    '-c',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Path to the student scores file (YAML or JSON)'
)
@click.option(
    '--grade-scale',
    '-g',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Custom grade scale (default: assessment.grade_scale from config, else CBSE scale)'
)
@click.option(
    '--output',
    '-o',
    type=click.Path(path_type=Path),
    default=None,
    help='Write per-student results and the class summary to this YAML file'
)
@click.option(
    '--config',
    'config_paths',
    type=click.Path(exists=True, path_type=Path),
    multiple=True,
    help='Configuration file(s) to use instead of config/default.yaml'
)
@click.option(
    '--validate-only',
    is_flag=True,
    help='Only validate the schema and grade scale'
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def main(schema, scores, grade_scale, output, config_paths, validate_only, verbose):
    """
    Score every student in a class against an assessment schema.

    Example:
        assessment-score -s term1_english.yaml -c term1_english_scores.yaml -o results.yaml
    """
    config = _load_config(config_paths)
    logging.getLogger().setLevel(get_config("logging.level", config, default="INFO"))
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    decimals = int(get_config("assessment.output.decimals", config, default=2))

    try:
        assessment_schema = load_schema(schema)
        scale = _resolve_grade_scale(grade_scale, config)
    except (ValueError, ValidationError) as e:
        LOG.error(f"Failed to load schema or grade scale: {e}")
        sys.exit(1)

    validation = validate_schema(assessment_schema)
    if not validation.is_valid:
        console.print(f"\n[bold red]Schema {assessment_schema.id} is invalid:[/bold red]")
        for error in validation.errors:
            console.print(f"  - {escape(error)}")
        sys.exit(1)

    if scale is not None:
        scale_validation = validate_grade_scale(scale)
        for error in scale_validation.errors:
            console.print(f"[yellow]Grade scale warning:[/yellow] {escape(error)}")

    console.print(f"[green]Schema {assessment_schema.id} is valid[/green] "
                  f"({len(assessment_schema.components)} components)")
    if validate_only:
        return

    if scores is None:
        LOG.error("--scores is required unless --validate-only is given")
        sys.exit(1)

    try:
        students = load_student_scores(scores)
    except (ValueError, ValidationError) as e:
        LOG.error(f"Failed to load scores: {e}")
        sys.exit(1)

    calculator = AssessmentCalculator()
    results = [calculator.calculate_assessment(assessment_schema, s.component_scores) for s in students]
    summary = summarize_results(assessment_schema, results, scale)

    table = Table(title=f"Results for {assessment_schema.name or assessment_schema.id}")
    table.add_column("Student", style="cyan")
    table.add_column("Final Score", justify="right")
    table.add_column("Percentage", justify="right")
    table.add_column("Grade", style="yellow")
    table.add_column("Errors", justify="right")

    report_rows = []
    for index, (student, result) in enumerate(zip(students, results), start=1):
        student_id = student.student_id or f"#{index}"
        grade = calculate_grade_with_point(result.final_percentage, scale)
        table.add_row(
            escape(student_id),
            f"{result.final_score:.{decimals}f}",
            f"{result.final_percentage:.{decimals}f}%",
            grade.grade,
            str(len(result.errors)),
        )
        row = {'student_id': student_id, 'grade': grade.grade, **result.to_yaml_dict()}
        if grade.grade_point is not None:
            row['grade_point'] = grade.grade_point
        report_rows.append(row)

    console.print("\n")
    console.print(table)

    summary_table = Table(title="Class Summary")
    summary_table.add_column("Statistic", style="cyan")
    summary_table.add_column("Value", justify="right")
    summary_table.add_row("Students", str(summary.total_students))
    summary_table.add_row("Average score", f"{summary.average_score:.{decimals}f}")
    summary_table.add_row("Average percentage", f"{summary.average_percentage:.{decimals}f}%")
    summary_table.add_row("Highest score", f"{summary.highest_score:.{decimals}f}")
    summary_table.add_row("Lowest score", f"{summary.lowest_score:.{decimals}f}")
    for grade_label, count in sorted(summary.grade_distribution.items()):
        summary_table.add_row(f"Grade {grade_label}", str(count))
    for name, average in summary.component_averages.items():
        summary_table.add_row(f"Avg {escape(name)}", f"{average:.{decimals}f}")
    console.print(summary_table)

    failed = [row for row in report_rows if row.get('errors')]
    if failed:
        console.print("\n[yellow]Calculation errors:[/yellow]")
        for row in failed:
            for error in row['errors']:
                console.print(f"  {escape(row['student_id'])}: {escape(error)}")

    if output:
        report = {
            'schema_id': assessment_schema.id,
            'students': report_rows,
            'summary': summary.to_yaml_dict(),
        }
        with open(output, 'w', encoding='utf-8') as f:
            yaml.safe_dump(report, f, sort_keys=False, allow_unicode=True)
        console.print(f"\n[green]✓ Results saved to:[/green] {output}")


if __name__ == '__main__':
    main()

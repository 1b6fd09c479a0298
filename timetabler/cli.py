"""
Command-line interface for the timetabler.

Usage:
    python -m timetabler generate input.json -o output.json --timeout 30
    python -m timetabler validate input.json
    python -m timetabler audit schedule.json --existing accepted.json
    python -m timetabler view output.json --teacher T001
    python -m timetabler metrics output.json --format report
    python -m timetabler sample input.json --size medium --seed 42
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from .clashes import ClashDetector, ConflictReport, Severity
from .data.generator import (
    generate_large_institution,
    generate_medium_institution,
    generate_small_institution,
    get_generation_stats,
    save_generated_input,
)
from .data.loader import parse_schedule_entries, parse_timetable_input, validate_input
from .data.models import WEEKDAYS, AuditPolicy, day_name
from .engine import generate_timetable
from .errors import InputValidationError
from .output import GenerationResult, QualityCalculator

# Create Typer app
app = typer.Typer(
    name="timetabler",
    help="Course timetable generation and clash auditing.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()

SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "dim",
}

SAMPLE_SIZES = {
    "small": generate_small_institution,
    "medium": generate_medium_institution,
    "large": generate_large_institution,
}


# =============================================================================
# Helper Functions
# =============================================================================

def configure_logging(verbose: bool) -> None:
    """Route library logging through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def load_json_file(path: Path, what: str) -> Any:
    """Read a JSON file or exit with a readable error."""
    if not path.exists():
        console.print(f"[red]Error:[/red] {what} file not found: {path}")
        raise typer.Exit(code=1)

    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}:[/red] {e}")
        raise typer.Exit(code=1)


def load_output(output_path: Path) -> GenerationResult:
    """Load a generation output file."""
    data = load_json_file(output_path, "Output")
    try:
        return GenerationResult.model_validate(data)
    except ValueError as e:
        console.print(f"[red]Error loading output:[/red] {e}")
        raise typer.Exit(code=1)


def print_summary(result: GenerationResult) -> None:
    """Print generation summary to console."""
    status = result.status or "failed"
    status_color = "green" if status == "complete" else "yellow" if result.success else "red"

    console.print(Panel(
        Text(status.upper(), style=f"bold {status_color}"),
        title="Generation Status",
        subtitle=f"{result.algorithm} in {result.execution_time_ms} ms",
    ))

    table = Table(title="Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Sessions Placed", str(len(result.schedule)))
    table.add_row("Unscheduled Sessions", str(len(result.unscheduled)))
    if result.metadata:
        table.add_row("Sessions Required", str(result.metadata.sessions_required))
        table.add_row("Time Slots", str(result.metadata.total_time_slots))
    if result.views:
        table.add_row("Teachers Used", str(len(result.views.by_teacher)))
        table.add_row("Rooms Used", str(len(result.views.by_room)))
    if result.conflicts:
        table.add_row("Conflicts", str(result.conflicts.summary.total))
    if result.quality:
        table.add_row(
            "Quality Score",
            f"{result.quality.quality_score}/100 ({result.quality.grade})",
        )

    console.print(table)


def print_unscheduled(result: GenerationResult) -> None:
    if not result.unscheduled:
        return
    table = Table(title="Unscheduled Sessions", show_header=True, header_style="bold yellow")
    table.add_column("Course")
    table.add_column("Session", justify="right")
    table.add_column("Reason")
    for item in result.unscheduled:
        table.add_row(item.course_code, str(item.session_number), item.reason)
    console.print(table)


def print_conflict_report(report: ConflictReport) -> None:
    """Print a clash report as tables."""
    summary = report.summary
    verdict = (
        "[green]Can proceed[/green]" if report.can_proceed
        else "[bold red]Blocked by critical conflicts[/bold red]"
    )
    console.print(Panel(
        f"{summary.total} conflicts in {summary.total_schedules} entries "
        f"({summary.conflict_rate:.2f}% affected)\n{verdict}",
        title="Clash Report",
    ))

    counts = Table(show_header=True, header_style="bold cyan")
    for severity in Severity:
        counts.add_column(severity.value.capitalize(), justify="right")
    counts.add_row(*(str(getattr(summary, s.value)) for s in Severity))
    console.print(counts)

    if report.conflicts:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Severity")
        table.add_column("Type")
        table.add_column("Entries")
        table.add_column("Description")
        for conflict in report.conflicts:
            style = SEVERITY_COLORS[conflict.severity]
            table.add_row(
                f"[{style}]{conflict.severity.value}[/{style}]",
                conflict.type.value,
                ", ".join(str(i) for i in conflict.affected_entries),
                conflict.description,
            )
        console.print(table)

    if report.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for rec in report.recommendations:
            console.print(f"  [{SEVERITY_COLORS[rec.priority]}]{rec.priority.value}[/] {rec.action}: {rec.details}")


# =============================================================================
# Commands
# =============================================================================

@app.command()
def generate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to input JSON file with courses, teachers and rooms",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write output JSON file",
    ),
    algorithm: Optional[str] = typer.Option(
        None,
        "--algorithm", "-a",
        help="greedy or constraint_satisfaction (overrides the input config)",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout", "-t",
        help="Maximum search time in seconds",
        min=0.1,
        max=3600,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """
    Generate a timetable.

    Loads the input data, runs the scheduler, audits the result and writes it.

    Example:
        python -m timetabler generate input.json -o output.json --timeout 30
    """
    configure_logging(verbose)
    console.print(f"\n[bold]Loading input from:[/bold] {input_file}")
    raw = load_json_file(input_file, "Input")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Scheduling sessions...", total=None)
        result = generate_timetable(raw, algorithm=algorithm, time_limit_seconds=timeout)

    if not result.success:
        console.print("\n[red]Generation failed:[/red]")
        for error in result.errors:
            console.print(f"  - {error}")
        raise typer.Exit(code=1)

    console.print()
    print_summary(result)
    print_unscheduled(result)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            f.write(result.to_json())
        console.print(f"\n[green]Timetable saved to:[/green] {output}")

    console.print()


@app.command()
def validate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to input JSON file to validate",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show detailed validation results",
    ),
) -> None:
    """
    Validate input data.

    Checks for:
    - Valid JSON structure
    - Schema compliance
    - Duplicate identifiers and empty collections
    - Logical consistency (teacher load, slot capacity, labs)

    Example:
        python -m timetabler validate input.json
    """
    configure_logging(verbose)
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    # Step 1: JSON parsing
    console.print("[cyan]1. Checking JSON syntax...[/cyan]")
    raw = load_json_file(input_file, "Input")
    console.print("   [green]JSON syntax is valid[/green]")

    # Step 2: Schema validation
    console.print("[cyan]2. Validating against schema...[/cyan]")
    try:
        input_data = parse_timetable_input(raw)
    except InputValidationError as e:
        console.print("   [red]Schema validation failed:[/red]")
        for error in e.errors:
            console.print(f"   - {error}")
        raise typer.Exit(code=1)
    console.print("   [green]Schema validation passed[/green]")

    # Step 3: Cross-entity checks
    console.print("[cyan]3. Checking identifiers and collections...[/cyan]")
    errors = validate_input(input_data)
    if errors:
        console.print("   [red]Input cannot be scheduled:[/red]")
        for error in errors:
            console.print(f"   - {error}")
        raise typer.Exit(code=1)
    console.print("   [green]No problems found[/green]")

    # Step 4: Logical consistency
    console.print("[cyan]4. Checking logical consistency...[/cyan]")
    warnings = []
    slots = input_data.config.time_slots()
    slot_hours = input_data.config.time_slot_duration / 60

    # Department teaching demand against its teachers' capacity
    demand: dict[str, float] = defaultdict(float)
    for course in input_data.courses:
        demand[course.department] += course.sessions_needed * slot_hours
    for department, hours in demand.items():
        capacity = sum(t.max_hours for t in input_data.teachers if t.department == department)
        if hours > capacity:
            warnings.append(
                f"Department '{department}' needs {hours:g}h per week "
                f"but its teachers allow {capacity}h"
            )

    total_sessions = input_data.total_sessions_needed
    total_slots = len(slots) * len(input_data.rooms)
    if total_sessions > total_slots:
        warnings.append(
            f"Total sessions ({total_sessions}) exceeds available room slots ({total_slots})"
        )

    lab_courses = [c for c in input_data.courses if c.is_lab_course]
    if lab_courses and not input_data.get_labs():
        warnings.append(
            f"{len(lab_courses)} lab course(s) but no lab rooms: "
            f"{', '.join(c.course_code for c in lab_courses)}"
        )

    if warnings:
        console.print("   [yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"   - {w}")
    else:
        console.print("   [green]No logical consistency issues[/green]")

    # Summary
    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")

    for key, value in input_data.summary().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)

    if verbose:
        console.print("\n[bold]Detailed breakdown:[/bold]")
        console.print(f"  Working days: {', '.join(input_data.config.working_days)}")
        console.print(
            f"  Working hours: {input_data.config.working_hours.start}-"
            f"{input_data.config.working_hours.end}"
        )
        console.print(f"  Slots per day: {len(slots) // len(input_data.config.working_days)}")

    console.print("\n[green]Validation complete.[/green]\n")


@app.command()
def audit(
    schedule_file: Path = typer.Argument(
        ...,
        help="Schedule JSON: a list of entries or a generation output",
    ),
    existing: Optional[Path] = typer.Option(
        None,
        "--existing", "-e",
        help="Already accepted schedule to check against",
    ),
    allow_weekends: bool = typer.Option(
        False,
        "--allow-weekends",
        help="Do not flag weekend sessions",
    ),
    min_enrollment: Optional[int] = typer.Option(
        None,
        "--min-enrollment",
        help="Default minimum enrollment per session",
        min=0,
    ),
    format: str = typer.Option(
        "table",
        "--format", "-f",
        help="Output format: table or json",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """
    Audit a schedule for clashes.

    Exits with status 1 when critical conflicts block the schedule.

    Examples:
        python -m timetabler audit schedule.json
        python -m timetabler audit new.json --existing accepted.json --format json
    """
    configure_logging(verbose)

    def read_entries(path: Path):
        raw = load_json_file(path, "Schedule")
        try:
            return parse_schedule_entries(raw)
        except InputValidationError as e:
            console.print(f"[red]Invalid schedule {path}:[/red]")
            for error in e.errors:
                console.print(f"  - {error}")
            raise typer.Exit(code=1)

    entries = read_entries(schedule_file)
    existing_entries = read_entries(existing) if existing else []

    policy = AuditPolicy(allow_weekends=allow_weekends)
    if min_enrollment is not None:
        policy = policy.model_copy(update={"min_enrollment": min_enrollment})

    report = ClashDetector(policy).detect_clashes(entries, existing_entries)

    if format == "json":
        console.print_json(report.to_json())
    else:
        print_conflict_report(report)

    if not report.can_proceed:
        raise typer.Exit(code=1)


@app.command()
def view(
    output_file: Path = typer.Argument(
        ...,
        help="Path to output JSON file",
    ),
    teacher: Optional[str] = typer.Option(
        None,
        "--teacher", "-T",
        help="Show schedule for specific teacher ID",
    ),
    room: Optional[str] = typer.Option(
        None,
        "--room", "-R",
        help="Show schedule for specific room ID",
    ),
    day: Optional[str] = typer.Option(
        None,
        "--day", "-D",
        help="Show schedule for specific day (monday, tuesday, etc.)",
    ),
) -> None:
    """
    Display specific views of a generated timetable.

    Examples:
        python -m timetabler view output.json --teacher T001
        python -m timetabler view output.json --room LAB1
        python -m timetabler view output.json --day monday
    """
    output = load_output(output_file)
    if output.views is None:
        console.print("[red]Error:[/red] Output has no timetable views")
        raise typer.Exit(code=1)

    if teacher:
        _show_entity_view(output.views.by_teacher, teacher, "Teacher")
    elif room:
        _show_entity_view(output.views.by_room, room, "Room")
    elif day:
        _show_day_view(output, day)
    else:
        _show_overview(output)


def _show_entity_view(schedules: dict, entity_id: str, kind: str) -> None:
    """Show schedule for a specific teacher or room."""
    schedule = schedules.get(entity_id)
    if not schedule:
        console.print(f"[red]Error:[/red] {kind} '{entity_id}' not found")
        console.print(f"Available: {', '.join(schedules.keys())}")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold]{schedule.name}[/bold] ({schedule.id})",
        title=f"{kind} Schedule",
    ))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Day", style="cyan")
    table.add_column("Time")
    table.add_column("Course")
    table.add_column("Teacher" if kind == "Room" else "Room")

    for day, entries in schedule.by_day.items():
        for entry in entries:
            other = (entry.teacher_name or entry.teacher_id) if kind == "Room" else entry.room_number
            table.add_row(
                day_name(day),
                f"{entry.start_time}-{entry.end_time}",
                entry.course_code or "",
                other or "",
            )

    console.print(table)


def _show_day_view(output: GenerationResult, day: str) -> None:
    """Show schedule for a specific day."""
    day_lower = day.lower()
    if day_lower not in WEEKDAYS:
        console.print(f"[red]Error:[/red] Invalid day '{day}'")
        console.print(f"Valid days: {', '.join(WEEKDAYS)}")
        raise typer.Exit(code=1)

    day_schedule = output.views.by_day.get(day_lower)
    if not day_schedule:
        console.print(f"[yellow]No sessions scheduled for {day_name(day_lower)}[/yellow]")
        return

    console.print(Panel(f"[bold]{day_schedule.day_name}[/bold]", title="Daily Schedule"))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Time")
    table.add_column("Course")
    table.add_column("Teacher")
    table.add_column("Room")

    for entry in day_schedule.entries:
        table.add_row(
            f"{entry.start_time}-{entry.end_time}",
            entry.course_code or "",
            entry.teacher_name or entry.teacher_id or "",
            entry.room_number or entry.room_id or "",
        )

    console.print(table)


def _show_overview(output: GenerationResult) -> None:
    """Show overview of the timetable as a week grid of session counts."""
    print_summary(output)

    console.print("\n[bold]Weekly Overview:[/bold]")

    times = sorted({e.start_time for e in output.schedule})
    days = list(output.views.by_day.keys())

    if not times or not days:
        console.print("[yellow]No sessions scheduled[/yellow]")
        return

    table = Table(title="Week Grid", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim")
    for day in days:
        table.add_column(day_name(day)[:3], justify="center")

    for time in times:
        row = [time]
        for day in days:
            count = sum(1 for e in output.views.by_day[day].entries if e.start_time == time)
            row.append(str(count) if count else "-")
        table.add_row(*row)

    console.print(table)


@app.command()
def metrics(
    output_file: Path = typer.Argument(
        ...,
        help="Path to output JSON file",
    ),
    format: str = typer.Option(
        "table",
        "--format", "-f",
        help="Output format: table, report, or json",
    ),
) -> None:
    """
    Display quality metrics of a generated timetable.

    Examples:
        python -m timetabler metrics output.json
        python -m timetabler metrics output.json --format report
    """
    output = load_output(output_file)
    if output.quality is None:
        console.print("[red]Error:[/red] Output has no quality metrics")
        raise typer.Exit(code=1)

    quality = output.quality
    statistics = output.statistics

    if format == "json":
        data = {"quality": quality.model_dump(by_alias=True, mode="json")}
        if statistics is not None:
            data["statistics"] = statistics.model_dump(by_alias=True, mode="json")
        console.print_json(json.dumps(data))
        return

    if format == "report":
        console.print(QualityCalculator().generate_report(quality, statistics))
        return

    console.print(Panel("[bold]Timetable Quality Metrics[/bold]"))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Value")

    score_color = "green" if quality.quality_score >= 80 else "yellow" if quality.quality_score >= 60 else "red"
    table.add_row(
        "Quality Score",
        f"[{score_color}]{quality.quality_score}/100 ({quality.grade})[/{score_color}]",
    )
    table.add_row("Scheduling Rate", f"{quality.scheduling_rate:.1f}%")
    table.add_row("Courses Scheduled", f"{quality.scheduled_courses}/{quality.total_courses}")
    table.add_row("Penalised Conflicts", str(quality.conflict_count))
    if statistics is not None:
        table.add_row("Teacher Utilization", f"{statistics.utilization.teachers:.1f}%")
        table.add_row("Room Utilization", f"{statistics.utilization.rooms:.1f}%")
        table.add_row("Time Slot Utilization", f"{statistics.utilization.time_slots:.1f}%")

    console.print(table)

    if quality.improvement_areas:
        console.print("\n[bold yellow]Areas for Improvement:[/bold yellow]")
        for area in quality.improvement_areas:
            console.print(f"  [yellow]*[/yellow] {area}")


@app.command()
def sample(
    output: Path = typer.Argument(
        ...,
        help="Path to write the generated input JSON",
    ),
    size: str = typer.Option(
        "small",
        "--size", "-s",
        help="Institution size: small, medium, or large",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed for reproducible data",
    ),
) -> None:
    """
    Generate sample input data.

    Example:
        python -m timetabler sample input.json --size medium --seed 42
    """
    factory = SAMPLE_SIZES.get(size)
    if factory is None:
        console.print(f"[red]Error:[/red] Unknown size '{size}'")
        console.print(f"Valid sizes: {', '.join(SAMPLE_SIZES)}")
        raise typer.Exit(code=1)

    data = factory(seed=seed)
    save_generated_input(data, output)

    table = Table(title="Generated Input", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    for key, value in get_generation_stats(data).items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)
    console.print(f"\n[green]Sample input saved to:[/green] {output}")


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

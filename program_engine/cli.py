"""Developer CLI for the program schedule engine.

Runs the engine against literal arguments or JSON files so schedules,
reindexes and distributions can be inspected without a running service.
"""

import json
from datetime import date
from pathlib import Path
from typing import NoReturn

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from program_engine.config.settings import settings
from program_engine.core.clock import FixedClock, SystemClock
from program_engine.core.logger import setup_logger
from program_engine.distribution.engine import distribute as distribute_week
from program_engine.errors import ProgramEngineError
from program_engine.models.content import DayRecord, TaskSource
from program_engine.models.enrollment import Enrollment, EnrollmentStatus
from program_engine.models.program import DurationType, Module, Program, Week
from program_engine.schedule.calendar_weeks import calculate_calendar_weeks
from program_engine.schedule.day_index import current_day_index
from program_engine.structure.edits import sync_program_weeks
from program_engine.structure.reindex import reindex as reindex_structure

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="program-engine",
    help="Program schedule engine - day indices, calendar weeks, reindexing and task distribution",
    add_completion=False,
)


def _parse_date(value: str, option: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"{option} must be an ISO date (YYYY-MM-DD), got {value!r}") from e


def _load_json(path: Path) -> dict:
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/red] Could not read {path}: {e}")
        raise typer.Exit(1) from e


def _exit_with_error(message: str) -> NoReturn:
    console.print(f"[bold red]✗[/bold red] {message}")
    raise typer.Exit(1)


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    setup_logger(
        level="DEBUG" if debug else settings.log_level,
        log_file=settings.log_file,
        module_levels=settings.log_module_levels,
    )


@app.command()
def day_index(
    start: str = typer.Option(..., "--start", help="Enrollment start date (YYYY-MM-DD)"),
    length: int = typer.Option(..., "--length", min=1, help="Program length in program days"),
    as_of: str | None = typer.Option(None, "--as-of", help="Evaluation date (defaults to today)"),
    include_weekends: bool = typer.Option(True, "--include-weekends/--weekdays-only", help="Weekend policy"),
    evergreen: bool = typer.Option(False, "--evergreen", help="Program repeats in cycles"),
    restart: list[str] | None = typer.Option(None, "--restart", help="Evergreen cycle restart date (repeatable)"),
) -> None:
    """Show the current day index of an active enrollment.

    Examples:
        program-engine day-index --start 2024-01-01 --length 30 --weekdays-only --as-of 2024-01-08
    """
    clock = FixedClock(_parse_date(as_of, "--as-of")) if as_of else SystemClock()
    program = Program(
        id="cli-program",
        length_days=length,
        include_weekends=include_weekends,
        duration_type=DurationType.EVERGREEN if evergreen else DurationType.FIXED,
    )
    enrollment = Enrollment(
        id="cli-enrollment",
        user_id="cli-user",
        program_id=program.id,
        status=EnrollmentStatus.ACTIVE,
        started_at=_parse_date(start, "--start"),
        cycle_started_at=[_parse_date(value, "--restart") for value in restart or []],
    )

    result = current_day_index(enrollment, program, clock.today())
    lines = [
        f"Day: [bold]{result.day_index}[/bold] of {program.length_days}",
        f"Cycle: {result.cycle_number} (started {result.cycle_start})",
    ]
    if result.off_day:
        lines.append("[yellow]Off day: weekend on a weekday-only program[/yellow]")
    if result.cycle_complete:
        lines.append("[yellow]Cycle complete: a new cycle can be started[/yellow]")
    console.print(Panel("\n".join(lines), title=f"Day index as of {clock.today()}", border_style="green"))


@app.command()
def calendar_weeks(
    start: str = typer.Option(..., "--start", help="Enrollment start date (YYYY-MM-DD)"),
    length: int = typer.Option(..., "--length", min=1, help="Program length in program days"),
    include_weekends: bool = typer.Option(True, "--include-weekends/--weekdays-only", help="Weekend policy"),
) -> None:
    """List the calendar-aligned weeks of an enrollment."""
    weeks = calculate_calendar_weeks(_parse_date(start, "--start"), length, include_weekends)

    table = Table(title="Calendar weeks")
    table.add_column("Week")
    table.add_column("Type")
    table.add_column("Dates")
    table.add_column("Days", justify="right")
    table.add_column("Day range", justify="right")
    for week in weeks:
        table.add_row(
            week.label,
            week.type.value,
            f"{week.start_date} - {week.end_date}",
            str(week.day_count),
            f"{week.start_day_index}-{week.end_day_index}",
        )
    console.print(table)


@app.command()
def reindex(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with program, modules and weeks"),
    sync: bool = typer.Option(False, "--sync", help="Add or trim blank weeks to match the program length"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the reindexed structure as JSON"),
) -> None:
    """Reindex a program structure read from a JSON file.

    The file holds ``{"program": {...}, "modules": [...], "weeks": [...]}``.
    """
    data = _load_json(path)
    try:
        program = Program.model_validate(data["program"])
        modules = [Module.model_validate(item) for item in data.get("modules", [])]
        weeks = [Week.model_validate(item) for item in data.get("weeks", [])]
        plan = (
            sync_program_weeks(program, modules, weeks) if sync else reindex_structure(program, modules, weeks)
        )
    except (KeyError, ValidationError, ValueError) as e:
        _exit_with_error(f"Invalid structure file: {e}")
    except ProgramEngineError as e:
        for detail in e.details:
            console.print(f"  [red]-[/red] {detail}")
        _exit_with_error(f"Reindex rejected ({e.code})")

    table = Table(title=f"Program {program.id}: {program.length_days} days, {program.week_count} weeks")
    table.add_column("Module")
    table.add_column("Week", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Changed")
    titles = {module.id: module.title or module.id for module in plan.modules}
    for week in plan.weeks:
        changed = week.id in plan.changed_week_ids or week.id in plan.created_week_ids
        table.add_row(
            titles[week.module_id],
            str(week.week_number),
            f"{week.start_day_index}-{week.end_day_index}",
            "[yellow]yes[/yellow]" if changed else "",
        )
    console.print(table)

    if output:
        payload = {
            "program": program.model_dump(mode="json"),
            "modules": [module.model_dump(mode="json") for module in plan.modules],
            "weeks": [week.model_dump(mode="json") for week in plan.weeks],
        }
        output.write_text(json.dumps(payload, indent=2))
        logger.info("Wrote reindexed structure", path=str(output))


@app.command()
def distribute(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with program, week and days"),
    keep_manual: bool = typer.Option(False, "--keep-manual", help="Keep tasks authored directly on days"),
) -> None:
    """Distribute a week's tasks onto its days.

    The file holds ``{"program": {...}, "week": {...}, "days": [...]}``.
    """
    data = _load_json(path)
    try:
        program = Program.model_validate(data["program"])
        week = Week.model_validate(data["week"])
        days = [DayRecord.model_validate(item) for item in data.get("days", [])]
        plan = distribute_week(week, days, program=program, keep_manual_tasks=keep_manual)
    except (KeyError, ValidationError, ValueError) as e:
        _exit_with_error(f"Invalid distribution file: {e}")

    table = Table(title=f"Week {plan.week_number} ({plan.policy.value})")
    table.add_column("Day", justify="right")
    table.add_column("Tasks")
    for record in plan.days_in_range():
        labels = [
            task.label if task.source == TaskSource.WEEK else f"{task.label} [dim](manual)[/dim]"
            for task in record.content.tasks or []
        ]
        table.add_row(str(record.day_index), ", ".join(labels) or "[dim]-[/dim]")
    console.print(table)


@app.command()
def init_db() -> None:
    """Create the database tables for the configured DATABASE_URL."""
    from program_engine.db.session import init_db as create_tables

    try:
        create_tables()
    except Exception as e:
        console.print(f"[bold red]✗ Database initialization failed:[/bold red] {e}")
        logger.exception("Database initialization failed")
        raise typer.Exit(1) from e
    console.print("[bold green]✓ Database tables created[/bold green]")


if __name__ == "__main__":
    app()

"""Current program day for an enrollment."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger

from program_engine.errors import ErrorCode
from program_engine.models.enrollment import Enrollment, EnrollmentStatus
from program_engine.models.program import Program, Week
from program_engine.schedule.calendar import days_between, is_weekend, to_calendar_date
from program_engine.schedule.cycles import active_cycle


@dataclass(frozen=True)
class IntegrityWarning:
    code: ErrorCode
    message: str


@dataclass(frozen=True)
class DayIndexResult:
    """Resolved position of an enrollment in its program.

    Attributes:
        day_index: 1-based current day, 0 when there is no current day
        status: Enrollment status the index was derived from
        cycle_number: Current cycle (always 1 for fixed programs)
        cycle_start: Start of the current cycle
        cycle_complete: Evergreen enrollment has run past the end of its cycle
        off_day: ``as_of`` is a weekend on a weekday-only program; day_index
            is that of the coming Monday
        warning: Integrity problem found while resolving, if any
    """

    day_index: int
    status: EnrollmentStatus
    cycle_number: int = 1
    cycle_start: datetime | date | None = None
    cycle_complete: bool = False
    off_day: bool = False
    warning: IntegrityWarning | None = None


def current_day_index(enrollment: Enrollment, program: Program, as_of: datetime | date) -> DayIndexResult:
    """Compute the current day index of an enrollment.

    Args:
        enrollment: Enrollment to evaluate
        program: The enrollment's program
        as_of: Point in time to evaluate at, already in the reference timezone

    Returns:
        DayIndexResult. Upcoming and stopped enrollments are on day 0, completed
        ones on the last day, active ones on a day clamped to 1..length_days.

    Raises:
        ValueError: If the enrollment belongs to another program
    """
    if enrollment.program_id != program.id:
        raise ValueError(f"Enrollment {enrollment.id} belongs to program {enrollment.program_id}, not {program.id}")

    status = enrollment.status
    if status in {EnrollmentStatus.UPCOMING, EnrollmentStatus.STOPPED}:
        return DayIndexResult(day_index=0, status=status)
    if status == EnrollmentStatus.COMPLETED:
        return DayIndexResult(day_index=program.length_days, status=status)

    cycle = active_cycle(enrollment, program)
    if cycle.cycle_start is None:
        message = f"Active enrollment {enrollment.id} has no start date"
        logger.warning(message, enrollment_id=enrollment.id, program_id=program.id)
        return DayIndexResult(
            day_index=0,
            status=status,
            cycle_number=cycle.cycle_number,
            warning=IntegrityWarning(code=ErrorCode.INCONSISTENT_ENROLLMENT, message=message),
        )

    raw_index = days_between(cycle.cycle_start, as_of, program.include_weekends) + 1
    day_index = min(max(raw_index, 1), program.length_days)
    cycle_complete = program.is_evergreen and raw_index > program.length_days
    off_day = not program.include_weekends and is_weekend(to_calendar_date(as_of))

    logger.debug(
        "Resolved day index",
        enrollment_id=enrollment.id,
        raw_index=raw_index,
        day_index=day_index,
        cycle_number=cycle.cycle_number,
    )
    return DayIndexResult(
        day_index=day_index,
        status=status,
        cycle_number=cycle.cycle_number,
        cycle_start=cycle.cycle_start,
        cycle_complete=cycle_complete,
        off_day=off_day,
    )


def current_week_number(result: DayIndexResult, weeks: Iterable[Week]) -> int | None:
    """Week number whose day range contains the result's day index."""
    if result.day_index < 1:
        return None
    for week in weeks:
        if week.contains_day(result.day_index):
            return week.week_number
    return None

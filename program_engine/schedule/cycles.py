"""Cycle resolution for evergreen programs.

Fixed programs run once. Evergreen programs repeat: each restart is logged
on the enrollment and starts a new cycle whose day 1 is the restart date.
"""

from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger

from program_engine.models.enrollment import Enrollment, EnrollmentStatus
from program_engine.models.program import Program
from program_engine.schedule.calendar import days_between, to_calendar_date


@dataclass(frozen=True)
class ActiveCycle:
    """Cycle an enrollment is currently on.

    Attributes:
        cycle_number: 1-based cycle number
        cycle_start: Start of the cycle, None if the enrollment never started
    """

    cycle_number: int
    cycle_start: datetime | date | None


def active_cycle(enrollment: Enrollment, program: Program) -> ActiveCycle:
    """Resolve the current cycle of an enrollment.

    Fixed programs are always on cycle 1 starting at ``started_at``. Evergreen
    programs are on cycle ``1 + restarts`` starting at the latest restart.
    """
    if not program.is_evergreen or not enrollment.cycle_started_at:
        return ActiveCycle(cycle_number=1, cycle_start=enrollment.started_at)

    latest = max(enrollment.cycle_started_at, key=to_calendar_date)
    return ActiveCycle(cycle_number=1 + len(enrollment.cycle_started_at), cycle_start=latest)


def cycles_since(
    start: datetime | date,
    length_days: int,
    include_weekends: bool,
    as_of: datetime | date,
) -> int:
    """Cycle a self-repeating schedule is on without a restart log.

    Used for cohort and template timelines of evergreen programs, which roll
    over automatically every ``length_days`` program days.
    """
    if length_days < 1:
        raise ValueError(f"length_days must be >= 1, got {length_days}")
    return days_between(start, as_of, include_weekends) // length_days + 1


def restart_cycle(enrollment: Enrollment, program: Program, on: datetime | date) -> Enrollment:
    """Start a new cycle of an evergreen enrollment.

    Args:
        enrollment: Enrollment to restart
        program: The enrollment's program
        on: Start of the new cycle

    Returns:
        A copy of the enrollment with the restart logged and status active

    Raises:
        ValueError: If the program is not evergreen, the enrollment is stopped,
            or it has never started
    """
    if not program.is_evergreen:
        raise ValueError(f"Program {program.id} is not evergreen and cannot be restarted")
    if enrollment.status == EnrollmentStatus.STOPPED:
        raise ValueError(f"Enrollment {enrollment.id} is stopped and cannot be restarted")
    if enrollment.started_at is None:
        raise ValueError(f"Enrollment {enrollment.id} has not started")

    restarted = enrollment.model_copy(
        update={
            "status": EnrollmentStatus.ACTIVE,
            "cycle_started_at": [*enrollment.cycle_started_at, on],
        }
    )
    logger.info(
        "Evergreen cycle restarted",
        enrollment_id=enrollment.id,
        cycle_number=len(restarted.cycle_started_at) + 1,
    )
    return restarted

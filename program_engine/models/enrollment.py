"""Cohorts and enrollments."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class EnrollmentStatus(StrEnum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    STOPPED = "stopped"


class Cohort(BaseModel):
    """Group of participants running the same program on shared dates."""

    id: str
    program_id: str
    name: str = ""
    start_date: date | None = None
    end_date: date | None = None
    enrollment_open: bool = True
    max_enrollment: int | None = Field(default=None, ge=1)
    current_enrollment: int = Field(default=0, ge=0)

    @property
    def is_full(self) -> bool:
        return self.max_enrollment is not None and self.current_enrollment >= self.max_enrollment


class Enrollment(BaseModel):
    """A user's participation in a program.

    Attributes:
        id: Enrollment identifier
        user_id: Participant
        program_id: Enrolled program
        cohort_id: Optional cohort the participant belongs to
        status: Lifecycle status
        started_at: Start of day 1, absent until the enrollment is activated
        cycle_started_at: One entry per evergreen cycle restart, oldest first
    """

    id: str
    user_id: str
    program_id: str
    cohort_id: str | None = None
    status: EnrollmentStatus = EnrollmentStatus.UPCOMING
    started_at: datetime | date | None = None
    cycle_started_at: list[datetime | date] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE

"""Calendar-aligned weeks for an enrollment.

Cohorts and clients see weeks that follow the calendar rather than the
template's fixed-size weeks:

- Onboarding week: from the start date to the end of its calendar week
  (Sunday, or Friday for weekday-only programs). Week number 1.
- Regular weeks: full Monday-based weeks, numbered from 2.
- Closing week: the last, possibly partial, week. Week number -1.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum

from program_engine.schedule.calendar import add_program_days, date_to_day_index, effective_start

CLOSING_WEEK_NUMBER = -1


class CalendarWeekType(StrEnum):
    ONBOARDING = "onboarding"
    REGULAR = "regular"
    CLOSING = "closing"


@dataclass(frozen=True)
class CalendarWeek:
    """One calendar-aligned week of an enrollment.

    Attributes:
        type: onboarding, regular or closing
        label: Display label ("Onboarding", "Week 2", "Closing")
        week_number: 1 for onboarding, 2+ for regular weeks, -1 for closing
        start_date: First calendar date of the week
        end_date: Last program date of the week
        start_day_index: First program day index (1-based)
        end_day_index: Last program day index (1-based, inclusive)
        day_count: Number of program days in the week
    """

    type: CalendarWeekType
    label: str
    week_number: int
    start_date: date
    end_date: date
    start_day_index: int
    end_day_index: int
    day_count: int

    def contains_day(self, day_index: int) -> bool:
        return self.start_day_index <= day_index <= self.end_day_index


@dataclass(frozen=True)
class ProgramDayPosition:
    """Where a calendar date falls inside an enrollment.

    Attributes:
        week_position: 0-based position among the calendar weeks
        day_in_week: 1-based day within that week
        day_index: Global 1-based program day index
    """

    week_position: int
    day_in_week: int
    day_index: int


def _first_week_days(start: date, include_weekends: bool) -> int:
    if include_weekends:
        return 7 - start.weekday()
    return max(5 - start.weekday(), 1)


def calculate_calendar_weeks(
    start: datetime | date,
    length_days: int,
    include_weekends: bool = True,
) -> list[CalendarWeek]:
    """Split an enrollment into calendar-aligned weeks.

    Args:
        start: Enrollment start date
        length_days: Program length in program days
        include_weekends: Whether weekends are program days

    Returns:
        Weeks in chronological order; together they cover days 1..length_days

    Raises:
        ValueError: If length_days is below 1
    """
    if length_days < 1:
        raise ValueError(f"length_days must be >= 1, got {length_days}")

    first_day = effective_start(start, include_weekends)
    days_per_week = 7 if include_weekends else 5

    onboarding_days = min(_first_week_days(first_day, include_weekends), length_days)
    onboarding_end = add_program_days(first_day, onboarding_days - 1, include_weekends)
    weeks = [
        CalendarWeek(
            type=CalendarWeekType.CLOSING if onboarding_days >= length_days else CalendarWeekType.ONBOARDING,
            label="Onboarding",
            week_number=1,
            start_date=first_day,
            end_date=onboarding_end,
            start_day_index=1,
            end_day_index=onboarding_days,
            day_count=onboarding_days,
        )
    ]
    if onboarding_days >= length_days:
        return weeks

    day_index = onboarding_days + 1
    week_number = 2
    monday = onboarding_end + timedelta(days=7 - onboarding_end.weekday())
    while day_index <= length_days:
        day_count = min(days_per_week, length_days - day_index + 1)
        is_last = day_index + day_count > length_days
        weeks.append(
            CalendarWeek(
                type=CalendarWeekType.CLOSING if is_last else CalendarWeekType.REGULAR,
                label="Closing" if is_last else f"Week {week_number}",
                week_number=CLOSING_WEEK_NUMBER if is_last else week_number,
                start_date=monday,
                end_date=add_program_days(monday, day_count - 1, include_weekends),
                start_day_index=day_index,
                end_day_index=day_index + day_count - 1,
                day_count=day_count,
            )
        )
        day_index += day_count
        week_number += 1
        monday += timedelta(days=7)

    return weeks


def calendar_week_for_day(
    start: datetime | date,
    day_index: int,
    length_days: int,
    include_weekends: bool = True,
) -> CalendarWeek | None:
    """Calendar week containing a program day, or None when out of range."""
    if day_index < 1 or day_index > length_days:
        return None
    for week in calculate_calendar_weeks(start, length_days, include_weekends):
        if week.contains_day(day_index):
            return week
    return None


def program_day_for_date(
    start: datetime | date,
    target: datetime | date,
    length_days: int,
    include_weekends: bool = True,
) -> ProgramDayPosition | None:
    """Locate a calendar date in an enrollment's calendar weeks.

    Returns:
        Position of the date, or None when it is before the start, after the
        end, or on a weekend of a weekday-only program
    """
    day_index = date_to_day_index(start, target, include_weekends)
    if day_index <= 0 or day_index > length_days:
        return None
    for position, week in enumerate(calculate_calendar_weeks(start, length_days, include_weekends)):
        if week.contains_day(day_index):
            return ProgramDayPosition(
                week_position=position,
                day_in_week=day_index - week.start_day_index + 1,
                day_index=day_index,
            )
    return None

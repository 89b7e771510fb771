"""Calendar arithmetic for program days.

All functions operate on calendar dates. Datetimes are truncated to their
date; callers normalize instants to the reference timezone first (see
``to_calendar_date``). Weekday-only programs skip Saturdays and Sundays.
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from program_engine.config.settings import settings

SATURDAY = 5
SUNDAY = 6


def to_calendar_date(value: datetime | date, timezone: str | None = None) -> date:
    """Truncate a date or datetime to a calendar date.

    Args:
        value: Date or datetime to truncate
        timezone: Reference timezone name. Aware datetimes are converted into it
            before truncation; naive datetimes are assumed to already be local.

    Returns:
        Calendar date
    """
    if isinstance(value, datetime):
        if timezone and value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(timezone))
        return value.date()
    return value


def is_weekend(day: date) -> bool:
    return day.weekday() >= SATURDAY


def effective_start(start: datetime | date, include_weekends: bool) -> date:
    """First program day for a start date.

    A weekday-only program that starts on a weekend begins the next Monday.
    """
    start_date = to_calendar_date(start)
    if include_weekends or not is_weekend(start_date):
        return start_date
    return start_date + timedelta(days=7 - start_date.weekday())


def _count_weekdays(start: date, end: date) -> int:
    """Number of Mon-Fri dates in the half-open range [start, end)."""
    total = (end - start).days
    if total <= 0:
        return 0
    full_weeks, remainder = divmod(total, 7)
    count = full_weeks * 5
    first_weekday = start.weekday()
    for offset in range(remainder):
        if (first_weekday + offset) % 7 < SATURDAY:
            count += 1
    return count


def days_between(start: datetime | date, as_of: datetime | date, include_weekends: bool) -> int:
    """Count program days elapsed from ``start`` up to (not including) ``as_of``.

    Args:
        start: First day of the count
        as_of: Day being evaluated
        include_weekends: When False only Monday to Friday are counted

    Returns:
        Elapsed program days, 0 when ``as_of`` is before ``start``
    """
    start_date = to_calendar_date(start)
    as_of_date = to_calendar_date(as_of)
    if as_of_date <= start_date:
        return 0
    if include_weekends:
        return (as_of_date - start_date).days
    return _count_weekdays(start_date, as_of_date)


def add_program_days(start: date, days: int, include_weekends: bool) -> date:
    """Date that lies ``days`` program days after ``start``."""
    if include_weekends:
        return start + timedelta(days=days)
    full_weeks, remainder = divmod(days, 5)
    current = start + timedelta(weeks=full_weeks)
    while remainder > 0:
        current += timedelta(days=1)
        if not is_weekend(current):
            remainder -= 1
    return current


def day_index_to_date(start: datetime | date, day_index: int, include_weekends: bool) -> date:
    """Calendar date of a 1-based program day.

    Raises:
        ValueError: If day_index is below 1
    """
    if day_index < 1:
        raise ValueError(f"day_index must be >= 1, got {day_index}")
    first_day = effective_start(start, include_weekends)
    return add_program_days(first_day, day_index - 1, include_weekends)


def date_to_day_index(start: datetime | date, target: datetime | date, include_weekends: bool) -> int:
    """Program day index for a calendar date.

    Returns:
        1-based day index, 0 before the program starts, -1 for a weekend
        date on a weekday-only program
    """
    first_day = effective_start(start, include_weekends)
    target_date = to_calendar_date(target)
    if target_date < first_day:
        return 0
    if not include_weekends and is_weekend(target_date):
        return -1
    return days_between(first_day, target_date, include_weekends) + 1


def program_start_date(
    signup_at: datetime,
    cutoff_hour: int | None = None,
    timezone: str | None = None,
) -> date:
    """Start date for a new enrollment.

    Signups before ``cutoff_hour`` start the same day, later ones the next day.
    Aware signup instants are read in the reference timezone.

    Args:
        signup_at: Signup instant
        cutoff_hour: Local cutoff hour, ``settings.start_cutoff_hour`` when not given
        timezone: Reference timezone, ``settings.reference_timezone`` when not given
    """
    if cutoff_hour is None:
        cutoff_hour = settings.start_cutoff_hour
    if signup_at.tzinfo is not None:
        signup_at = signup_at.astimezone(ZoneInfo(timezone or settings.reference_timezone))
    signup_date = signup_at.date()
    if signup_at.hour < cutoff_hour:
        return signup_date
    return signup_date + timedelta(days=1)

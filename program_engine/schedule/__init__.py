"""Calendar arithmetic, calendar-aligned weeks, cycles and day indices."""

from program_engine.schedule.calendar import (
    date_to_day_index,
    day_index_to_date,
    days_between,
    effective_start,
    is_weekend,
    program_start_date,
    to_calendar_date,
)
from program_engine.schedule.calendar_weeks import (
    CalendarWeek,
    CalendarWeekType,
    calculate_calendar_weeks,
    calendar_week_for_day,
    program_day_for_date,
)
from program_engine.schedule.cycles import ActiveCycle, active_cycle, cycles_since, restart_cycle
from program_engine.schedule.day_index import DayIndexResult, current_day_index, current_week_number

__all__ = [
    "ActiveCycle",
    "CalendarWeek",
    "CalendarWeekType",
    "DayIndexResult",
    "active_cycle",
    "calculate_calendar_weeks",
    "calendar_week_for_day",
    "current_day_index",
    "current_week_number",
    "cycles_since",
    "date_to_day_index",
    "day_index_to_date",
    "days_between",
    "effective_start",
    "is_weekend",
    "program_day_for_date",
    "program_start_date",
    "restart_cycle",
    "to_calendar_date",
]

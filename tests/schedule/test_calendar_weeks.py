"""Tests for calendar-aligned enrollment weeks."""

from datetime import date

import pytest

from program_engine.schedule.calendar_weeks import (
    CLOSING_WEEK_NUMBER,
    CalendarWeekType,
    calculate_calendar_weeks,
    calendar_week_for_day,
    program_day_for_date,
)

WEDNESDAY = date(2024, 1, 3)


def test_wednesday_start_with_weekends():
    weeks = calculate_calendar_weeks(WEDNESDAY, 14, include_weekends=True)

    assert [week.type for week in weeks] == [
        CalendarWeekType.ONBOARDING,
        CalendarWeekType.REGULAR,
        CalendarWeekType.CLOSING,
    ]
    assert [week.label for week in weeks] == ["Onboarding", "Week 2", "Closing"]
    assert [week.week_number for week in weeks] == [1, 2, CLOSING_WEEK_NUMBER]

    onboarding, regular, closing = weeks
    assert (onboarding.start_date, onboarding.end_date) == (WEDNESDAY, date(2024, 1, 7))
    assert (onboarding.start_day_index, onboarding.end_day_index, onboarding.day_count) == (1, 5, 5)
    assert (regular.start_date, regular.end_date) == (date(2024, 1, 8), date(2024, 1, 14))
    assert (regular.start_day_index, regular.end_day_index) == (6, 12)
    assert (closing.start_date, closing.end_date) == (date(2024, 1, 15), date(2024, 1, 16))
    assert closing.day_count == 2


def test_wednesday_start_weekdays_only():
    weeks = calculate_calendar_weeks(WEDNESDAY, 10, include_weekends=False)

    onboarding = weeks[0]
    assert onboarding.end_date == date(2024, 1, 5)
    assert onboarding.day_count == 3
    assert weeks[1].start_date == date(2024, 1, 8)
    assert weeks[1].end_date == date(2024, 1, 12)
    assert weeks[-1].type == CalendarWeekType.CLOSING
    assert weeks[-1].day_count == 2


def test_weekend_start_on_weekday_program_begins_monday():
    weeks = calculate_calendar_weeks(date(2024, 1, 6), 10, include_weekends=False)
    assert weeks[0].start_date == date(2024, 1, 8)
    assert weeks[0].day_count == 5


def test_single_week_program_is_closing_with_onboarding_label():
    weeks = calculate_calendar_weeks(date(2024, 1, 1), 3)
    assert len(weeks) == 1
    assert weeks[0].type == CalendarWeekType.CLOSING
    assert weeks[0].label == "Onboarding"
    assert weeks[0].week_number == 1


def test_rejects_empty_program():
    with pytest.raises(ValueError):
        calculate_calendar_weeks(WEDNESDAY, 0)


@pytest.mark.parametrize("include_weekends", [True, False])
def test_weeks_partition_program_days(include_weekends):
    for weekday_offset in range(7):
        start = date(2024, 1, 1 + weekday_offset)
        for length in (1, 4, 5, 7, 13, 30, 61):
            weeks = calculate_calendar_weeks(start, length, include_weekends)
            expected_start = 1
            for week in weeks:
                assert week.start_day_index == expected_start
                assert week.day_count == week.end_day_index - week.start_day_index + 1
                assert week.day_count <= (7 if include_weekends else 5)
                expected_start = week.end_day_index + 1
            assert expected_start - 1 == length
            assert weeks[-1].type == CalendarWeekType.CLOSING


def test_calendar_week_for_day():
    week = calendar_week_for_day(WEDNESDAY, 7, 14)
    assert week is not None
    assert week.label == "Week 2"
    assert calendar_week_for_day(WEDNESDAY, 0, 14) is None
    assert calendar_week_for_day(WEDNESDAY, 15, 14) is None


def test_program_day_for_date():
    position = program_day_for_date(WEDNESDAY, date(2024, 1, 9), 14)
    assert position is not None
    assert (position.week_position, position.day_in_week, position.day_index) == (1, 2, 7)

    assert program_day_for_date(WEDNESDAY, date(2024, 1, 2), 14) is None
    assert program_day_for_date(WEDNESDAY, date(2024, 2, 1), 14) is None
    assert program_day_for_date(WEDNESDAY, date(2024, 1, 6), 14, include_weekends=False) is None

"""Tests for the current day index of an enrollment."""

from datetime import date, datetime, timedelta

import pytest

from program_engine.core.clock import FixedClock
from program_engine.errors import ErrorCode
from program_engine.models.enrollment import Enrollment, EnrollmentStatus
from program_engine.schedule.day_index import current_day_index, current_week_number

MONDAY = date(2024, 1, 1)


def _enrollment(program, **overrides) -> Enrollment:
    fields = {
        "id": "enr-1",
        "user_id": "user-1",
        "program_id": program.id,
        "status": EnrollmentStatus.ACTIVE,
        "started_at": MONDAY,
    }
    fields.update(overrides)
    return Enrollment(**fields)


def test_weekday_program_next_monday_is_day_six(weekday_program):
    result = current_day_index(_enrollment(weekday_program), weekday_program, MONDAY + timedelta(days=7))
    assert result.day_index == 6
    assert not result.off_day


def test_weekend_on_weekday_program_is_an_off_day(weekday_program):
    result = current_day_index(_enrollment(weekday_program), weekday_program, date(2024, 1, 6))
    assert result.off_day
    assert result.day_index == 6


def test_first_day_is_one(program):
    assert current_day_index(_enrollment(program), program, MONDAY).day_index == 1


def test_start_time_of_day_is_ignored(program):
    enrollment = _enrollment(program, started_at=datetime(2024, 1, 1, 22, 0))
    assert current_day_index(enrollment, program, datetime(2024, 1, 2, 6, 0)).day_index == 2


def test_before_start_clamps_to_one(program):
    assert current_day_index(_enrollment(program), program, MONDAY - timedelta(days=5)).day_index == 1


def test_fixed_program_past_end_clamps_to_length(program):
    result = current_day_index(_enrollment(program), program, MONDAY + timedelta(days=90))
    assert result.day_index == program.length_days
    assert not result.cycle_complete


def test_evergreen_restart_ten_days_ago(evergreen_program):
    as_of = date(2024, 3, 11)
    restart = as_of - timedelta(days=10)
    enrollment = _enrollment(evergreen_program, cycle_started_at=[restart])

    result = current_day_index(enrollment, evergreen_program, as_of)

    assert result.cycle_number == 2
    assert result.cycle_start == restart
    assert result.day_index == 11
    assert not result.cycle_complete


def test_evergreen_past_cycle_end_is_flagged_and_clamped(evergreen_program):
    result = current_day_index(_enrollment(evergreen_program), evergreen_program, MONDAY + timedelta(days=30))
    assert result.day_index == 21
    assert result.cycle_complete


@pytest.mark.parametrize("status", [EnrollmentStatus.UPCOMING, EnrollmentStatus.STOPPED])
def test_upcoming_and_stopped_have_no_day(program, status):
    result = current_day_index(_enrollment(program, status=status), program, MONDAY + timedelta(days=3))
    assert result.day_index == 0
    assert result.status == status


def test_completed_is_on_last_day(program):
    result = current_day_index(_enrollment(program, status=EnrollmentStatus.COMPLETED), program, MONDAY)
    assert result.day_index == program.length_days


def test_active_without_start_degrades_with_warning(program):
    result = current_day_index(_enrollment(program, started_at=None), program, MONDAY)
    assert result.day_index == 0
    assert result.warning is not None
    assert result.warning.code == ErrorCode.INCONSISTENT_ENROLLMENT


def test_program_mismatch_is_rejected(program, weekday_program):
    with pytest.raises(ValueError):
        current_day_index(_enrollment(weekday_program), program, MONDAY)


def test_day_index_stays_in_range(program, weekday_program, evergreen_program):
    for candidate in (program, weekday_program, evergreen_program):
        enrollment = _enrollment(candidate)
        for offset in range(-10, 120, 3):
            result = current_day_index(enrollment, candidate, MONDAY + timedelta(days=offset))
            assert 1 <= result.day_index <= candidate.length_days


def test_fixed_clock_supplies_as_of(program):
    clock = FixedClock(date(2024, 1, 8))
    assert current_day_index(_enrollment(program), program, clock.today()).day_index == 8


def test_current_week_number(program, make_structure):
    _, weeks = make_structure(program, [2, 2])
    result = current_day_index(_enrollment(program), program, date(2024, 1, 15))
    assert result.day_index == 15
    assert current_week_number(result, weeks) == 3

    upcoming = current_day_index(_enrollment(program, status=EnrollmentStatus.UPCOMING), program, MONDAY)
    assert current_week_number(upcoming, weeks) is None


def test_day_index_is_monotone_within_a_cycle(weekday_program):
    enrollment = _enrollment(weekday_program)
    indices = [
        current_day_index(enrollment, weekday_program, MONDAY + timedelta(days=offset)).day_index
        for offset in range(60)
    ]
    assert indices == sorted(indices)

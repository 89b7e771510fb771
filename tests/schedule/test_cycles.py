"""Tests for evergreen cycle resolution."""

from datetime import date

import pytest

from program_engine.models.enrollment import Enrollment, EnrollmentStatus
from program_engine.schedule.cycles import active_cycle, cycles_since, restart_cycle


def _enrollment(program, **overrides) -> Enrollment:
    fields = {
        "id": "enr-1",
        "user_id": "user-1",
        "program_id": program.id,
        "status": EnrollmentStatus.ACTIVE,
        "started_at": date(2024, 1, 1),
    }
    fields.update(overrides)
    return Enrollment(**fields)


def test_fixed_program_is_always_cycle_one(program):
    enrollment = _enrollment(program, cycle_started_at=[date(2024, 2, 1)])
    cycle = active_cycle(enrollment, program)
    assert cycle.cycle_number == 1
    assert cycle.cycle_start == date(2024, 1, 1)


def test_evergreen_without_restarts_is_cycle_one(evergreen_program):
    cycle = active_cycle(_enrollment(evergreen_program), evergreen_program)
    assert (cycle.cycle_number, cycle.cycle_start) == (1, date(2024, 1, 1))


def test_evergreen_cycle_counts_restarts(evergreen_program):
    enrollment = _enrollment(evergreen_program, cycle_started_at=[date(2024, 1, 22), date(2024, 2, 12)])
    cycle = active_cycle(enrollment, evergreen_program)
    assert cycle.cycle_number == 3
    assert cycle.cycle_start == date(2024, 2, 12)


def test_evergreen_cycle_uses_latest_restart_even_if_log_is_unsorted(evergreen_program):
    enrollment = _enrollment(evergreen_program, cycle_started_at=[date(2024, 2, 12), date(2024, 1, 22)])
    assert active_cycle(enrollment, evergreen_program).cycle_start == date(2024, 2, 12)


def test_cycles_since_rolls_over_every_length():
    assert cycles_since(date(2024, 1, 1), 21, True, date(2024, 1, 21)) == 1
    assert cycles_since(date(2024, 1, 1), 21, True, date(2024, 1, 22)) == 2
    assert cycles_since(date(2024, 1, 1), 21, True, date(2023, 12, 1)) == 1
    with pytest.raises(ValueError):
        cycles_since(date(2024, 1, 1), 0, True, date(2024, 1, 22))


def test_restart_cycle_appends_restart_and_activates(evergreen_program):
    enrollment = _enrollment(evergreen_program, status=EnrollmentStatus.COMPLETED)
    restarted = restart_cycle(enrollment, evergreen_program, date(2024, 1, 22))

    assert restarted.status == EnrollmentStatus.ACTIVE
    assert restarted.cycle_started_at == [date(2024, 1, 22)]
    assert enrollment.cycle_started_at == []
    assert active_cycle(restarted, evergreen_program).cycle_number == 2


def test_restart_cycle_rejects_fixed_program(program):
    with pytest.raises(ValueError, match="not evergreen"):
        restart_cycle(_enrollment(program), program, date(2024, 2, 1))


def test_restart_cycle_rejects_stopped_or_unstarted(evergreen_program):
    with pytest.raises(ValueError, match="stopped"):
        restart_cycle(_enrollment(evergreen_program, status=EnrollmentStatus.STOPPED), evergreen_program, date(2024, 2, 1))
    with pytest.raises(ValueError, match="not started"):
        restart_cycle(_enrollment(evergreen_program, started_at=None), evergreen_program, date(2024, 2, 1))

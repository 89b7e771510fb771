"""Tests for weekly task distribution."""

from datetime import date

import pytest

from program_engine.config.settings import settings
from program_engine.distribution.engine import distribute, resolve_policy, spread_assignments
from program_engine.models.content import (
    DayContent,
    DayRecord,
    ProgramTask,
    TaskDistribution,
    TaskSource,
    WeekContent,
)
from program_engine.models.program import Program, Week
from program_engine.schedule.calendar_weeks import calculate_calendar_weeks


def _tasks(*labels: str) -> list[ProgramTask]:
    return [ProgramTask(id=label.lower(), label=label) for label in labels]


def _week(program, tasks, distribution=None, start=1, end=5) -> Week:
    return Week(
        id="w1",
        program_id=program.id,
        module_id="m1",
        week_number=1,
        start_day_index=start,
        end_day_index=end,
        content=WeekContent(weekly_tasks=tasks, distribution=distribution),
    )


def _labels(plan) -> dict[int, list[str]]:
    return {day.day_index: [task.label for task in day.content.tasks or []] for day in plan.days_in_range()}


def test_spread_three_tasks_over_five_days(weekday_program):
    plan = distribute(_week(weekday_program, _tasks("A", "B", "C")), [], program=weekday_program)

    assert plan.policy == TaskDistribution.SPREAD
    assert _labels(plan) == {1: ["A"], 2: ["B"], 3: ["C"], 4: ["A"], 5: ["B"]}


def test_spread_more_tasks_than_days(weekday_program):
    plan = distribute(_week(weekday_program, _tasks(*"ABCDEFGH")), [], program=weekday_program)

    labels = _labels(plan)
    assert [len(labels[day]) for day in range(1, 6)] == [2, 2, 2, 1, 1]
    assert sorted(label for day in labels.values() for label in day) == list("ABCDEFGH")


def test_spread_without_tasks_leaves_days_empty():
    assignments = spread_assignments([], 1, 5)
    assert assignments == {1: [], 2: [], 3: [], 4: [], 5: []}


def test_repeat_daily_puts_every_task_on_every_day(weekday_program):
    week = _week(weekday_program, _tasks("A", "B"), distribution=TaskDistribution.REPEAT_DAILY)
    plan = distribute(week, [], program=weekday_program)

    assert plan.policy == TaskDistribution.REPEAT_DAILY
    assert all(labels == ["A", "B"] for labels in _labels(plan).values())


def test_week_policy_overrides_program_default(weekday_program):
    program = weekday_program.model_copy(update={"task_distribution": TaskDistribution.REPEAT_DAILY})
    assert resolve_policy(WeekContent(), program) == TaskDistribution.REPEAT_DAILY
    assert resolve_policy(WeekContent(distribution=TaskDistribution.SPREAD), program) == TaskDistribution.SPREAD


def test_distributed_tasks_are_marked_as_week_tasks(weekday_program):
    plan = distribute(_week(weekday_program, _tasks("A")), [], program=weekday_program)
    assert all(task.source == TaskSource.WEEK for day in plan.days_in_range() for task in day.content.tasks)


def test_days_outside_range_are_untouched(weekday_program):
    outside = DayRecord(program_id=weekday_program.id, day_index=6, content=DayContent(title="Day six"))
    plan = distribute(_week(weekday_program, _tasks("A", "B")), [outside], program=weekday_program)

    assert plan.days[-1] == outside
    assert [day.day_index for day in plan.days] == [1, 2, 3, 4, 5, 6]


def test_replace_drops_existing_tasks(weekday_program):
    existing = DayRecord(
        program_id=weekday_program.id,
        day_index=1,
        content=DayContent(title="Keep me", tasks=_tasks("Manual")),
    )
    plan = distribute(_week(weekday_program, _tasks("A")), [existing], program=weekday_program)

    day_one = plan.days_in_range()[0]
    assert day_one.content.title == "Keep me"
    assert [task.label for task in day_one.content.tasks] == ["A"]


def test_keep_manual_tasks_merges_and_deduplicates(weekday_program):
    stale_week_task = ProgramTask(id="old", label="Old", source=TaskSource.WEEK)
    existing = DayRecord(
        program_id=weekday_program.id,
        day_index=1,
        content=DayContent(tasks=[ProgramTask(id="call", label="Call coach"), stale_week_task]),
    )
    week = _week(weekday_program, _tasks("call COACH", "Journal"), distribution=TaskDistribution.REPEAT_DAILY)

    plan = distribute(week, [existing], program=weekday_program, keep_manual_tasks=True)

    assert [task.label for task in plan.days_in_range()[0].content.tasks] == ["Call coach", "Journal"]
    assert [task.label for task in plan.days_in_range()[1].content.tasks] == ["call COACH", "Journal"]


def test_redistributing_is_idempotent(weekday_program):
    week = _week(weekday_program, _tasks("A", "B", "C"))
    first = distribute(week, [], program=weekday_program, keep_manual_tasks=True)
    second = distribute(week, first.days, program=weekday_program, keep_manual_tasks=True)
    assert _labels(first) == _labels(second)


def test_materialized_days_carry_layer_keys(weekday_program):
    plan = distribute(_week(weekday_program, _tasks("A")), [], program=weekday_program, enrollment_id="enr-1")
    assert all(day.enrollment_id == "enr-1" for day in plan.days)


def test_calendar_range_replaces_stored_range(weekday_program):
    onboarding = calculate_calendar_weeks(date(2024, 1, 3), weekday_program.length_days, include_weekends=False)[0]
    plan = distribute(
        _week(weekday_program, _tasks("A", "B", "C")),
        [],
        program=weekday_program,
        calendar_range=onboarding,
    )
    assert (plan.start_day_index, plan.end_day_index) == (1, 3)
    assert _labels(plan) == {1: ["A"], 2: ["B"], 3: ["C"]}


def test_effective_content_replaces_template_content(weekday_program):
    plan = distribute(
        _week(weekday_program, _tasks("Template")),
        [],
        program=weekday_program,
        content=WeekContent(weekly_tasks=_tasks("Override"), distribution=TaskDistribution.REPEAT_DAILY),
    )
    assert all(labels == ["Override"] for labels in _labels(plan).values())


def test_week_without_range_is_rejected(weekday_program):
    week = Week(id="w9", program_id=weekday_program.id, module_id="m1", content=WeekContent(weekly_tasks=_tasks("A")))
    with pytest.raises(ValueError, match="no day range"):
        distribute(week, [], program=weekday_program)


def test_empty_weekly_tasks_clear_days_in_range(weekday_program):
    existing = DayRecord(program_id=weekday_program.id, day_index=2, content=DayContent(tasks=_tasks("Stale")))
    plan = distribute(_week(weekday_program, []), [existing], program=weekday_program)
    assert all(day.content.tasks == [] for day in plan.days_in_range())


def test_program_default_policy_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "default_task_distribution", "repeat-daily")
    program = Program(id="prog-configured", length_days=10, include_weekends=False)
    assert program.task_distribution == TaskDistribution.REPEAT_DAILY

    plan = distribute(_week(program, _tasks("A", "B")), [], program=program)
    assert plan.policy == TaskDistribution.REPEAT_DAILY
    assert all(labels == ["A", "B"] for labels in _labels(plan).values())

"""Weekly task distribution.

Materializes a week's task list onto the days in the week's range:

- repeat-daily: every day receives the full weekly list.
- spread: tasks are dealt round-robin over the days. Slot ``k`` for
  ``k in range(max(n_tasks, n_days))`` puts task ``k % n_tasks`` on day
  ``start + k % n_days``, so [A, B, C] over five days gives A, B, C, A, B
  and eight tasks over five days give days 1-3 two tasks each.

Only the ``tasks`` field of days in range is rewritten. Tasks never leave
their own week's range.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from program_engine.models.content import (
    DayContent,
    DayRecord,
    ProgramTask,
    TaskDistribution,
    TaskSource,
    WeekContent,
)
from program_engine.models.program import Program, Week
from program_engine.schedule.calendar_weeks import CalendarWeek


@dataclass(frozen=True)
class DistributionPlan:
    """Outcome of distributing one week.

    Attributes:
        week_number: Distributed week
        policy: Policy that was applied
        start_day_index: First day of the distributed range
        end_day_index: Last day of the distributed range (inclusive)
        assignments: Day index -> week tasks placed on that day
        days: Every supplied day record plus materialized ones, updated in
            range and untouched outside it, ordered by day index
    """

    week_number: int
    policy: TaskDistribution
    start_day_index: int
    end_day_index: int
    assignments: dict[int, list[ProgramTask]]
    days: list[DayRecord]

    def days_in_range(self) -> list[DayRecord]:
        return [day for day in self.days if self.start_day_index <= day.day_index <= self.end_day_index]


def resolve_policy(content: WeekContent, program: Program) -> TaskDistribution:
    """Week policy if set, otherwise the program default."""
    return content.distribution or program.task_distribution


def repeat_daily_assignments(
    tasks: Sequence[ProgramTask], start_day_index: int, end_day_index: int
) -> dict[int, list[ProgramTask]]:
    return {day_index: list(tasks) for day_index in range(start_day_index, end_day_index + 1)}


def spread_assignments(
    tasks: Sequence[ProgramTask], start_day_index: int, end_day_index: int
) -> dict[int, list[ProgramTask]]:
    """Deal tasks round-robin over an inclusive day range."""
    n_days = end_day_index - start_day_index + 1
    assignments: dict[int, list[ProgramTask]] = {
        day_index: [] for day_index in range(start_day_index, end_day_index + 1)
    }
    if not tasks or n_days <= 0:
        return assignments

    for slot in range(max(len(tasks), n_days)):
        assignments[start_day_index + slot % n_days].append(tasks[slot % len(tasks)])
    return assignments


def _merge_tasks(existing: list[ProgramTask], week_tasks: list[ProgramTask], keep_manual_tasks: bool) -> list[ProgramTask]:
    if not keep_manual_tasks:
        return week_tasks

    manual = [task for task in existing if task.source != TaskSource.WEEK]
    manual_labels = {task.label.lower() for task in manual}
    return manual + [task for task in week_tasks if task.label.lower() not in manual_labels]


def distribute(
    week: Week,
    days: Sequence[DayRecord],
    *,
    program: Program,
    content: WeekContent | None = None,
    keep_manual_tasks: bool = False,
    calendar_range: CalendarWeek | None = None,
    cohort_id: str | None = None,
    enrollment_id: str | None = None,
) -> DistributionPlan:
    """Distribute a week's tasks onto its days.

    Args:
        week: Week being distributed; supplies the default range and content
        days: Existing day records of the target layer (any range)
        program: The week's program; supplies the fallback policy
        content: Effective week content to distribute instead of the
            week's template content
        keep_manual_tasks: Keep tasks not produced by distribution and skip
            week tasks whose label matches one of them (case-insensitive).
            When False, ``tasks`` is replaced outright.
        calendar_range: Distribute over a calendar-aligned week's range
            instead of the stored week range
        cohort_id: Layer key for day records materialized in range
        enrollment_id: Layer key for day records materialized in range

    Returns:
        DistributionPlan with the updated day records

    Raises:
        ValueError: If the week has no day range
    """
    week_content = content if content is not None else week.content
    if calendar_range is not None:
        start_day_index, end_day_index = calendar_range.start_day_index, calendar_range.end_day_index
    elif week.start_day_index is None or week.end_day_index is None:
        raise ValueError(f"Week {week.id} has no day range; reindex the program first")
    else:
        start_day_index, end_day_index = week.start_day_index, week.end_day_index

    policy = resolve_policy(week_content, program)
    weekly_tasks = [task.model_copy(update={"source": TaskSource.WEEK}) for task in week_content.weekly_tasks or []]
    if policy == TaskDistribution.REPEAT_DAILY:
        assignments = repeat_daily_assignments(weekly_tasks, start_day_index, end_day_index)
    else:
        assignments = spread_assignments(weekly_tasks, start_day_index, end_day_index)

    by_index = {day.day_index: day for day in days}
    for day_index in assignments:
        if day_index not in by_index:
            by_index[day_index] = DayRecord(
                program_id=program.id,
                day_index=day_index,
                cohort_id=cohort_id,
                enrollment_id=enrollment_id,
                content=DayContent(),
            )

    updated: list[DayRecord] = []
    for day_index in sorted(by_index):
        record = by_index[day_index]
        if day_index in assignments:
            tasks = _merge_tasks(record.content.tasks or [], assignments[day_index], keep_manual_tasks)
            record = record.model_copy(update={"content": record.content.model_copy(update={"tasks": tasks})})
        updated.append(record)

    logger.debug(
        "Distributed week tasks",
        program_id=program.id,
        week_number=week.week_number,
        policy=policy,
        task_count=len(weekly_tasks),
        start_day_index=start_day_index,
        end_day_index=end_day_index,
    )
    return DistributionPlan(
        week_number=week.week_number,
        policy=policy,
        start_day_index=start_day_index,
        end_day_index=end_day_index,
        assignments=assignments,
        days=updated,
    )

"""Placing program tasks onto a user's daily lists."""

from collections.abc import Sequence

from loguru import logger

from program_engine.focus.engine import with_lists
from program_engine.models.content import ProgramTask
from program_engine.models.focus import FocusListState, FocusTask, ListType, TaskSourceType


def program_task_id(enrollment_id: str, day_index: int, task: ProgramTask) -> str:
    return f"{enrollment_id}:{day_index}:{task.id}"


def place_program_tasks(
    state: FocusListState,
    tasks: Sequence[ProgramTask],
    enrollment_id: str,
    day_index: int,
) -> FocusListState:
    """Add a program day's tasks to the lists.

    Primary tasks fill free focus slots, then go to the backlog. Secondary
    tasks always go to the backlog. A task already placed for the same
    enrollment and day (matched by id or by case-insensitive title) is
    skipped, so syncing the same day twice adds nothing.
    """
    placed = {
        task.title.lower()
        for task in [*state.focus, *state.backlog]
        if task.program_enrollment_id == enrollment_id and task.program_day_index == day_index
    }
    existing_ids = {task.id for task in [*state.focus, *state.backlog]}

    focus, backlog = list(state.focus), list(state.backlog)
    focus_added = backlog_added = 0
    ordered = [task for task in tasks if task.is_primary] + [task for task in tasks if not task.is_primary]
    for template in ordered:
        task_id = program_task_id(enrollment_id, day_index, template)
        if task_id in existing_ids or template.label.lower() in placed:
            continue

        focus_task = FocusTask(
            id=task_id,
            title=template.label,
            program_enrollment_id=enrollment_id,
            program_day_index=day_index,
            source_type=TaskSourceType.PROGRAM,
        )
        if template.is_primary and len(focus) < state.capacity:
            focus.append(focus_task.model_copy(update={"list_type": ListType.FOCUS}))
            focus_added += 1
        else:
            backlog.append(focus_task)
            backlog_added += 1
        existing_ids.add(task_id)
        placed.add(template.label.lower())

    logger.info(
        "Placed program tasks",
        user_id=state.user_id,
        enrollment_id=enrollment_id,
        day_index=day_index,
        focus=focus_added,
        backlog=backlog_added,
    )
    return with_lists(state, focus, backlog)


def carry_over(previous: FocusListState, today: FocusListState) -> tuple[FocusListState, FocusListState]:
    """Carry unfinished tasks from a previous day into today's backlog.

    Pending tasks from both of the previous day's lists are appended to the
    end of today's backlog. Completed backlog tasks are dropped; completed
    focus tasks stay on their day as history. Tasks already on today's lists
    are not duplicated.

    Returns:
        Tuple of (previous day after carry-over, today after carry-over)
    """
    today_ids = {task.id for task in [*today.focus, *today.backlog]}
    pending = [task for task in [*previous.focus, *previous.backlog] if not task.completed]
    carried = [task for task in pending if task.id not in today_ids]

    remaining_previous = with_lists(previous, [task for task in previous.focus if task.completed], [])
    updated_today = with_lists(today, today.focus, [*today.backlog, *carried])

    logger.debug(
        "Carried over pending tasks",
        user_id=today.user_id,
        from_day=str(previous.day),
        to_day=str(today.day),
        carried=len(carried),
    )
    return remaining_previous, updated_today

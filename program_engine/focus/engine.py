"""Daily Focus / Backlog list engine.

Every operation takes a FocusListState and returns a new one; the input is
never mutated. After every operation a task id appears in exactly one list,
``order`` is contiguous from 0 in both lists, and the focus list holds at
most ``capacity`` tasks. An operation that would break capacity raises
CapacityExceededError; tasks are never dropped or silently demoted.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from loguru import logger

from program_engine.config.settings import settings
from program_engine.errors import CapacityExceededError, NotFoundError
from program_engine.models.focus import FocusListState, FocusTask, ListType
from program_engine.models.program import Program


@dataclass(frozen=True)
class FocusListSnapshot:
    """Read-only view of a user's lists for one day.

    Attributes:
        focus: Focus tasks in order
        backlog: Backlog tasks in order
        capacity: Focus capacity
        remaining_slots: Free focus slots, never negative
        over_capacity: Focus holds more tasks than capacity allows
        duplicate_ids: Task ids present more than once across both lists
    """

    focus: tuple[FocusTask, ...]
    backlog: tuple[FocusTask, ...]
    capacity: int
    remaining_slots: int
    over_capacity: bool
    duplicate_ids: tuple[str, ...]

    @property
    def is_valid(self) -> bool:
        return not self.over_capacity and not self.duplicate_ids


def compute_capacity(programs: Iterable[Program], default: int | None = None) -> int:
    """Focus capacity for a user.

    Args:
        programs: Programs of the user's active enrollments
        default: Capacity when there are none, ``settings.default_focus_capacity``
            when not given

    Returns:
        Sum of the programs' ``daily_focus_slots``, never below 1
    """
    slots = [program.daily_focus_slots for program in programs]
    if not slots:
        return max(1, default if default is not None else settings.default_focus_capacity)
    return max(1, sum(slots))


def _renumbered(tasks: Iterable[FocusTask], list_type: ListType) -> list[FocusTask]:
    return [task.model_copy(update={"order": index, "list_type": list_type}) for index, task in enumerate(tasks)]


def with_lists(state: FocusListState, focus: Iterable[FocusTask], backlog: Iterable[FocusTask]) -> FocusListState:
    return state.model_copy(
        update={
            "focus": _renumbered(focus, ListType.FOCUS),
            "backlog": _renumbered(backlog, ListType.BACKLOG),
        }
    )


def _locate(state: FocusListState, task_id: str) -> tuple[ListType, int]:
    location = state.find(task_id)
    if location is None:
        raise NotFoundError(f"Task {task_id} is not on the lists of {state.user_id} for {state.day}")
    return location


def add_task(state: FocusListState, task: FocusTask, list_type: ListType | None = None) -> FocusListState:
    """Append a task to a list.

    Args:
        state: Current lists
        task: Task to add
        list_type: Target list. None places the task in focus when a slot is
            free and in backlog otherwise.

    Returns:
        New state. Adding a task that is already in the target list returns
        the state unchanged.

    Raises:
        CapacityExceededError: If the target is focus and focus is full
        ValueError: If the task is already in the other list
    """
    if list_type is None:
        list_type = ListType.FOCUS if len(state.focus) < state.capacity else ListType.BACKLOG

    location = state.find(task.id)
    if location is not None:
        if location[0] == list_type:
            return state
        raise ValueError(f"Task {task.id} is already in {location[0]}; move it instead")

    if list_type == ListType.FOCUS and len(state.focus) >= state.capacity:
        raise CapacityExceededError(f"Focus list is full ({state.capacity} tasks)")

    focus, backlog = list(state.focus), list(state.backlog)
    (focus if list_type == ListType.FOCUS else backlog).append(task)
    return with_lists(state, focus, backlog)


def move_task(state: FocusListState, task_id: str, target: ListType, target_index: int) -> FocusListState:
    """Move a task to a position in a list.

    ``target_index`` is clamped to the target list's bounds. Moving a task to
    where it already is returns an equivalent state.

    Raises:
        NotFoundError: If the task is on neither list
        CapacityExceededError: If the task would enter a full focus list
    """
    source, position = _locate(state, task_id)
    if target == ListType.FOCUS and source != ListType.FOCUS and len(state.focus) >= state.capacity:
        raise CapacityExceededError(f"Focus list is full ({state.capacity} tasks)")

    focus, backlog = list(state.focus), list(state.backlog)
    lists = {ListType.FOCUS: focus, ListType.BACKLOG: backlog}
    task = lists[source].pop(position)
    destination = lists[target]
    destination.insert(max(0, min(target_index, len(destination))), task)

    logger.debug("Moved focus task", task_id=task_id, source=source, target=target, index=target_index)
    return with_lists(state, focus, backlog)


def reorder(state: FocusListState, list_type: ListType, new_order: Sequence[str]) -> FocusListState:
    """Reorder one list.

    Raises:
        ValueError: If new_order is not a permutation of the list's task ids
    """
    tasks = {task.id: task for task in state.tasks(list_type)}
    if len(new_order) != len(tasks) or set(new_order) != set(tasks):
        raise ValueError(f"New {list_type} order must be a permutation of {sorted(tasks)}, got {list(new_order)}")

    ordered = [tasks[task_id] for task_id in new_order]
    if list_type == ListType.FOCUS:
        return with_lists(state, ordered, state.backlog)
    return with_lists(state, state.focus, ordered)


def _set_completed(state: FocusListState, task_id: str, completed: bool) -> FocusListState:
    list_type, position = _locate(state, task_id)
    tasks = list(state.tasks(list_type))
    tasks[position] = tasks[position].model_copy(update={"completed": completed})
    return state.model_copy(update={list_type.value: tasks})


def complete(state: FocusListState, task_id: str) -> FocusListState:
    """Mark a task completed. Membership and order are unchanged."""
    return _set_completed(state, task_id, True)


def uncomplete(state: FocusListState, task_id: str) -> FocusListState:
    return _set_completed(state, task_id, False)


def rebalance(state: FocusListState, capacity: int) -> FocusListState:
    """Apply a new capacity.

    Focus tasks beyond the new capacity move, in order, to the head of the
    backlog.

    Raises:
        ValueError: If capacity is below 1
    """
    if capacity < 1:
        raise ValueError(f"capacity must be >= 1, got {capacity}")

    focus, overflow = list(state.focus[:capacity]), list(state.focus[capacity:])
    if overflow:
        logger.info(
            "Focus overflow moved to backlog",
            user_id=state.user_id,
            day=str(state.day),
            moved=len(overflow),
            capacity=capacity,
        )
    rebalanced = with_lists(state, focus, overflow + list(state.backlog))
    return rebalanced.model_copy(update={"capacity": capacity})


def snapshot(state: FocusListState) -> FocusListSnapshot:
    seen: set[str] = set()
    duplicates: list[str] = []
    for task in [*state.focus, *state.backlog]:
        if task.id in seen and task.id not in duplicates:
            duplicates.append(task.id)
        seen.add(task.id)

    return FocusListSnapshot(
        focus=tuple(state.focus),
        backlog=tuple(state.backlog),
        capacity=state.capacity,
        remaining_slots=max(0, state.capacity - len(state.focus)),
        over_capacity=len(state.focus) > state.capacity,
        duplicate_ids=tuple(duplicates),
    )

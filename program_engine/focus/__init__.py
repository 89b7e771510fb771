"""Daily Focus and Backlog lists."""

from program_engine.focus.engine import (
    FocusListSnapshot,
    add_task,
    complete,
    compute_capacity,
    move_task,
    rebalance,
    reorder,
    snapshot,
    uncomplete,
)
from program_engine.focus.placement import carry_over, place_program_tasks

__all__ = [
    "FocusListSnapshot",
    "add_task",
    "carry_over",
    "complete",
    "compute_capacity",
    "move_task",
    "place_program_tasks",
    "rebalance",
    "reorder",
    "snapshot",
    "uncomplete",
]

"""Daily Focus and Backlog list records."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field


class ListType(StrEnum):
    FOCUS = "focus"
    BACKLOG = "backlog"


class TaskSourceType(StrEnum):
    USER = "user"
    PROGRAM = "program"


class FocusTask(BaseModel):
    """Task instance on a user's daily lists.

    Program tasks remember the enrollment and day they were placed for so
    repeated syncs can skip them.
    """

    id: str
    title: str
    completed: bool = False
    order: int = 0
    list_type: ListType = ListType.BACKLOG
    program_enrollment_id: str | None = None
    program_day_index: int | None = None
    source_type: TaskSourceType = TaskSourceType.USER


class FocusListState(BaseModel):
    """Both lists of one user for one calendar day."""

    user_id: str
    day: date
    capacity: int = Field(..., ge=1)
    focus: list[FocusTask] = Field(default_factory=list)
    backlog: list[FocusTask] = Field(default_factory=list)

    def tasks(self, list_type: ListType) -> list[FocusTask]:
        return self.focus if list_type == ListType.FOCUS else self.backlog

    def find(self, task_id: str) -> tuple[ListType, int] | None:
        """Locate a task by id, returning its list and position."""
        for list_type in (ListType.FOCUS, ListType.BACKLOG):
            for position, task in enumerate(self.tasks(list_type)):
                if task.id == task_id:
                    return list_type, position
        return None

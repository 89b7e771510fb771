"""Day and week content shapes shared by the template, cohort and client layers.

Every content field is optional. ``None`` means "not set at this layer,
inherit from the layer below"; an empty list is a real value (cleared).
"""

import uuid
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Layer(StrEnum):
    """Content layers in increasing precedence."""

    TEMPLATE = "template"
    COHORT = "cohort"
    CLIENT = "client"


def _layer_of(cohort_id: str | None, enrollment_id: str | None) -> Layer:
    if cohort_id is not None and enrollment_id is not None:
        raise ValueError("A content record belongs to a cohort or an enrollment, not both")
    if enrollment_id is not None:
        return Layer.CLIENT
    if cohort_id is not None:
        return Layer.COHORT
    return Layer.TEMPLATE


class TaskSource(StrEnum):
    WEEK = "week"  # materialized by weekly distribution
    MANUAL = "manual"  # authored directly on the day


class TaskDistribution(StrEnum):
    REPEAT_DAILY = "repeat-daily"
    SPREAD = "spread"


class TaskType(StrEnum):
    TASK = "task"
    HABIT = "habit"
    LEARNING = "learning"
    ADMIN = "admin"


class HabitFrequency(StrEnum):
    DAILY = "daily"
    WEEKDAY = "weekday"
    CUSTOM = "custom"


class ProgramTask(BaseModel):
    """Task template delivered on a program day.

    Attributes:
        id: Stable task template identifier
        label: Title shown to the participant
        is_primary: Primary tasks go to the Daily Focus list when there is room
        type: Optional categorization
        estimated_minutes: Optional time estimate
        notes: Optional guidance
        tag: Optional free-form tag
        source: Where the task on a day came from (week distribution or manual)
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    label: str
    is_primary: bool = True
    type: TaskType | None = None
    estimated_minutes: int | None = Field(default=None, gt=0)
    notes: str | None = None
    tag: str | None = None
    source: TaskSource = TaskSource.MANUAL


class ProgramHabit(BaseModel):
    title: str
    description: str | None = None
    frequency: HabitFrequency = HabitFrequency.DAILY


class _SparseContent(BaseModel):
    """Base for sparse content records."""

    def present_fields(self) -> dict[str, Any]:
        """Fields explicitly set (non-None) on this record."""
        return {name: getattr(self, name) for name in type(self).content_fields() if getattr(self, name) is not None}

    @classmethod
    def content_fields(cls) -> tuple[str, ...]:
        return tuple(cls.model_fields)

    def is_empty(self) -> bool:
        return not self.present_fields()


class DayContent(_SparseContent):
    title: str | None = None
    summary: str | None = None
    daily_prompt: str | None = None
    tasks: list[ProgramTask] | None = None
    habits: list[ProgramHabit] | None = None
    course_ids: list[str] | None = None


class WeekContent(_SparseContent):
    name: str | None = None
    theme: str | None = None
    description: str | None = None
    weekly_prompt: str | None = None
    weekly_tasks: list[ProgramTask] | None = None
    weekly_habits: list[ProgramHabit] | None = None
    current_focus: list[str] | None = None
    notes: list[str] | None = None
    manual_notes: str | None = None
    distribution: TaskDistribution | None = None


class DayRecord(BaseModel):
    """A day record at one layer.

    Template days have neither ``cohort_id`` nor ``enrollment_id``; cohort
    overrides set ``cohort_id``; client overrides set ``enrollment_id``.
    """

    program_id: str
    day_index: int = Field(..., ge=1)
    cohort_id: str | None = None
    enrollment_id: str | None = None
    content: DayContent = Field(default_factory=DayContent)

    @property
    def layer(self) -> Layer:
        return _layer_of(self.cohort_id, self.enrollment_id)


class WeekRecord(BaseModel):
    """Cohort or client override of a week's content, keyed by the structural week id.

    Template week content lives on the structural Week node instead. Keying
    overrides by week id keeps them with their week when weeks are reordered.
    """

    program_id: str
    week_id: str
    cohort_id: str | None = None
    enrollment_id: str | None = None
    content: WeekContent = Field(default_factory=WeekContent)

    @property
    def layer(self) -> Layer:
        return _layer_of(self.cohort_id, self.enrollment_id)

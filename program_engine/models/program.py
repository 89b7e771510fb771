"""Program structure records.

A program is split into modules, modules hold weeks, and weeks own a
contiguous range of 1-based day indices. Ranges are derived by the
structural reindexer; never edit them by hand.
"""

import math
from enum import StrEnum

from pydantic import BaseModel, Field

from program_engine.config.settings import settings
from program_engine.models.content import TaskDistribution, WeekContent


class DurationType(StrEnum):
    FIXED = "fixed"
    EVERGREEN = "evergreen"


class Program(BaseModel):
    """Coach-authored curriculum.

    Attributes:
        id: Program identifier
        name: Display name
        length_days: Number of content days (one cycle for evergreen programs)
        include_weekends: Whether Saturdays and Sundays are program days
        duration_type: fixed or evergreen (repeating cycles)
        daily_focus_slots: Focus list capacity contributed by this program
        task_distribution: Default weekly task distribution policy,
            ``settings.default_task_distribution`` when not given
        structure_version: Incremented on every persisted structural edit
    """

    id: str
    name: str = ""
    length_days: int = Field(..., ge=1)
    include_weekends: bool = True
    duration_type: DurationType = DurationType.FIXED
    daily_focus_slots: int = Field(default=3, ge=1, le=4)
    task_distribution: TaskDistribution = Field(
        default_factory=lambda: TaskDistribution(settings.default_task_distribution)
    )
    structure_version: int = 0

    @property
    def days_per_week(self) -> int:
        return 7 if self.include_weekends else 5

    @property
    def week_count(self) -> int:
        return math.ceil(self.length_days / self.days_per_week)

    @property
    def is_evergreen(self) -> bool:
        return self.duration_type == DurationType.EVERGREEN


class Module(BaseModel):
    """Ordered container of weeks. Its day range is the union of its weeks."""

    id: str
    program_id: str
    title: str = ""
    order: int = 0
    start_day_index: int | None = None
    end_day_index: int | None = None


class Week(BaseModel):
    """Structural week node.

    ``content`` is the template layer of the week's content; cohort and client
    overrides are stored separately and keyed by ``week_number``.
    """

    id: str
    program_id: str
    module_id: str
    week_number: int = 0
    order: int = 0
    start_day_index: int | None = None
    end_day_index: int | None = None
    content: WeekContent = Field(default_factory=WeekContent)

    @property
    def day_count(self) -> int:
        if self.start_day_index is None or self.end_day_index is None:
            return 0
        return self.end_day_index - self.start_day_index + 1

    def contains_day(self, day_index: int) -> bool:
        if self.start_day_index is None or self.end_day_index is None:
            return False
        return self.start_day_index <= day_index <= self.end_day_index

    @property
    def distribution(self) -> TaskDistribution | None:
        return self.content.distribution

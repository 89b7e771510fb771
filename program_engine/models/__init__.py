"""Domain records."""

from program_engine.models.content import (
    DayContent,
    DayRecord,
    HabitFrequency,
    Layer,
    ProgramHabit,
    ProgramTask,
    TaskDistribution,
    TaskSource,
    TaskType,
    WeekContent,
    WeekRecord,
)
from program_engine.models.enrollment import Cohort, Enrollment, EnrollmentStatus
from program_engine.models.focus import FocusListState, FocusTask, ListType, TaskSourceType
from program_engine.models.program import DurationType, Module, Program, Week

__all__ = [
    "Cohort",
    "DayContent",
    "DayRecord",
    "DurationType",
    "Enrollment",
    "EnrollmentStatus",
    "FocusListState",
    "FocusTask",
    "HabitFrequency",
    "Layer",
    "ListType",
    "Module",
    "Program",
    "ProgramHabit",
    "ProgramTask",
    "TaskDistribution",
    "TaskSource",
    "TaskSourceType",
    "TaskType",
    "Week",
    "WeekContent",
    "WeekRecord",
]

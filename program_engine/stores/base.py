"""Persistence interfaces used by the engine.

The engine never talks to a database directly. Resolvers and services are
handed implementations of these interfaces; ``InMemoryProgramStore`` and
``SqlProgramStore`` implement all three.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from program_engine.models.content import DayRecord, WeekContent, WeekRecord
from program_engine.models.enrollment import Cohort, Enrollment
from program_engine.models.program import Module, Program, Week
from program_engine.structure.types import ReindexPlan


class ContentStore(ABC):
    """Day and week content across the template, cohort and client layers.

    Getters return None when a record is absent at that layer. Absence is not
    an error: it means the layer inherits from the one below.
    """

    @abstractmethod
    def get_template_week(self, program_id: str, week_number: int) -> WeekContent | None:
        """Template content of the structural week with this number."""
        raise NotImplementedError

    @abstractmethod
    def get_template_day(self, program_id: str, day_index: int) -> DayRecord | None:
        raise NotImplementedError

    @abstractmethod
    def get_cohort_week(self, program_id: str, cohort_id: str, week_id: str) -> WeekRecord | None:
        """Cohort override of the structural week with this id."""
        raise NotImplementedError

    @abstractmethod
    def get_cohort_day(self, program_id: str, cohort_id: str, day_index: int) -> DayRecord | None:
        raise NotImplementedError

    @abstractmethod
    def get_client_week(self, program_id: str, enrollment_id: str, week_id: str) -> WeekRecord | None:
        raise NotImplementedError

    @abstractmethod
    def get_client_day(self, program_id: str, enrollment_id: str, day_index: int) -> DayRecord | None:
        raise NotImplementedError

    @abstractmethod
    def put_template_week(self, program_id: str, week_number: int, content: WeekContent) -> WeekContent:
        """Replace the template content of a structural week.

        Raises:
            NotFoundError: If the program has no week with this number
        """
        raise NotImplementedError

    @abstractmethod
    def put_template_day(self, record: DayRecord) -> DayRecord:
        raise NotImplementedError

    @abstractmethod
    def put_day_override(self, record: DayRecord) -> DayRecord:
        """Insert or replace a cohort or client day override."""
        raise NotImplementedError

    @abstractmethod
    def put_week_override(self, record: WeekRecord) -> WeekRecord:
        """Insert or replace a cohort or client week override."""
        raise NotImplementedError

    @abstractmethod
    def create_day_override_if_absent(self, record: DayRecord) -> DayRecord:
        """Create a day override unless one already exists for its key.

        Returns:
            The stored record: ``record`` if it was created, otherwise the
            record another writer created first
        """
        raise NotImplementedError

    @abstractmethod
    def create_week_override_if_absent(self, record: WeekRecord) -> WeekRecord:
        """Week counterpart of ``create_day_override_if_absent``."""
        raise NotImplementedError

    @abstractmethod
    def list_days(
        self,
        program_id: str,
        start_day_index: int,
        end_day_index: int,
        *,
        cohort_id: str | None = None,
        enrollment_id: str | None = None,
    ) -> list[DayRecord]:
        """Day records of one layer in an inclusive index range, ordered by index."""
        raise NotImplementedError


class EnrollmentStore(ABC):
    @abstractmethod
    def get_enrollment(self, enrollment_id: str) -> Enrollment | None:
        raise NotImplementedError

    @abstractmethod
    def get_cohort(self, cohort_id: str) -> Cohort | None:
        raise NotImplementedError

    @abstractmethod
    def list_active_enrollments(self, user_id: str) -> list[Enrollment]:
        raise NotImplementedError

    @abstractmethod
    def put_enrollment(self, enrollment: Enrollment) -> Enrollment:
        raise NotImplementedError

    @abstractmethod
    def put_cohort(self, cohort: Cohort) -> Cohort:
        raise NotImplementedError

    @abstractmethod
    def delete_enrollment(self, enrollment_id: str) -> None:
        """Delete an enrollment together with all of its client overrides."""
        raise NotImplementedError


class ProgramStructureStore(ABC):
    @abstractmethod
    def get_program(self, program_id: str) -> Program | None:
        raise NotImplementedError

    @abstractmethod
    def put_program(self, program: Program) -> Program:
        raise NotImplementedError

    @abstractmethod
    def list_modules(self, program_id: str) -> list[Module]:
        """Modules of a program ordered by ``order``."""
        raise NotImplementedError

    @abstractmethod
    def list_weeks(self, program_id: str) -> list[Week]:
        """Weeks of a program ordered by ``week_number``."""
        raise NotImplementedError

    @abstractmethod
    def save_structure(self, plan: ReindexPlan, expected_version: int) -> Program:
        """Apply a reindex plan atomically.

        Args:
            plan: Validated plan to persist
            expected_version: ``structure_version`` the plan was computed from

        Returns:
            The program with its incremented ``structure_version``

        Raises:
            NotFoundError: If the program does not exist
            StructureConflictError: If the stored version differs from
                ``expected_version``
        """
        raise NotImplementedError

"""In-memory implementation of the store interfaces.

Used by tests and the CLI. A single re-entrant lock makes create-if-absent
and versioned structure saves atomic, mirroring the guarantees of the SQL
store.
"""

import threading

from loguru import logger

from program_engine.errors import NotFoundError, StructureConflictError
from program_engine.models.content import DayRecord, Layer, WeekContent, WeekRecord
from program_engine.models.enrollment import Cohort, Enrollment, EnrollmentStatus
from program_engine.models.program import Module, Program, Week
from program_engine.stores.base import ContentStore, EnrollmentStore, ProgramStructureStore
from program_engine.structure.types import ReindexPlan


def _override_key(record: DayRecord | WeekRecord) -> tuple[Layer, str]:
    layer = record.layer
    if layer == Layer.COHORT:
        return layer, record.cohort_id
    if layer == Layer.CLIENT:
        return layer, record.enrollment_id
    raise ValueError("Override records need a cohort_id or an enrollment_id")


class InMemoryProgramStore(ContentStore, EnrollmentStore, ProgramStructureStore):
    """Dictionary-backed store for programs, structure, content and enrollments."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._programs: dict[str, Program] = {}
        self._modules: dict[str, dict[str, Module]] = {}
        self._weeks: dict[str, dict[str, Week]] = {}
        self._template_days: dict[tuple[str, int], DayRecord] = {}
        # (program_id, layer, cohort or enrollment id, day index or week id) -> record
        self._day_overrides: dict[tuple[str, Layer, str, int], DayRecord] = {}
        self._week_overrides: dict[tuple[str, Layer, str, str], WeekRecord] = {}
        self._enrollments: dict[str, Enrollment] = {}
        self._cohorts: dict[str, Cohort] = {}

    # Structure

    def get_program(self, program_id: str) -> Program | None:
        return self._programs.get(program_id)

    def put_program(self, program: Program) -> Program:
        with self._lock:
            self._programs[program.id] = program
            self._modules.setdefault(program.id, {})
            self._weeks.setdefault(program.id, {})
        return program

    def list_modules(self, program_id: str) -> list[Module]:
        return sorted(self._modules.get(program_id, {}).values(), key=lambda module: module.order)

    def list_weeks(self, program_id: str) -> list[Week]:
        return sorted(self._weeks.get(program_id, {}).values(), key=lambda week: week.week_number)

    def save_structure(self, plan: ReindexPlan, expected_version: int) -> Program:
        with self._lock:
            program = self._programs.get(plan.program_id)
            if program is None:
                raise NotFoundError(f"Program {plan.program_id} not found")
            if program.structure_version != expected_version:
                raise StructureConflictError(
                    f"Program {program.id} structure is at version {program.structure_version}, "
                    f"edit was based on {expected_version}"
                )
            self._modules[program.id] = {module.id: module for module in plan.modules}
            self._weeks[program.id] = {week.id: week for week in plan.weeks}
            program = program.model_copy(update={"structure_version": program.structure_version + 1})
            self._programs[program.id] = program

        logger.info(
            "Saved program structure",
            program_id=program.id,
            structure_version=program.structure_version,
            weeks=len(plan.weeks),
        )
        return program

    # Content

    def _find_week(self, program_id: str, week_number: int) -> Week | None:
        for week in self._weeks.get(program_id, {}).values():
            if week.week_number == week_number:
                return week
        return None

    def get_template_week(self, program_id: str, week_number: int) -> WeekContent | None:
        week = self._find_week(program_id, week_number)
        return week.content if week else None

    def get_template_day(self, program_id: str, day_index: int) -> DayRecord | None:
        return self._template_days.get((program_id, day_index))

    def get_cohort_week(self, program_id: str, cohort_id: str, week_id: str) -> WeekRecord | None:
        return self._week_overrides.get((program_id, Layer.COHORT, cohort_id, week_id))

    def get_cohort_day(self, program_id: str, cohort_id: str, day_index: int) -> DayRecord | None:
        return self._day_overrides.get((program_id, Layer.COHORT, cohort_id, day_index))

    def get_client_week(self, program_id: str, enrollment_id: str, week_id: str) -> WeekRecord | None:
        return self._week_overrides.get((program_id, Layer.CLIENT, enrollment_id, week_id))

    def get_client_day(self, program_id: str, enrollment_id: str, day_index: int) -> DayRecord | None:
        return self._day_overrides.get((program_id, Layer.CLIENT, enrollment_id, day_index))

    def put_template_week(self, program_id: str, week_number: int, content: WeekContent) -> WeekContent:
        with self._lock:
            week = self._find_week(program_id, week_number)
            if week is None:
                raise NotFoundError(f"Program {program_id} has no week {week_number}")
            self._weeks[program_id][week.id] = week.model_copy(update={"content": content})
        return content

    def put_template_day(self, record: DayRecord) -> DayRecord:
        if record.layer != Layer.TEMPLATE:
            raise ValueError("Template day records cannot carry a cohort_id or enrollment_id")
        with self._lock:
            self._template_days[(record.program_id, record.day_index)] = record
        return record

    def put_day_override(self, record: DayRecord) -> DayRecord:
        layer, owner_id = _override_key(record)
        with self._lock:
            self._day_overrides[(record.program_id, layer, owner_id, record.day_index)] = record
        return record

    def put_week_override(self, record: WeekRecord) -> WeekRecord:
        layer, owner_id = _override_key(record)
        with self._lock:
            self._week_overrides[(record.program_id, layer, owner_id, record.week_id)] = record
        return record

    def create_day_override_if_absent(self, record: DayRecord) -> DayRecord:
        layer, owner_id = _override_key(record)
        with self._lock:
            return self._day_overrides.setdefault((record.program_id, layer, owner_id, record.day_index), record)

    def create_week_override_if_absent(self, record: WeekRecord) -> WeekRecord:
        layer, owner_id = _override_key(record)
        with self._lock:
            return self._week_overrides.setdefault((record.program_id, layer, owner_id, record.week_id), record)

    def list_days(
        self,
        program_id: str,
        start_day_index: int,
        end_day_index: int,
        *,
        cohort_id: str | None = None,
        enrollment_id: str | None = None,
    ) -> list[DayRecord]:
        days = []
        for day_index in range(start_day_index, end_day_index + 1):
            if enrollment_id is not None:
                record = self.get_client_day(program_id, enrollment_id, day_index)
            elif cohort_id is not None:
                record = self.get_cohort_day(program_id, cohort_id, day_index)
            else:
                record = self.get_template_day(program_id, day_index)
            if record is not None:
                days.append(record)
        return days

    # Enrollments

    def get_enrollment(self, enrollment_id: str) -> Enrollment | None:
        return self._enrollments.get(enrollment_id)

    def get_cohort(self, cohort_id: str) -> Cohort | None:
        return self._cohorts.get(cohort_id)

    def list_active_enrollments(self, user_id: str) -> list[Enrollment]:
        return [
            enrollment
            for enrollment in self._enrollments.values()
            if enrollment.user_id == user_id and enrollment.status == EnrollmentStatus.ACTIVE
        ]

    def put_enrollment(self, enrollment: Enrollment) -> Enrollment:
        with self._lock:
            self._enrollments[enrollment.id] = enrollment
        return enrollment

    def put_cohort(self, cohort: Cohort) -> Cohort:
        with self._lock:
            self._cohorts[cohort.id] = cohort
        return cohort

    def delete_enrollment(self, enrollment_id: str) -> None:
        with self._lock:
            if self._enrollments.pop(enrollment_id, None) is None:
                raise NotFoundError(f"Enrollment {enrollment_id} not found")
            for overrides in (self._day_overrides, self._week_overrides):
                for key in [key for key in overrides if key[1] == Layer.CLIENT and key[2] == enrollment_id]:
                    del overrides[key]
        logger.info("Deleted enrollment and its client overrides", enrollment_id=enrollment_id)

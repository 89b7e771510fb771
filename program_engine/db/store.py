"""SQLAlchemy implementation of the store interfaces."""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import date, datetime

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from program_engine.db.models import (
    TEMPLATE_OWNER,
    CohortRow,
    DayContentRow,
    EnrollmentRow,
    ModuleRow,
    ProgramRow,
    WeekOverrideRow,
    WeekRow,
)
from program_engine.db.session import get_session, session_scope
from program_engine.errors import NotFoundError, StructureConflictError
from program_engine.models.content import DayContent, DayRecord, Layer, WeekContent, WeekRecord
from program_engine.models.enrollment import Cohort, Enrollment, EnrollmentStatus
from program_engine.models.program import Module, Program, Week
from program_engine.stores.base import ContentStore, EnrollmentStore, ProgramStructureStore
from program_engine.structure.types import ReindexPlan


def _to_datetime(value: datetime | date | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def _parse_instant(value: str) -> datetime | date:
    return datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)


def _dump(content: DayContent | WeekContent) -> dict:
    return content.model_dump(mode="json", exclude_none=True)


def _owner(record: DayRecord | WeekRecord) -> str:
    if record.layer == Layer.COHORT:
        return record.cohort_id
    if record.layer == Layer.CLIENT:
        return record.enrollment_id
    return TEMPLATE_OWNER


def _program_from_row(row: ProgramRow) -> Program:
    return Program(
        id=row.id,
        name=row.name,
        length_days=row.length_days,
        include_weekends=row.include_weekends,
        duration_type=row.duration_type,
        daily_focus_slots=row.daily_focus_slots,
        task_distribution=row.task_distribution,
        structure_version=row.structure_version,
    )


def _module_from_row(row: ModuleRow) -> Module:
    return Module(
        id=row.id,
        program_id=row.program_id,
        title=row.title,
        order=row.position,
        start_day_index=row.start_day_index,
        end_day_index=row.end_day_index,
    )


def _week_from_row(row: WeekRow) -> Week:
    return Week(
        id=row.id,
        program_id=row.program_id,
        module_id=row.module_id,
        week_number=row.week_number,
        order=row.position,
        start_day_index=row.start_day_index,
        end_day_index=row.end_day_index,
        content=WeekContent.model_validate(row.content or {}),
    )


def _day_from_row(row: DayContentRow) -> DayRecord:
    return DayRecord(
        program_id=row.program_id,
        day_index=row.day_index,
        cohort_id=row.owner_id if row.layer == Layer.COHORT else None,
        enrollment_id=row.owner_id if row.layer == Layer.CLIENT else None,
        content=DayContent.model_validate(row.content or {}),
    )


def _week_override_from_row(row: WeekOverrideRow) -> WeekRecord:
    return WeekRecord(
        program_id=row.program_id,
        week_id=row.week_id,
        cohort_id=row.owner_id if row.layer == Layer.COHORT else None,
        enrollment_id=row.owner_id if row.layer == Layer.CLIENT else None,
        content=WeekContent.model_validate(row.content or {}),
    )


def _enrollment_from_row(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        program_id=row.program_id,
        cohort_id=row.cohort_id,
        status=row.status,
        started_at=row.started_at,
        cycle_started_at=[_parse_instant(value) for value in row.cycle_started_at or []],
    )


def _cohort_from_row(row: CohortRow) -> Cohort:
    return Cohort(
        id=row.id,
        program_id=row.program_id,
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        enrollment_open=row.enrollment_open,
        max_enrollment=row.max_enrollment,
        current_enrollment=row.current_enrollment,
    )


class SqlProgramStore(ContentStore, EnrollmentStore, ProgramStructureStore):
    """Store backed by a relational database.

    Args:
        session_factory: Callable returning new sessions. Defaults to the
            engine configured through ``DATABASE_URL``.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        if self._session_factory is None:
            with get_session() as session:
                yield session
        else:
            with session_scope(self._session_factory) as session:
                yield session

    # Structure

    def get_program(self, program_id: str) -> Program | None:
        with self._session() as session:
            row = session.get(ProgramRow, program_id)
            return _program_from_row(row) if row else None

    def put_program(self, program: Program) -> Program:
        with self._session() as session:
            row = session.get(ProgramRow, program.id) or ProgramRow(id=program.id)
            row.name = program.name
            row.length_days = program.length_days
            row.include_weekends = program.include_weekends
            row.duration_type = program.duration_type.value
            row.daily_focus_slots = program.daily_focus_slots
            row.task_distribution = program.task_distribution.value
            row.structure_version = program.structure_version
            session.add(row)
        return program

    def list_modules(self, program_id: str) -> list[Module]:
        with self._session() as session:
            rows = session.scalars(
                select(ModuleRow).where(ModuleRow.program_id == program_id).order_by(ModuleRow.position)
            )
            return [_module_from_row(row) for row in rows]

    def list_weeks(self, program_id: str) -> list[Week]:
        with self._session() as session:
            rows = session.scalars(
                select(WeekRow).where(WeekRow.program_id == program_id).order_by(WeekRow.week_number)
            )
            return [_week_from_row(row) for row in rows]

    def save_structure(self, plan: ReindexPlan, expected_version: int) -> Program:
        with self._session() as session:
            # Compare-and-set on the version so concurrent saves cannot both win
            result = session.execute(
                update(ProgramRow)
                .where(ProgramRow.id == plan.program_id, ProgramRow.structure_version == expected_version)
                .values(structure_version=expected_version + 1)
            )
            if result.rowcount != 1:
                row = session.get(ProgramRow, plan.program_id)
                if row is None:
                    raise NotFoundError(f"Program {plan.program_id} not found")
                raise StructureConflictError(
                    f"Program {plan.program_id} structure is at version {row.structure_version}, "
                    f"edit was based on {expected_version}"
                )

            session.execute(delete(WeekRow).where(WeekRow.program_id == plan.program_id))
            session.execute(delete(ModuleRow).where(ModuleRow.program_id == plan.program_id))
            session.add_all(
                ModuleRow(
                    id=module.id,
                    program_id=plan.program_id,
                    title=module.title,
                    position=module.order,
                    start_day_index=module.start_day_index,
                    end_day_index=module.end_day_index,
                )
                for module in plan.modules
            )
            session.add_all(
                WeekRow(
                    id=week.id,
                    program_id=plan.program_id,
                    module_id=week.module_id,
                    week_number=week.week_number,
                    position=week.order,
                    start_day_index=week.start_day_index,
                    end_day_index=week.end_day_index,
                    content=_dump(week.content),
                )
                for week in plan.weeks
            )
            session.flush()
            program = _program_from_row(session.get(ProgramRow, plan.program_id))

        logger.info(
            "Saved program structure",
            program_id=plan.program_id,
            structure_version=program.structure_version,
            weeks=len(plan.weeks),
        )
        return program

    # Content

    def get_template_week(self, program_id: str, week_number: int) -> WeekContent | None:
        with self._session() as session:
            row = session.scalars(
                select(WeekRow).where(WeekRow.program_id == program_id, WeekRow.week_number == week_number)
            ).first()
            return WeekContent.model_validate(row.content or {}) if row else None

    def _get_day(self, program_id: str, layer: Layer, owner_id: str, day_index: int) -> DayRecord | None:
        with self._session() as session:
            row = session.scalars(
                select(DayContentRow).where(
                    DayContentRow.program_id == program_id,
                    DayContentRow.layer == layer.value,
                    DayContentRow.owner_id == owner_id,
                    DayContentRow.day_index == day_index,
                )
            ).first()
            return _day_from_row(row) if row else None

    def _get_week_override(self, program_id: str, layer: Layer, owner_id: str, week_id: str) -> WeekRecord | None:
        with self._session() as session:
            row = session.scalars(
                select(WeekOverrideRow).where(
                    WeekOverrideRow.program_id == program_id,
                    WeekOverrideRow.layer == layer.value,
                    WeekOverrideRow.owner_id == owner_id,
                    WeekOverrideRow.week_id == week_id,
                )
            ).first()
            return _week_override_from_row(row) if row else None

    def get_template_day(self, program_id: str, day_index: int) -> DayRecord | None:
        return self._get_day(program_id, Layer.TEMPLATE, TEMPLATE_OWNER, day_index)

    def get_cohort_week(self, program_id: str, cohort_id: str, week_id: str) -> WeekRecord | None:
        return self._get_week_override(program_id, Layer.COHORT, cohort_id, week_id)

    def get_cohort_day(self, program_id: str, cohort_id: str, day_index: int) -> DayRecord | None:
        return self._get_day(program_id, Layer.COHORT, cohort_id, day_index)

    def get_client_week(self, program_id: str, enrollment_id: str, week_id: str) -> WeekRecord | None:
        return self._get_week_override(program_id, Layer.CLIENT, enrollment_id, week_id)

    def get_client_day(self, program_id: str, enrollment_id: str, day_index: int) -> DayRecord | None:
        return self._get_day(program_id, Layer.CLIENT, enrollment_id, day_index)

    def put_template_week(self, program_id: str, week_number: int, content: WeekContent) -> WeekContent:
        with self._session() as session:
            row = session.scalars(
                select(WeekRow).where(WeekRow.program_id == program_id, WeekRow.week_number == week_number)
            ).first()
            if row is None:
                raise NotFoundError(f"Program {program_id} has no week {week_number}")
            row.content = _dump(content)
        return content

    def _upsert_day(self, record: DayRecord) -> DayRecord:
        owner_id = _owner(record)
        with self._session() as session:
            row = session.scalars(
                select(DayContentRow).where(
                    DayContentRow.program_id == record.program_id,
                    DayContentRow.layer == record.layer.value,
                    DayContentRow.owner_id == owner_id,
                    DayContentRow.day_index == record.day_index,
                )
            ).first()
            if row is None:
                row = DayContentRow(
                    program_id=record.program_id,
                    layer=record.layer.value,
                    owner_id=owner_id,
                    day_index=record.day_index,
                )
                session.add(row)
            row.content = _dump(record.content)
        return record

    def put_template_day(self, record: DayRecord) -> DayRecord:
        if record.layer != Layer.TEMPLATE:
            raise ValueError("Template day records cannot carry a cohort_id or enrollment_id")
        return self._upsert_day(record)

    def put_day_override(self, record: DayRecord) -> DayRecord:
        if record.layer == Layer.TEMPLATE:
            raise ValueError("Override records need a cohort_id or an enrollment_id")
        return self._upsert_day(record)

    def put_week_override(self, record: WeekRecord) -> WeekRecord:
        if record.layer == Layer.TEMPLATE:
            raise ValueError("Override records need a cohort_id or an enrollment_id")
        owner_id = _owner(record)
        with self._session() as session:
            row = session.scalars(
                select(WeekOverrideRow).where(
                    WeekOverrideRow.program_id == record.program_id,
                    WeekOverrideRow.layer == record.layer.value,
                    WeekOverrideRow.owner_id == owner_id,
                    WeekOverrideRow.week_id == record.week_id,
                )
            ).first()
            if row is None:
                row = WeekOverrideRow(
                    program_id=record.program_id,
                    layer=record.layer.value,
                    owner_id=owner_id,
                    week_id=record.week_id,
                )
                session.add(row)
            row.content = _dump(record.content)
        return record

    def create_day_override_if_absent(self, record: DayRecord) -> DayRecord:
        if record.layer == Layer.TEMPLATE:
            raise ValueError("Override records need a cohort_id or an enrollment_id")
        owner_id = _owner(record)
        try:
            with self._session() as session:
                session.add(
                    DayContentRow(
                        program_id=record.program_id,
                        layer=record.layer.value,
                        owner_id=owner_id,
                        day_index=record.day_index,
                        content=_dump(record.content),
                    )
                )
        except IntegrityError:
            logger.debug(
                "Day override already exists",
                program_id=record.program_id,
                layer=record.layer,
                day_index=record.day_index,
            )
            return self._get_day(record.program_id, record.layer, owner_id, record.day_index)
        return record

    def create_week_override_if_absent(self, record: WeekRecord) -> WeekRecord:
        if record.layer == Layer.TEMPLATE:
            raise ValueError("Override records need a cohort_id or an enrollment_id")
        owner_id = _owner(record)
        try:
            with self._session() as session:
                session.add(
                    WeekOverrideRow(
                        program_id=record.program_id,
                        layer=record.layer.value,
                        owner_id=owner_id,
                        week_id=record.week_id,
                        content=_dump(record.content),
                    )
                )
        except IntegrityError:
            logger.debug(
                "Week override already exists",
                program_id=record.program_id,
                layer=record.layer,
                week_id=record.week_id,
            )
            return self._get_week_override(record.program_id, record.layer, owner_id, record.week_id)
        return record

    def list_days(
        self,
        program_id: str,
        start_day_index: int,
        end_day_index: int,
        *,
        cohort_id: str | None = None,
        enrollment_id: str | None = None,
    ) -> list[DayRecord]:
        if enrollment_id is not None:
            layer, owner_id = Layer.CLIENT, enrollment_id
        elif cohort_id is not None:
            layer, owner_id = Layer.COHORT, cohort_id
        else:
            layer, owner_id = Layer.TEMPLATE, TEMPLATE_OWNER
        with self._session() as session:
            rows = session.scalars(
                select(DayContentRow)
                .where(
                    DayContentRow.program_id == program_id,
                    DayContentRow.layer == layer.value,
                    DayContentRow.owner_id == owner_id,
                    DayContentRow.day_index >= start_day_index,
                    DayContentRow.day_index <= end_day_index,
                )
                .order_by(DayContentRow.day_index)
            )
            return [_day_from_row(row) for row in rows]

    # Enrollments

    def get_enrollment(self, enrollment_id: str) -> Enrollment | None:
        with self._session() as session:
            row = session.get(EnrollmentRow, enrollment_id)
            return _enrollment_from_row(row) if row else None

    def get_cohort(self, cohort_id: str) -> Cohort | None:
        with self._session() as session:
            row = session.get(CohortRow, cohort_id)
            return _cohort_from_row(row) if row else None

    def list_active_enrollments(self, user_id: str) -> list[Enrollment]:
        with self._session() as session:
            rows = session.scalars(
                select(EnrollmentRow).where(
                    EnrollmentRow.user_id == user_id,
                    EnrollmentRow.status == EnrollmentStatus.ACTIVE.value,
                )
            )
            return [_enrollment_from_row(row) for row in rows]

    def put_enrollment(self, enrollment: Enrollment) -> Enrollment:
        with self._session() as session:
            row = session.get(EnrollmentRow, enrollment.id) or EnrollmentRow(id=enrollment.id)
            row.user_id = enrollment.user_id
            row.program_id = enrollment.program_id
            row.cohort_id = enrollment.cohort_id
            row.status = enrollment.status.value
            row.started_at = _to_datetime(enrollment.started_at)
            row.cycle_started_at = [value.isoformat() for value in enrollment.cycle_started_at]
            session.add(row)
        return enrollment

    def put_cohort(self, cohort: Cohort) -> Cohort:
        with self._session() as session:
            row = session.get(CohortRow, cohort.id) or CohortRow(id=cohort.id)
            row.program_id = cohort.program_id
            row.name = cohort.name
            row.start_date = cohort.start_date
            row.end_date = cohort.end_date
            row.enrollment_open = cohort.enrollment_open
            row.max_enrollment = cohort.max_enrollment
            row.current_enrollment = cohort.current_enrollment
            session.add(row)
        return cohort

    def delete_enrollment(self, enrollment_id: str) -> None:
        with self._session() as session:
            row = session.get(EnrollmentRow, enrollment_id)
            if row is None:
                raise NotFoundError(f"Enrollment {enrollment_id} not found")
            session.delete(row)
            session.execute(
                delete(DayContentRow).where(
                    DayContentRow.layer == Layer.CLIENT.value, DayContentRow.owner_id == enrollment_id
                )
            )
            session.execute(
                delete(WeekOverrideRow).where(
                    WeekOverrideRow.layer == Layer.CLIENT.value, WeekOverrideRow.owner_id == enrollment_id
                )
            )
        logger.info("Deleted enrollment and its client overrides", enrollment_id=enrollment_id)

"""Effective content resolution over the template, cohort and client layers.

Reads merge every layer that applies to a scope. Writes go only to the
scope's own layer: a cohort or client edit never mutates the template.
Override records are sparse and created on first edit.
"""

from typing import Any

from loguru import logger
from pydantic import BaseModel

from program_engine.content.merge import merge_layers
from program_engine.content.types import ContentScope, EffectiveDay, EffectiveWeek
from program_engine.errors import NotFoundError, OutOfRangeError
from program_engine.models.content import DayContent, DayRecord, Layer, WeekContent, WeekRecord
from program_engine.models.program import Program, Week
from program_engine.stores.base import ContentStore, EnrollmentStore, ProgramStructureStore


def _validated_changes(content_type: type[BaseModel], changes: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial update and return it as typed field values.

    Raises:
        ValueError: If ``changes`` names a field the content type does not have
    """
    unknown = sorted(set(changes) - set(content_type.model_fields))
    if unknown:
        raise ValueError(f"Unknown {content_type.__name__} fields: {unknown}")
    validated = content_type.model_validate(changes)
    return {name: getattr(validated, name) for name in changes}


class ContentResolver:
    """Resolves and edits day and week content for a scope."""

    def __init__(
        self,
        structure_store: ProgramStructureStore,
        content_store: ContentStore,
        enrollment_store: EnrollmentStore,
    ) -> None:
        self.structure_store = structure_store
        self.content_store = content_store
        self.enrollment_store = enrollment_store

    def _get_program(self, program_id: str) -> Program:
        program = self.structure_store.get_program(program_id)
        if program is None:
            raise NotFoundError(f"Program {program_id} not found")
        return program

    def _layer_keys(self, program: Program, scope: ContentScope) -> tuple[str | None, str | None]:
        """Return (cohort_id, enrollment_id) of the layers a scope reads."""
        if scope.layer == Layer.TEMPLATE:
            return None, None

        if scope.layer == Layer.COHORT:
            if scope.cohort_id is None:
                raise ValueError("Cohort scope requires a cohort_id")
            cohort = self.enrollment_store.get_cohort(scope.cohort_id)
            if cohort is None or cohort.program_id != program.id:
                raise NotFoundError(f"Cohort {scope.cohort_id} not found in program {program.id}")
            return cohort.id, None

        if scope.enrollment_id is None:
            raise ValueError("Client scope requires an enrollment_id")
        enrollment = self.enrollment_store.get_enrollment(scope.enrollment_id)
        if enrollment is None or enrollment.program_id != program.id:
            raise NotFoundError(f"Enrollment {scope.enrollment_id} not found in program {program.id}")
        return enrollment.cohort_id, enrollment.id

    @staticmethod
    def _check_day(program: Program, day_index: int) -> None:
        if not 1 <= day_index <= program.length_days:
            raise OutOfRangeError(f"Day {day_index} is outside 1..{program.length_days} of program {program.id}")

    @staticmethod
    def _check_week(program: Program, week_number: int) -> None:
        if not 1 <= week_number <= program.week_count:
            raise OutOfRangeError(f"Week {week_number} is outside 1..{program.week_count} of program {program.id}")

    def _get_week(self, program: Program, week_number: int) -> Week:
        """Structural week currently holding this number."""
        self._check_week(program, week_number)
        for week in self.structure_store.list_weeks(program.id):
            if week.week_number == week_number:
                return week
        raise NotFoundError(f"Program {program.id} has no week {week_number}")

    def _day_layers(
        self,
        program_id: str,
        day_index: int,
        cohort_id: str | None,
        enrollment_id: str | None,
    ) -> list[tuple[Layer, DayContent | None]]:
        template = self.content_store.get_template_day(program_id, day_index)
        layers: list[tuple[Layer, DayContent | None]] = [(Layer.TEMPLATE, template.content if template else None)]
        if cohort_id is not None:
            cohort = self.content_store.get_cohort_day(program_id, cohort_id, day_index)
            layers.append((Layer.COHORT, cohort.content if cohort else None))
        if enrollment_id is not None:
            client = self.content_store.get_client_day(program_id, enrollment_id, day_index)
            layers.append((Layer.CLIENT, client.content if client else None))
        return layers

    def _week_layers(
        self,
        week: Week,
        cohort_id: str | None,
        enrollment_id: str | None,
    ) -> list[tuple[Layer, WeekContent | None]]:
        # Overrides follow the week node, not its current number
        layers: list[tuple[Layer, WeekContent | None]] = [(Layer.TEMPLATE, week.content)]
        if cohort_id is not None:
            cohort = self.content_store.get_cohort_week(week.program_id, cohort_id, week.id)
            layers.append((Layer.COHORT, cohort.content if cohort else None))
        if enrollment_id is not None:
            client = self.content_store.get_client_week(week.program_id, enrollment_id, week.id)
            layers.append((Layer.CLIENT, client.content if client else None))
        return layers

    def resolve_day(self, program_id: str, day_index: int, scope: ContentScope) -> EffectiveDay:
        """Resolve the effective content of a day.

        Args:
            program_id: Program identifier
            day_index: 1-based day index
            scope: Template, cohort or client scope

        Returns:
            EffectiveDay with merged content and per-field provenance

        Raises:
            NotFoundError: If the program, cohort or enrollment does not exist
            OutOfRangeError: If day_index is outside the program
        """
        program = self._get_program(program_id)
        self._check_day(program, day_index)
        cohort_id, enrollment_id = self._layer_keys(program, scope)

        content, provenance = merge_layers(
            DayContent, self._day_layers(program_id, day_index, cohort_id, enrollment_id)
        )
        logger.debug(
            "Resolved day content",
            program_id=program_id,
            day_index=day_index,
            layer=scope.layer,
            customized=sorted(name for name, layer in provenance.items() if layer != Layer.TEMPLATE),
        )
        return EffectiveDay(
            program_id=program_id,
            day_index=day_index,
            content=content,
            provenance=provenance,
            scope=scope,
        )

    def resolve_week(self, program_id: str, week_number: int, scope: ContentScope) -> EffectiveWeek:
        """Resolve the effective content of a week.

        Raises:
            NotFoundError: If the program, cohort or enrollment does not exist
            OutOfRangeError: If week_number is outside the program
        """
        program = self._get_program(program_id)
        week = self._get_week(program, week_number)
        cohort_id, enrollment_id = self._layer_keys(program, scope)

        content, provenance = merge_layers(WeekContent, self._week_layers(week, cohort_id, enrollment_id))
        return EffectiveWeek(
            program_id=program_id,
            week_number=week_number,
            content=content,
            provenance=provenance,
            scope=scope,
        )

    def resolve_days(self, program_id: str, start_day_index: int, end_day_index: int, scope: ContentScope) -> list[EffectiveDay]:
        """Resolve an inclusive range of days."""
        return [self.resolve_day(program_id, day_index, scope) for day_index in range(start_day_index, end_day_index + 1)]

    def save_day(
        self,
        program_id: str,
        day_index: int,
        scope: ContentScope,
        changes: dict[str, Any],
        *,
        seed_from_lower: bool = False,
    ) -> EffectiveDay:
        """Write day content to the scope's own layer.

        Args:
            program_id: Program identifier
            day_index: 1-based day index
            scope: Layer to write
            changes: Field name -> new value. None clears the field at this
                layer so it inherits again.
            seed_from_lower: When creating a new override, copy the content
                currently inherited from the lower layers before applying
                ``changes``

        Returns:
            The day resolved for ``scope`` after the write
        """
        program = self._get_program(program_id)
        self._check_day(program, day_index)
        cohort_id, enrollment_id = self._layer_keys(program, scope)
        update = _validated_changes(DayContent, changes)

        if scope.layer == Layer.TEMPLATE:
            existing = self.content_store.get_template_day(program_id, day_index)
            record = existing or DayRecord(program_id=program_id, day_index=day_index)
            record = record.model_copy(update={"content": record.content.model_copy(update=update)})
            self.content_store.put_template_day(record)
            logger.info("Saved template day", program_id=program_id, day_index=day_index, fields=sorted(update))
            return self.resolve_day(program_id, day_index, scope)

        # Overrides are keyed on the scope's own layer only
        key = {"cohort_id": cohort_id} if scope.layer == Layer.COHORT else {"enrollment_id": enrollment_id}
        getter = (
            self.content_store.get_cohort_day if scope.layer == Layer.COHORT else self.content_store.get_client_day
        )
        existing = getter(program_id, next(iter(key.values())), day_index)

        if existing is None:
            base = DayContent()
            if seed_from_lower:
                lower_layers = self._day_layers(program_id, day_index, cohort_id, enrollment_id)[:-1]
                base, _ = merge_layers(DayContent, lower_layers)
            candidate = DayRecord(program_id=program_id, day_index=day_index, content=base.model_copy(update=update), **key)
            stored = self.content_store.create_day_override_if_absent(candidate)
            if stored != candidate:
                # Another writer created the override first; apply on top of theirs
                stored = stored.model_copy(update={"content": stored.content.model_copy(update=update)})
                self.content_store.put_day_override(stored)
        else:
            self.content_store.put_day_override(
                existing.model_copy(update={"content": existing.content.model_copy(update=update)})
            )

        logger.info(
            "Saved day override",
            program_id=program_id,
            day_index=day_index,
            layer=scope.layer,
            fields=sorted(update),
        )
        return self.resolve_day(program_id, day_index, scope)

    def save_week(
        self,
        program_id: str,
        week_number: int,
        scope: ContentScope,
        changes: dict[str, Any],
        *,
        seed_from_lower: bool = False,
    ) -> EffectiveWeek:
        """Write week content to the scope's own layer.

        Same semantics as ``save_day``. Template writes go to the structural
        week node with this number.
        """
        program = self._get_program(program_id)
        week = self._get_week(program, week_number)
        cohort_id, enrollment_id = self._layer_keys(program, scope)
        update = _validated_changes(WeekContent, changes)

        if scope.layer == Layer.TEMPLATE:
            self.content_store.put_template_week(program_id, week_number, week.content.model_copy(update=update))
            logger.info("Saved template week", program_id=program_id, week_number=week_number, fields=sorted(update))
            return self.resolve_week(program_id, week_number, scope)

        key = {"cohort_id": cohort_id} if scope.layer == Layer.COHORT else {"enrollment_id": enrollment_id}
        getter = (
            self.content_store.get_cohort_week if scope.layer == Layer.COHORT else self.content_store.get_client_week
        )
        existing = getter(program_id, next(iter(key.values())), week.id)

        if existing is None:
            base = WeekContent()
            if seed_from_lower:
                lower_layers = self._week_layers(week, cohort_id, enrollment_id)[:-1]
                base, _ = merge_layers(WeekContent, lower_layers)
            candidate = WeekRecord(program_id=program_id, week_id=week.id, content=base.model_copy(update=update), **key)
            stored = self.content_store.create_week_override_if_absent(candidate)
            if stored != candidate:
                stored = stored.model_copy(update={"content": stored.content.model_copy(update=update)})
                self.content_store.put_week_override(stored)
        else:
            self.content_store.put_week_override(
                existing.model_copy(update={"content": existing.content.model_copy(update=update)})
            )

        logger.info(
            "Saved week override",
            program_id=program_id,
            week_number=week_number,
            week_id=week.id,
            layer=scope.layer,
            fields=sorted(update),
        )
        return self.resolve_week(program_id, week_number, scope)

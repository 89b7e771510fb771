"""Structural reindexer.

Recomputes every week's and module's day range from module order and week
order. The result must be a gapless partition of days 1..length_days:

- weeks are numbered 1..N in module order, then week order
- each week owns ``days_per_week`` consecutive days, the last one truncated
  at ``length_days``
- a module's range is the min/max of its weeks, or None when it holds none

Day content is keyed by day index and is not moved by a reindex.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence

from loguru import logger

from program_engine.errors import StructuralInvariantViolation
from program_engine.models.program import Module, Program, Week
from program_engine.structure.types import ReindexPlan


def order_structure(modules: Iterable[Module], weeks: Iterable[Week]) -> tuple[list[Module], list[Week]]:
    """Sort modules by order and weeks by (module order, week order).

    Raises:
        StructuralInvariantViolation: If a week references an unknown module
    """
    ordered_modules = sorted(modules, key=lambda module: module.order)
    by_module: dict[str, list[Week]] = defaultdict(list)
    module_ids = {module.id for module in ordered_modules}
    orphans = []
    for week in weeks:
        if week.module_id not in module_ids:
            orphans.append(week.id)
            continue
        by_module[week.module_id].append(week)
    if orphans:
        raise StructuralInvariantViolation([f"Weeks reference unknown modules: {sorted(orphans)}"])

    ordered_weeks: list[Week] = []
    for module in ordered_modules:
        ordered_weeks.extend(sorted(by_module[module.id], key=lambda week: week.order))
    return ordered_modules, ordered_weeks


def _module_ranges(modules: Sequence[Module], weeks: Sequence[Week]) -> dict[str, tuple[int | None, int | None]]:
    ranges: dict[str, tuple[int | None, int | None]] = {module.id: (None, None) for module in modules}
    for week in weeks:
        start, end = ranges[week.module_id]
        ranges[week.module_id] = (
            week.start_day_index if start is None else min(start, week.start_day_index),
            week.end_day_index if end is None else max(end, week.end_day_index),
        )
    return ranges


def validate_partition(program: Program, modules: Sequence[Module], weeks: Sequence[Week]) -> None:
    """Check that modules and weeks partition the program's days.

    Args:
        program: Program the structure belongs to
        modules: Modules with their stored ranges
        weeks: Weeks with their stored ranges and numbers

    Raises:
        StructuralInvariantViolation: Listing every gap, overlap, numbering
            or containment problem found
    """
    details: list[str] = []
    module_by_id = {module.id: module for module in modules}
    ordered = sorted(weeks, key=lambda week: week.week_number)

    if len(ordered) < program.week_count:
        details.append(f"{len(ordered)} weeks cannot cover {program.length_days} days (need {program.week_count})")
    elif len(ordered) > program.week_count:
        details.append(f"{len(ordered) - program.week_count} surplus weeks would receive no days")

    expected_start = 1
    for position, week in enumerate(ordered, start=1):
        if week.week_number != position:
            details.append(f"Week {week.id} has number {week.week_number}, expected {position}")
        if week.module_id not in module_by_id:
            details.append(f"Week {week.id} references unknown module {week.module_id}")
        if week.start_day_index is None or week.end_day_index is None:
            details.append(f"Week {week.id} has no day range")
            continue
        if week.start_day_index > expected_start:
            details.append(f"Gap before week {week.week_number}: days {expected_start}..{week.start_day_index - 1}")
        elif week.start_day_index < expected_start:
            details.append(f"Week {week.week_number} overlaps the previous week at day {week.start_day_index}")
        if week.end_day_index < week.start_day_index:
            details.append(f"Week {week.week_number} ends before it starts")
        if week.day_count > program.days_per_week:
            details.append(f"Week {week.week_number} spans {week.day_count} days, more than {program.days_per_week}")
        expected_start = week.end_day_index + 1

    if ordered and expected_start - 1 != program.length_days:
        details.append(f"Weeks end at day {expected_start - 1}, program has {program.length_days} days")

    if not details:
        ranges = _module_ranges(modules, ordered)
        previous_end = 0
        for module in sorted(modules, key=lambda item: item.order):
            start, end = ranges[module.id]
            if (module.start_day_index, module.end_day_index) != (start, end):
                details.append(
                    f"Module {module.id} range {module.start_day_index}..{module.end_day_index} "
                    f"does not match its weeks {start}..{end}"
                )
            if start is not None:
                if start <= previous_end:
                    details.append(f"Module {module.id} overlaps the previous module at day {start}")
                previous_end = end

    if details:
        logger.warning("Structural invariant violated", program_id=program.id, violations=len(details))
        raise StructuralInvariantViolation(details)


def reindex(
    program: Program,
    modules: Iterable[Module],
    weeks: Iterable[Week],
    *,
    previous_weeks: Iterable[Week] | None = None,
    previous_modules: Iterable[Module] | None = None,
) -> ReindexPlan:
    """Recompute day ranges and numbering for a program's structure.

    Inputs are not mutated; the plan holds fresh copies.

    Args:
        program: Program being reindexed
        modules: Modules carrying the intended order
        weeks: Weeks carrying their intended module and order
        previous_weeks: Stored weeks before the edit, used to report created,
            deleted and changed weeks. Defaults to ``weeks``.
        previous_modules: Stored modules before the edit. Defaults to ``modules``.

    Returns:
        ReindexPlan with the new structure

    Raises:
        StructuralInvariantViolation: If the result would not partition the
            program's days
    """
    modules = list(modules)
    weeks = list(weeks)
    before_weeks = {week.id: week for week in (weeks if previous_weeks is None else previous_weeks)}
    before_modules = {module.id: module for module in (modules if previous_modules is None else previous_modules)}

    ordered_modules, ordered_weeks = order_structure(modules, weeks)
    if len(ordered_weeks) != program.week_count:
        kind = "too few" if len(ordered_weeks) < program.week_count else "surplus"
        raise StructuralInvariantViolation(
            [f"{kind} weeks: {len(ordered_weeks)} weeks for {program.length_days} days (need {program.week_count})"]
        )

    new_weeks: list[Week] = []
    order_in_module: dict[str, int] = defaultdict(int)
    cursor = 1
    for week_number, week in enumerate(ordered_weeks, start=1):
        end = min(cursor + program.days_per_week - 1, program.length_days)
        new_weeks.append(
            week.model_copy(
                update={
                    "program_id": program.id,
                    "week_number": week_number,
                    "order": order_in_module[week.module_id],
                    "start_day_index": cursor,
                    "end_day_index": end,
                }
            )
        )
        order_in_module[week.module_id] += 1
        cursor = end + 1

    ranges = _module_ranges(ordered_modules, new_weeks)
    new_modules = [
        module.model_copy(
            update={
                "order": position,
                "start_day_index": ranges[module.id][0],
                "end_day_index": ranges[module.id][1],
            }
        )
        for position, module in enumerate(ordered_modules)
    ]

    validate_partition(program, new_modules, new_weeks)

    changed_weeks = tuple(
        week.id for week in new_weeks if week.id in before_weeks and before_weeks[week.id] != week
    )
    changed_modules = tuple(
        module.id for module in new_modules if module.id in before_modules and before_modules[module.id] != module
    )
    new_week_ids = {week.id for week in new_weeks}
    new_module_ids = {module.id for module in new_modules}
    plan = ReindexPlan(
        program_id=program.id,
        modules=tuple(new_modules),
        weeks=tuple(new_weeks),
        changed_module_ids=changed_modules,
        changed_week_ids=changed_weeks,
        created_week_ids=tuple(week.id for week in new_weeks if week.id not in before_weeks),
        deleted_week_ids=tuple(week_id for week_id in before_weeks if week_id not in new_week_ids),
        deleted_module_ids=tuple(module_id for module_id in before_modules if module_id not in new_module_ids),
    )
    logger.debug(
        "Reindexed program structure",
        program_id=program.id,
        weeks=len(new_weeks),
        changed_weeks=len(plan.changed_week_ids),
        changed_modules=len(plan.changed_module_ids),
    )
    return plan

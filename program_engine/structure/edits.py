"""Structural edits.

Each edit takes the current program structure, applies one change to module
or week ordering, and returns the reindexed plan. Nothing is persisted here;
pass the plan to ``ProgramStructureStore.save_structure``.
"""

import uuid
from collections.abc import Callable, Sequence

from loguru import logger

from program_engine.errors import NotFoundError
from program_engine.models.program import Module, Program, Week
from program_engine.structure.reindex import order_structure, reindex
from program_engine.structure.types import ModuleDeletePolicy, ReindexPlan


def _new_week_id() -> str:
    return uuid.uuid4().hex


def _require_permutation(expected: Sequence[str], given: Sequence[str], what: str) -> None:
    if len(given) != len(expected) or set(given) != set(expected):
        raise ValueError(f"New {what} order must be a permutation of {sorted(expected)}, got {list(given)}")


def _renumber(weeks: Sequence[Week], module_id: str, week_ids: Sequence[str]) -> list[Week]:
    """Set ``order`` of a module's weeks to their position in ``week_ids``."""
    position = {week_id: index for index, week_id in enumerate(week_ids)}
    return [
        week.model_copy(update={"module_id": module_id, "order": position[week.id]}) if week.id in position else week
        for week in weeks
    ]


def _module_week_ids(modules: Sequence[Module], weeks: Sequence[Week], module_id: str) -> list[str]:
    _, ordered_weeks = order_structure(modules, weeks)
    return [week.id for week in ordered_weeks if week.module_id == module_id]


def _get_module(modules: Sequence[Module], module_id: str) -> Module:
    for module in modules:
        if module.id == module_id:
            return module
    raise NotFoundError(f"Module {module_id} not found")


def reorder_modules(
    program: Program, modules: Sequence[Module], weeks: Sequence[Week], module_ids: Sequence[str]
) -> ReindexPlan:
    """Reorder modules; weeks travel with their module.

    Raises:
        ValueError: If module_ids is not a permutation of the program's modules
    """
    _require_permutation([module.id for module in modules], module_ids, "module")
    position = {module_id: index for index, module_id in enumerate(module_ids)}
    reordered = [module.model_copy(update={"order": position[module.id]}) for module in modules]
    return reindex(program, reordered, weeks, previous_modules=modules)


def reorder_weeks(
    program: Program,
    modules: Sequence[Module],
    weeks: Sequence[Week],
    module_id: str,
    week_ids: Sequence[str],
) -> ReindexPlan:
    """Reorder the weeks inside one module.

    Raises:
        NotFoundError: If the module does not exist
        ValueError: If week_ids is not a permutation of the module's weeks
    """
    _get_module(modules, module_id)
    _require_permutation(_module_week_ids(modules, weeks, module_id), week_ids, "week")
    return reindex(program, modules, _renumber(weeks, module_id, week_ids), previous_weeks=weeks)


def move_week(
    program: Program,
    modules: Sequence[Module],
    weeks: Sequence[Week],
    week_id: str,
    target_module_id: str,
    position: int,
) -> ReindexPlan:
    """Move a week into a module at a position (clamped to the module's bounds).

    Raises:
        NotFoundError: If the week or the target module does not exist
    """
    _get_module(modules, target_module_id)
    if week_id not in {week.id for week in weeks}:
        raise NotFoundError(f"Week {week_id} not found")

    target_ids = [candidate for candidate in _module_week_ids(modules, weeks, target_module_id) if candidate != week_id]
    position = max(0, min(position, len(target_ids)))
    target_ids.insert(position, week_id)
    return reindex(program, modules, _renumber(weeks, target_module_id, target_ids), previous_weeks=weeks)


def insert_module(
    program: Program,
    modules: Sequence[Module],
    weeks: Sequence[Week],
    module: Module,
    position: int,
) -> ReindexPlan:
    """Insert an empty module at a position among the existing modules.

    Raises:
        ValueError: If a module with the same id already exists
    """
    if module.id in {existing.id for existing in modules}:
        raise ValueError(f"Module {module.id} already exists")
    ordered = sorted(modules, key=lambda existing: existing.order)
    position = max(0, min(position, len(ordered)))
    ordered.insert(
        position,
        module.model_copy(update={"program_id": program.id, "start_day_index": None, "end_day_index": None}),
    )
    reordered = [existing.model_copy(update={"order": index}) for index, existing in enumerate(ordered)]
    return reindex(program, reordered, weeks, previous_modules=modules)


def delete_module(
    program: Program,
    modules: Sequence[Module],
    weeks: Sequence[Week],
    module_id: str,
    policy: ModuleDeletePolicy = ModuleDeletePolicy.MOVE,
    *,
    new_week_id: Callable[[], str] = _new_week_id,
) -> ReindexPlan:
    """Delete a module.

    With ``move`` its weeks are appended to the previous surviving module, or
    prepended to the next one when it was first. With ``delete`` its weeks
    are removed and blank weeks are appended to the last surviving module
    until the program is covered again.

    Raises:
        NotFoundError: If the module does not exist
        ValueError: If ``move`` is requested and no other module exists
        StructuralInvariantViolation: If no module would remain to hold weeks
    """
    _get_module(modules, module_id)
    ordered_modules, ordered_weeks = order_structure(modules, weeks)
    survivors = [module for module in ordered_modules if module.id != module_id]
    orphaned = [week.id for week in ordered_weeks if week.module_id == module_id]

    if policy == ModuleDeletePolicy.MOVE:
        if not survivors:
            raise ValueError(f"Cannot move weeks out of {module_id}: it is the only module")
        index = [module.id for module in ordered_modules].index(module_id)
        if index > 0:
            target_id = ordered_modules[index - 1].id
            target_ids = _module_week_ids(modules, weeks, target_id) + orphaned
        else:
            target_id = ordered_modules[index + 1].id
            target_ids = orphaned + _module_week_ids(modules, weeks, target_id)
        remaining = _renumber(weeks, target_id, target_ids)
        logger.debug("Moving weeks of deleted module", module_id=module_id, target_module_id=target_id, weeks=len(orphaned))
    else:
        remaining = [week for week in weeks if week.module_id != module_id]
        if survivors:
            remaining = _backfill_weeks(program, survivors, remaining, new_week_id)

    return reindex(program, survivors, remaining, previous_weeks=weeks, previous_modules=modules)


def _backfill_weeks(
    program: Program,
    modules: Sequence[Module],
    weeks: Sequence[Week],
    new_week_id: Callable[[], str],
) -> list[Week]:
    """Append blank weeks to the last module until the program is covered."""
    weeks = list(weeks)
    missing = program.week_count - len(weeks)
    if missing <= 0:
        return weeks

    last_module = max(modules, key=lambda module: module.order)
    next_order = 1 + max((week.order for week in weeks if week.module_id == last_module.id), default=-1)
    for offset in range(missing):
        weeks.append(
            Week(
                id=new_week_id(),
                program_id=program.id,
                module_id=last_module.id,
                order=next_order + offset,
            )
        )
    return weeks


def sync_program_weeks(
    program: Program,
    modules: Sequence[Module],
    weeks: Sequence[Week],
    *,
    new_week_id: Callable[[], str] = _new_week_id,
) -> ReindexPlan:
    """Bring the week count in line with the program length.

    Missing weeks are appended, blank, to the last module. Surplus weeks are
    removed from the end only while they carry no content; a surplus week
    with content is left in place and the reindex rejects the structure.

    Raises:
        ValueError: If the program has no modules
        StructuralInvariantViolation: If surplus weeks with content remain
    """
    if not modules:
        raise ValueError(f"Program {program.id} has no modules to hold weeks")

    _, ordered_weeks = order_structure(modules, weeks)
    while len(ordered_weeks) > program.week_count and ordered_weeks[-1].content.is_empty():
        ordered_weeks.pop()
    synced = _backfill_weeks(program, modules, ordered_weeks, new_week_id)

    logger.debug(
        "Synced program weeks",
        program_id=program.id,
        before=len(weeks),
        after=len(synced),
        target=program.week_count,
    )
    return reindex(program, modules, synced, previous_weeks=weeks)

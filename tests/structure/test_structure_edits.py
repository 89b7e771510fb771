"""Tests for structural edits."""

import itertools
import random

import pytest

from program_engine.errors import NotFoundError, StructuralInvariantViolation
from program_engine.models.content import WeekContent
from program_engine.models.program import Module
from program_engine.structure.edits import (
    delete_module,
    insert_module,
    move_week,
    reorder_modules,
    reorder_weeks,
    sync_program_weeks,
)
from program_engine.structure.types import ModuleDeletePolicy


def _week_layout(weeks) -> list[tuple[str, str, int, int, int]]:
    return [(week.id, week.module_id, week.week_number, week.start_day_index, week.end_day_index) for week in weeks]


def _layout(plan) -> list[tuple[str, str, int, int, int]]:
    return _week_layout(plan.weeks)


def _ids(prefix: str = "new"):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def test_reorder_modules_moves_weeks_with_their_module(program, structure):
    modules, weeks = structure
    plan = reorder_modules(program, modules, weeks, ["m2", "m1"])

    assert _layout(plan) == [
        ("w3", "m2", 1, 1, 7),
        ("w4", "m2", 2, 8, 14),
        ("w1", "m1", 3, 15, 21),
        ("w2", "m1", 4, 22, 28),
    ]
    assert [(module.id, module.order, module.start_day_index) for module in plan.modules] == [
        ("m2", 0, 1),
        ("m1", 1, 15),
    ]
    assert set(plan.changed_module_ids) == {"m1", "m2"}


def test_reorder_modules_requires_permutation(program, structure):
    modules, weeks = structure
    with pytest.raises(ValueError, match="permutation"):
        reorder_modules(program, modules, weeks, ["m1"])


def test_reorder_weeks_within_module(program, structure):
    modules, weeks = structure
    plan = reorder_weeks(program, modules, weeks, "m1", ["w2", "w1"])

    assert [week.id for week in plan.weeks] == ["w2", "w1", "w3", "w4"]
    assert plan.weeks[0].start_day_index == 1
    assert set(plan.changed_week_ids) == {"w1", "w2"}
    assert plan.changed_module_ids == ()


def test_reorder_weeks_rejects_foreign_week(program, structure):
    modules, weeks = structure
    with pytest.raises(ValueError):
        reorder_weeks(program, modules, weeks, "m1", ["w1", "w3"])
    with pytest.raises(NotFoundError):
        reorder_weeks(program, modules, weeks, "missing", [])


def test_move_week_between_modules(program, structure):
    modules, weeks = structure
    plan = move_week(program, modules, weeks, "w1", "m2", 1)

    assert _layout(plan) == [
        ("w2", "m1", 1, 1, 7),
        ("w3", "m2", 2, 8, 14),
        ("w1", "m2", 3, 15, 21),
        ("w4", "m2", 4, 22, 28),
    ]
    assert [(module.start_day_index, module.end_day_index) for module in plan.modules] == [(1, 7), (8, 28)]


def test_move_week_clamps_position(program, structure):
    modules, weeks = structure
    plan = move_week(program, modules, weeks, "w1", "m2", 99)
    assert plan.weeks[-1].id == "w1"

    plan = move_week(program, modules, weeks, "w4", "m1", -5)
    assert plan.weeks[0].id == "w4"


def test_move_week_unknown_ids(program, structure):
    modules, weeks = structure
    with pytest.raises(NotFoundError):
        move_week(program, modules, weeks, "missing", "m2", 0)
    with pytest.raises(NotFoundError):
        move_week(program, modules, weeks, "w1", "missing", 0)


def test_insert_module_between_existing(program, structure):
    modules, weeks = structure
    plan = insert_module(program, modules, weeks, Module(id="m-new", program_id=program.id, title="Bonus"), 1)

    assert [module.id for module in plan.modules] == ["m1", "m-new", "m2"]
    inserted = plan.modules[1]
    assert inserted.start_day_index is None
    assert _layout(plan) == _week_layout(weeks)

    with pytest.raises(ValueError, match="already exists"):
        insert_module(program, modules, weeks, Module(id="m1", program_id=program.id), 0)


def test_delete_module_moves_weeks_to_previous_module(program, structure):
    modules, weeks = structure
    plan = delete_module(program, modules, weeks, "m2", ModuleDeletePolicy.MOVE)

    assert [module.id for module in plan.modules] == ["m1"]
    assert plan.deleted_module_ids == ("m2",)
    assert plan.deleted_week_ids == ()
    assert [week.id for week in plan.weeks] == ["w1", "w2", "w3", "w4"]
    assert all(week.module_id == "m1" for week in plan.weeks)
    assert [week.order for week in plan.weeks] == [0, 1, 2, 3]
    assert (plan.modules[0].start_day_index, plan.modules[0].end_day_index) == (1, 28)


def test_delete_first_module_prepends_weeks_to_next(program, structure):
    modules, weeks = structure
    plan = delete_module(program, modules, weeks, "m1")

    assert [week.id for week in plan.weeks] == ["w1", "w2", "w3", "w4"]
    assert all(week.module_id == "m2" for week in plan.weeks)
    assert plan.modules[0].order == 0


def test_delete_only_module_with_move_is_rejected(program, make_structure):
    modules, weeks = make_structure(program, [4])
    with pytest.raises(ValueError, match="only module"):
        delete_module(program, modules, weeks, "m1", ModuleDeletePolicy.MOVE)


def test_delete_only_module_with_delete_leaves_nothing_to_hold_weeks(program, make_structure):
    modules, weeks = make_structure(program, [4])
    with pytest.raises(StructuralInvariantViolation):
        delete_module(program, modules, weeks, "m1", ModuleDeletePolicy.DELETE)


def test_delete_module_cascade_backfills_blank_weeks(program, structure):
    modules, weeks = structure
    plan = delete_module(program, modules, weeks, "m1", ModuleDeletePolicy.DELETE, new_week_id=_ids())

    assert set(plan.deleted_week_ids) == {"w1", "w2"}
    assert plan.created_week_ids == ("new1", "new2")
    assert [week.id for week in plan.weeks] == ["w3", "w4", "new1", "new2"]
    assert all(week.content.is_empty() for week in plan.weeks[2:])
    assert plan.weeks[-1].end_day_index == 28


def test_sync_adds_weeks_when_program_grows(program, structure):
    modules, weeks = structure
    longer = program.model_copy(update={"length_days": 33})

    plan = sync_program_weeks(longer, modules, weeks, new_week_id=_ids())

    assert plan.created_week_ids == ("new1",)
    assert _layout(plan)[-1] == ("new1", "m2", 5, 29, 33)


def test_sync_trims_trailing_empty_weeks_when_program_shrinks(program, structure):
    modules, weeks = structure
    shorter = program.model_copy(update={"length_days": 14})

    plan = sync_program_weeks(shorter, modules, weeks)

    assert [week.id for week in plan.weeks] == ["w1", "w2"]
    assert set(plan.deleted_week_ids) == {"w3", "w4"}
    assert plan.modules[1].start_day_index is None


def test_sync_keeps_surplus_weeks_with_content(program, structure):
    modules, weeks = structure
    weeks = [*weeks[:3], weeks[3].model_copy(update={"content": WeekContent(name="Finale")})]
    shorter = program.model_copy(update={"length_days": 21})

    with pytest.raises(StructuralInvariantViolation, match="surplus"):
        sync_program_weeks(shorter, modules, weeks)


def test_sync_requires_a_module(program):
    with pytest.raises(ValueError):
        sync_program_weeks(program, [], [])


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_random_edit_sequences_keep_partition(program, make_structure, seed):
    rng = random.Random(seed)
    modules, weeks = make_structure(program.model_copy(update={"length_days": 60}), [3, 2, 4])
    program = program.model_copy(update={"length_days": 60})

    for _ in range(40):
        edit = rng.choice(["modules", "weeks", "move"])
        if edit == "modules":
            module_ids = [module.id for module in modules]
            rng.shuffle(module_ids)
            plan = reorder_modules(program, modules, weeks, module_ids)
        elif edit == "weeks":
            module = rng.choice(modules)
            week_ids = [week.id for week in weeks if week.module_id == module.id]
            rng.shuffle(week_ids)
            plan = reorder_weeks(program, modules, weeks, module.id, week_ids)
        else:
            plan = move_week(program, modules, weeks, rng.choice(weeks).id, rng.choice(modules).id, rng.randint(0, 5))
        modules, weeks = list(plan.modules), list(plan.weeks)

        assert [week.week_number for week in weeks] == list(range(1, 10))
        assert weeks[0].start_day_index == 1
        assert weeks[-1].end_day_index == 60
        assert all(later.start_day_index == earlier.end_day_index + 1 for earlier, later in zip(weeks, weeks[1:]))

"""Structural plan types.

A ReindexPlan is the complete, validated structure a program should have
after an edit. Plans are computed without touching storage and applied
by a ProgramStructureStore in one atomic write.
"""

from dataclasses import dataclass
from enum import StrEnum

from program_engine.models.program import Module, Week


class ModuleDeletePolicy(StrEnum):
    DELETE = "delete"  # cascade the module's weeks
    MOVE = "move"  # hand weeks to the previous surviving module, else the next


@dataclass(frozen=True)
class ReindexPlan:
    """Result of a reindex.

    Attributes:
        program_id: Program the plan applies to
        modules: Final modules in order, with derived day ranges
        weeks: Final weeks in global order, with day ranges and week numbers
        changed_module_ids: Modules whose order, range or title changed
        changed_week_ids: Weeks whose module, order, number or range changed
        created_week_ids: Weeks that did not exist before the edit
        deleted_week_ids: Weeks removed by the edit
        deleted_module_ids: Modules removed by the edit
    """

    program_id: str
    modules: tuple[Module, ...]
    weeks: tuple[Week, ...]
    changed_module_ids: tuple[str, ...] = ()
    changed_week_ids: tuple[str, ...] = ()
    created_week_ids: tuple[str, ...] = ()
    deleted_week_ids: tuple[str, ...] = ()
    deleted_module_ids: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(
            self.changed_module_ids
            or self.changed_week_ids
            or self.created_week_ids
            or self.deleted_week_ids
            or self.deleted_module_ids
        )

    def weeks_for_module(self, module_id: str) -> list[Week]:
        return [week for week in self.weeks if week.module_id == module_id]

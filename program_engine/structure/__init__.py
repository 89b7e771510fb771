"""Program structure: reindexing and structural edits."""

from program_engine.structure.edits import (
    delete_module,
    insert_module,
    move_week,
    reorder_modules,
    reorder_weeks,
    sync_program_weeks,
)
from program_engine.structure.reindex import reindex, validate_partition
from program_engine.structure.types import ModuleDeletePolicy, ReindexPlan

__all__ = [
    "ModuleDeletePolicy",
    "ReindexPlan",
    "delete_module",
    "insert_module",
    "move_week",
    "reindex",
    "reorder_modules",
    "reorder_weeks",
    "sync_program_weeks",
    "validate_partition",
]

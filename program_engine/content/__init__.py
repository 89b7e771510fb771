"""Layered content resolution."""

from program_engine.content.merge import merge_layers
from program_engine.content.resolver import ContentResolver
from program_engine.content.types import ContentScope, EffectiveDay, EffectiveWeek

__all__ = ["ContentResolver", "ContentScope", "EffectiveDay", "EffectiveWeek", "merge_layers"]

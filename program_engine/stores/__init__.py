"""Store interfaces and the in-memory implementation."""

from program_engine.stores.base import ContentStore, EnrollmentStore, ProgramStructureStore
from program_engine.stores.memory import InMemoryProgramStore

__all__ = ["ContentStore", "EnrollmentStore", "InMemoryProgramStore", "ProgramStructureStore"]

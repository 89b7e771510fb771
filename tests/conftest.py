"""Root conftest for all tests.

Shared fixtures: programs with a reindexed structure, an in-memory store
seeded with them, and a SQLite-backed SQL store.
"""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from program_engine.content.resolver import ContentResolver
from program_engine.db.session import init_db
from program_engine.db.store import SqlProgramStore
from program_engine.models.content import ProgramTask, WeekContent
from program_engine.models.enrollment import Cohort, Enrollment, EnrollmentStatus
from program_engine.models.program import Module, Program, Week
from program_engine.stores.memory import InMemoryProgramStore
from program_engine.structure.reindex import reindex


def build_structure(program: Program, weeks_per_module: list[int]) -> tuple[list[Module], list[Week]]:
    """Modules m1..mN holding w1..wK, reindexed to cover the program."""
    modules = [
        Module(id=f"m{position + 1}", program_id=program.id, title=f"Module {position + 1}", order=position)
        for position in range(len(weeks_per_module))
    ]
    weeks = []
    counter = 1
    for module, count in zip(modules, weeks_per_module):
        for order in range(count):
            weeks.append(Week(id=f"w{counter}", program_id=program.id, module_id=module.id, order=order))
            counter += 1
    plan = reindex(program, modules, weeks)
    return list(plan.modules), list(plan.weeks)


@pytest.fixture
def make_structure():
    """Factory for reindexed structures, see build_structure."""
    return build_structure


@pytest.fixture
def program() -> Program:
    """28-day program with weekends: four 7-day weeks."""
    return Program(id="prog-1", name="Foundations", length_days=28)


@pytest.fixture
def weekday_program() -> Program:
    """30-day weekday-only program: six 5-day weeks."""
    return Program(id="prog-weekday", name="Workweek", length_days=30, include_weekends=False)


@pytest.fixture
def evergreen_program() -> Program:
    return Program(id="prog-evergreen", name="Daily Practice", length_days=21, duration_type="evergreen")


@pytest.fixture
def structure(program: Program) -> tuple[list[Module], list[Week]]:
    """Two modules of two weeks each for the 28-day program."""
    return build_structure(program, [2, 2])


@pytest.fixture
def memory_store(program: Program, structure: tuple[list[Module], list[Week]]) -> InMemoryProgramStore:
    """In-memory store with the 28-day program, a cohort and two enrollments."""
    store = InMemoryProgramStore()
    store.put_program(program)
    modules, weeks = structure
    store.save_structure(reindex(program, modules, weeks), expected_version=program.structure_version)
    store.put_template_week(
        program.id,
        1,
        WeekContent(
            name="Week One",
            theme="Getting started",
            weekly_tasks=[ProgramTask(id="t-a", label="Journal"), ProgramTask(id="t-b", label="Walk")],
        ),
    )
    store.put_cohort(Cohort(id="cohort-1", program_id=program.id, name="Spring"))
    store.put_enrollment(
        Enrollment(
            id="enr-cohort",
            user_id="user-1",
            program_id=program.id,
            cohort_id="cohort-1",
            status=EnrollmentStatus.ACTIVE,
            started_at=date(2024, 1, 1),
        )
    )
    store.put_enrollment(
        Enrollment(
            id="enr-solo",
            user_id="user-2",
            program_id=program.id,
            status=EnrollmentStatus.ACTIVE,
            started_at=date(2024, 1, 1),
        )
    )
    return store


@pytest.fixture
def resolver(memory_store: InMemoryProgramStore) -> ContentResolver:
    return ContentResolver(memory_store, memory_store, memory_store)


@pytest.fixture
def sql_store() -> SqlProgramStore:
    """SqlProgramStore on an isolated in-memory SQLite database."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield SqlProgramStore(session_local)
    finally:
        engine.dispose()

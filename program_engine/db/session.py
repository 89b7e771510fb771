from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from program_engine.config.settings import settings
from program_engine.db.models import Base

# Lazy initialization to avoid import-time database connections
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def _get_engine() -> Engine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        logger.info(f"Initializing database engine: {settings.database_url}")

        connect_args = {}
        if "sqlite" in settings.database_url.lower():
            logger.warning("Using SQLite database (local development only)")
            connect_args = {"check_same_thread": False}

        _engine = create_engine(
            settings.database_url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        logger.info("Database engine initialized")
    return _engine


def get_engine() -> Engine:
    """Get or create the database engine (public API)."""
    return _get_engine()


def _get_session_local() -> sessionmaker[Session]:
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
        logger.info("Database session factory initialized")
    return _SessionLocal


def init_db(engine: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine or _get_engine())
    logger.info("Database schema ensured")


@contextmanager
def session_scope(factory: Callable[[], Session]) -> Generator[Session, None, None]:
    """Run a unit of work: commit on success, roll back on any error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        logger.debug("Error in session, rolling back")
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a database session bound to the configured engine."""
    with session_scope(_get_session_local()) as session:
        yield session

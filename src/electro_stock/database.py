"""Database utilities."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import get_settings
from .errors import PersistenceError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base model for SQLAlchemy mappings."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sqlite_engine(path: Path, *, timeout: float = 30.0, echo: bool = False) -> Engine:
    """Create an engine for the SQLite file at *path*.

    Foreign keys are switched on for every connection so that deleting a
    product cascades to its movements and movement rows must reference an
    existing profile. Writers that find the database locked wait up to
    *timeout* seconds before failing.
    """

    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": timeout},
        echo=echo,
        future=True,
    )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


_engine: Engine | None = None


def get_engine() -> Engine:
    """Return a lazily created engine instance."""

    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_sqlite_engine(
            settings.database_path,
            timeout=settings.database_timeout,
            echo=settings.echo_sql,
        )
        logger.debug("Created engine for %s", settings.database_path)
    return _engine


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


SessionLocal = make_sessionmaker(get_engine())


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session: Session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def commit_or_raise(db: Session, action: str) -> None:
    """Commit *db*, rolling back and raising ``PersistenceError`` on failure."""

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError(f"Could not {action}: {exc.__class__.__name__}") from exc


def init_database(engine: Engine | None = None) -> None:
    """Ensure that the database schema exists."""

    from . import models  # noqa: F401 - ensure models are imported

    Base.metadata.create_all(bind=engine or get_engine())

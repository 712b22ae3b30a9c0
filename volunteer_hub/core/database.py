"""Database configuration and session management for SQLite.

This module configures the SQLite database engine with settings suited to
the registration ledger: WAL mode so dashboard reads never wait on
registrations, foreign key enforcement, and a busy timeout so concurrent
registrations queue for the write lock instead of failing outright.

SQLite Configuration Choices:
    - **WAL (Write-Ahead Logging)**: Readers see the last committed state
      while a registration transaction holds the write lock.

    - **Foreign Keys**: Disabled by default in SQLite. Enabled so a
      registration can never point at a missing event, and a comment can
      never point at a missing registration.

    - **Busy timeout**: The capacity check is a conditional UPDATE, which
      takes SQLite's write lock. Competing writers wait up to
      ``SQLITE_BUSY_TIMEOUT`` seconds for it rather than raising
      "database is locked".

    - **check_same_thread=False**: FastAPI may hand a session to a
      different worker thread than the one that opened its connection.
"""

from contextlib import contextmanager

from sqlalchemy import event as sa_event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from volunteer_hub.core.config import settings

SQLITE_BUSY_TIMEOUT = 30

connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_sqlite(target: Engine) -> Engine:
    """Attach the connection pragmas to an engine (no-op for other backends)."""
    if target.dialect.name == "sqlite":
        sa_event.listen(target, "connect", set_sqlite_pragma)
    return target


engine = configure_sqlite(
    create_engine(
        settings.database_url,
        connect_args=connect_args if settings.database_url.startswith("sqlite") else {},
        echo=settings.debug,  # Log SQL statements when DEBUG=true
    )
)


def create_db_and_tables(bind: Engine | None = None):
    """Create all database tables."""
    # Import models so that they register with SQLModel.metadata
    import volunteer_hub.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session):
    """Commit the work done in the block, or roll all of it back.

    Any exception raised inside the block, including the ledger's own
    capacity and validation errors, discards every write made in it.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise

"""Database configuration and session management for SQLite.

The engine is tuned for a small single-process web app:

    - **WAL (Write-Ahead Logging)**: readers keep working while the
      calendar refresh job or a timeline drag commit is writing.

    - **Foreign Keys**: SQLite ships with them disabled. Events reference
      categories and routine checks reference routines, so we turn them on.

    - **check_same_thread=False**: FastAPI may hand a session to a worker
      thread other than the one that opened the connection.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from timediary.core.config import settings

connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    Pragmas are connection-level, so every pooled connection needs them.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session


def get_user_id() -> int:
    """Dependency for the owner of the current request.

    Authentication is handled outside this service; every request acts on
    behalf of the configured default owner.
    """
    return settings.default_user_id

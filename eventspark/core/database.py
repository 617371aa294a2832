"""Database configuration and session management.

The default deployment uses SQLite. When the URL points at SQLite the
engine is configured the same way for every connection:

    - **WAL (Write-Ahead Logging)**: readers are not blocked while an admin
      edit or a decision write is in progress.

    - **Foreign Keys**: disabled by default in SQLite, enabled here so any
      future relations are enforced.

    - **check_same_thread=False**: FastAPI may hand a session created on one
      thread to a handler running on another.

Any other URL (e.g. PostgreSQL) is passed to SQLAlchemy unchanged.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from eventspark.core.config import settings

is_sqlite = settings.database_url.startswith("sqlite")
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


if is_sqlite:

    @sa_event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Configure SQLite pragmas on each new connection.

        These settings are connection-level, so they must be set each time
        a new connection is established from the pool.
        """
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    # Import models so they are registered on the metadata
    import eventspark.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session

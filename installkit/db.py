"""installkit - Database engine and session management.

SQLAlchemy sync engine/session factory. SQLite by default, any SQLAlchemy
URL otherwise.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker

from installkit.config import DATABASE_URL
from installkit.models import Base


def get_database_url(db_path: str | Path | None = None) -> str:
    """Get the database URL.

    Args:
        db_path: Optional override. A filesystem path becomes a SQLite URL,
            anything containing "://" is used as-is. Defaults to
            config.DATABASE_URL.

    Returns:
        SQLAlchemy connection URL string.
    """
    if db_path is None:
        return DATABASE_URL
    if "://" in str(db_path):
        return str(db_path)
    return f"sqlite:///{db_path}"


def create_db_engine(db_path: str | Path | None = None, echo: bool = False) -> Engine:
    """Create SQLAlchemy engine.

    Args:
        db_path: Optional path or URL override for the database.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = get_database_url(db_path)
    connect_args = {}
    if url.startswith("sqlite"):
        # The API serves requests from a thread pool; one connection per unit of work.
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=echo, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the given engine.

    Args:
        engine: SQLAlchemy Engine instance.

    Returns:
        Configured sessionmaker.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(db_path: str | Path | None = None, echo: bool = False) -> tuple[Engine, sessionmaker]:
    """Initialize the database: create engine, session factory, and all tables.

    This is idempotent - safe to call multiple times. The installer does not
    depend on it; the schema may also be created by other tooling.

    Args:
        db_path: Optional path or URL override for the database.
        echo: If True, log all SQL statements.

    Returns:
        Tuple of (engine, SessionFactory).
    """
    engine = create_db_engine(db_path, echo=echo)
    SessionFactory = create_session_factory(engine)

    # Create all tables (idempotent via checkfirst=True default)
    Base.metadata.create_all(engine)

    return engine, SessionFactory

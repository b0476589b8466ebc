"""installkit - Counter cache.

Small key/value cache backed by its own SQLite file, so counters such as the
failed-login count survive process restarts. Entries never expire; they are
overwritten explicitly.

Values are stored JSON-encoded.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy import String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class CacheBase(DeclarativeBase):
    """Metadata for the cache file (separate from the application schema)."""

    pass


class CacheEntry(CacheBase):
    """A single cached value."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class SqliteCounterCache:
    """Key/value cache stored in a SQLite file.

    Args:
        path: Cache database file. Parent directories are created.
            ":memory:" keeps the cache in-process, shared by all threads.
    """

    def __init__(self, path: str | Path):
        if str(path) == ":memory:":
            # One connection for every thread, otherwise each thread would
            # see its own empty in-memory database
            self._engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(
                f"sqlite:///{path}", connect_args={"check_same_thread": False}
            )
        CacheBase.metadata.create_all(self._engine)

    def contains(self, key: str) -> bool:
        """Return True if a value is stored under key."""
        with Session(self._engine) as session:
            return session.get(CacheEntry, key) is not None

    def fetch(self, key: str) -> Any:
        """Return the value stored under key, or None."""
        with Session(self._engine) as session:
            entry = session.get(CacheEntry, key)
            if entry is None:
                return None
            return json.loads(entry.value)

    def save(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        encoded = json.dumps(value)
        with Session(self._engine) as session:
            entry = session.get(CacheEntry, key)
            if entry is None:
                session.add(CacheEntry(key=key, value=encoded))
            else:
                entry.value = encoded
            session.commit()
        logger.debug("Cache save %s=%s", key, encoded)

    def close(self) -> None:
        """Release the underlying connections."""
        self._engine.dispose()

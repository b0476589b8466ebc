"""Shared pytest fixtures for installkit tests.

Every test gets its own application root (templates, logs, local config,
cache file) and its own SQLite database in a temporary directory.
"""

import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from installkit.cache import SqliteCounterCache
from installkit.db import create_db_engine, init_db
from installkit.localconfig import LocalConfig
from installkit.templates import TemplateCatalog
from installkit.tool import InstallTool
from services.install_api import main as install_api


@pytest.fixture
def install_root():
    """Create a temporary application root with an empty templates directory.

    Yields:
        Path: The application root.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "templates").mkdir()
        yield root


@pytest.fixture
def temp_db(install_root):
    """Create a database with the full application schema.

    Yields:
        tuple: (db_path, engine, SessionFactory)
    """
    db_path = install_root / "var" / "test.db"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine, SessionFactory = init_db(db_path)
    yield db_path, engine, SessionFactory
    engine.dispose()


@pytest.fixture
def empty_db(install_root):
    """Create an engine on a database without any tables.

    Yields:
        Engine: SQLAlchemy engine.
    """
    db_path = install_root / "var" / "empty.db"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    yield engine
    engine.dispose()


@pytest.fixture
def counter_cache(install_root):
    """Create a counter cache file inside the application root."""
    cache = SqliteCounterCache(install_root / "var" / "cache" / "cache.db")
    yield cache
    cache.close()


@pytest.fixture
def build_tool(install_root, counter_cache):
    """Return a helper building an InstallTool with collaborators rooted in install_root."""

    def _build(engine, **kwargs) -> InstallTool:
        return InstallTool(
            engine=engine,
            cache=counter_cache,
            config=LocalConfig(install_root / "system" / "config" / "localconfig.json"),
            catalog=TemplateCatalog(install_root / "templates"),
            root_dir=install_root,
            log_dir=install_root / "var" / "logs",
            **kwargs,
        )

    return _build


@pytest.fixture
def tool(temp_db, build_tool):
    """Install tool bound to the fully created schema."""
    _, engine, _ = temp_db
    return build_tool(engine)


@pytest.fixture
def write_template(install_root):
    """Return a helper writing a template file below the templates root."""

    def _write(name: str, content: str) -> Path:
        path = install_root / "templates" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def client(tool, monkeypatch):
    """Create a FastAPI test client serving the test install tool.

    Yields:
        tuple: (test_client, tool)
    """
    monkeypatch.setattr(install_api, "_tool_factory", lambda: tool)
    monkeypatch.setattr(install_api, "_database_name", "main")

    with TestClient(install_api.app) as test_client:
        yield test_client, tool


@pytest.fixture
def row_count():
    """Return a helper counting the rows of a table with plain SQL."""

    def _count(engine, table_name: str) -> int:
        with engine.connect() as conn:
            return conn.execute(text(f"SELECT COUNT(*) FROM {table_name}")).scalar_one()

    return _count

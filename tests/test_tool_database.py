"""Tests for the install tool database predicates."""

import pytest
from sqlalchemy import text

from installkit.db import create_db_engine
from installkit.models import Module, Page


def _execute(engine, *statements):
    with engine.begin() as conn:
        for statement in statements:
            conn.exec_driver_sql(statement)


class TestCanConnectToDatabase:
    """Tests for the connectivity probe."""

    def test_existing_schema(self, tool):
        """SQLite exposes its database as the "main" schema."""
        assert tool.can_connect_to_database("main") is True

    def test_unknown_schema(self, tool):
        """A non-existent schema name should yield False, not raise."""
        assert tool.can_connect_to_database("no_such_schema") is False

    def test_empty_schema_name(self, tool):
        assert tool.can_connect_to_database(None) is False
        assert tool.can_connect_to_database("") is False

    def test_unreachable_database(self, install_root, build_tool):
        """A database that cannot be opened should yield False, not raise."""
        engine = create_db_engine(install_root / "missing" / "dir" / "nope.db")
        try:
            tool = build_tool(engine)
            assert tool.can_connect_to_database("main") is False
        finally:
            engine.dispose()

    def test_no_engine(self, build_tool):
        """Without a configured engine nothing is reachable."""
        tool = build_tool(None)
        assert tool.can_connect_to_database("main") is False

    def test_set_connection(self, temp_db, build_tool):
        """set_connection should swap the probed engine."""
        _, engine, _ = temp_db
        tool = build_tool(None)
        tool.set_connection(engine)
        assert tool.can_connect_to_database("main") is True


class TestIsFreshInstallation:
    """Tests for fresh installation detection."""

    def test_marker_table_absent(self, empty_db, build_tool):
        """No marker table means fresh."""
        assert build_tool(empty_db).is_fresh_installation() is True

    def test_marker_absent_short_circuits(self, empty_db, build_tool):
        """Absent marker table should not require the content table."""
        _execute(empty_db, "CREATE TABLE other (id INTEGER)")
        assert build_tool(empty_db).is_fresh_installation() is True

    def test_marker_present_no_content(self, tool):
        """Schema without pages is still fresh."""
        assert tool.is_fresh_installation() is True

    def test_marker_present_with_content(self, temp_db, tool):
        """A single page row makes the installation non-fresh."""
        _, _, SessionFactory = temp_db
        session = SessionFactory()
        try:
            session.add(Page(title="Home", alias="index"))
            session.commit()
        finally:
            session.close()

        assert tool.is_fresh_installation() is False

    def test_modules_alone_do_not_count(self, temp_db, tool):
        """Only content rows decide freshness."""
        _, _, SessionFactory = temp_db
        session = SessionFactory()
        try:
            session.add(Module(name="Navigation", type="navigation"))
            session.commit()
        finally:
            session.close()

        assert tool.is_fresh_installation() is True

    def test_unreadable_schema_is_not_fresh(self, install_root, build_tool):
        """When tables cannot be listed, no destructive import should be offered."""
        engine = create_db_engine(install_root / "missing" / "dir" / "nope.db")
        try:
            assert build_tool(engine).is_fresh_installation() is False
        finally:
            engine.dispose()


class TestHasOldDatabase:
    """Tests for legacy schema detection."""

    def test_layout_table_absent(self, empty_db, build_tool):
        assert build_tool(empty_db).has_old_database() is False

    def test_current_schema(self, tool):
        """The schema created by init_db is current."""
        assert tool.has_old_database() is False

    @pytest.mark.parametrize("declared", ["varchar(1022)", "VARCHAR(1022)", "blob"])
    def test_allowed_types(self, empty_db, build_tool, declared):
        _execute(empty_db, f"CREATE TABLE tl_layout (id INTEGER PRIMARY KEY, sections {declared})")
        assert build_tool(empty_db).has_old_database() is False

    @pytest.mark.parametrize("declared", ["text", "varchar(255)", "mediumtext", "varchar(1024)"])
    def test_legacy_types(self, empty_db, build_tool, declared):
        _execute(empty_db, f"CREATE TABLE tl_layout (id INTEGER PRIMARY KEY, sections {declared})")
        assert build_tool(empty_db).has_old_database() is True

    def test_missing_column_is_legacy(self, empty_db, build_tool):
        """A layout table without the sections column predates it."""
        _execute(empty_db, "CREATE TABLE tl_layout (id INTEGER PRIMARY KEY, name varchar(255))")
        assert build_tool(empty_db).has_old_database() is True

    def test_recomputed_on_every_call(self, empty_db, build_tool):
        """Schema changes should be seen without recreating the tool."""
        tool = build_tool(empty_db)
        assert tool.has_old_database() is False

        _execute(empty_db, "CREATE TABLE tl_layout (id INTEGER PRIMARY KEY, sections text)")
        assert tool.has_old_database() is True


class TestHandleRunOnce:
    """Tests for the run-once gate."""

    def test_noop_without_log_table(self, empty_db, build_tool):
        """The runner must not be invoked before the log table exists."""
        calls = []
        tool = build_tool(empty_db, runonce=lambda: calls.append("ran") or ["x.sql"])

        assert tool.handle_run_once() == []
        assert calls == []

    def test_delegates_with_log_table(self, temp_db, build_tool):
        """With the log table in place the runner is invoked once per call."""
        _, engine, _ = temp_db
        calls = []
        tool = build_tool(engine, runonce=lambda: calls.append("ran") or ["x.sql"])

        assert tool.handle_run_once() == ["x.sql"]
        assert calls == ["ran"]

    def test_default_runner_uses_runonce_directory(self, tool, temp_db, install_root):
        """Without an injected runner, scripts in root/runonce are executed."""
        _, engine, _ = temp_db
        runonce_dir = install_root / "runonce"
        runonce_dir.mkdir()
        (runonce_dir / "001_rename.sql").write_text(
            "UPDATE tl_module SET type = 'navigation' WHERE type = 'nav';\n"
        )

        assert tool.handle_run_once() == ["001_rename.sql"]
        assert not (runonce_dir / "001_rename.sql").exists()

        with engine.connect() as conn:
            logged = conn.execute(text("SELECT text FROM tl_log")).scalars().all()
        assert logged == ["File 001_rename.sql ran once"]


class TestHasTable:
    """Tests for has_table."""

    def test_existing_and_missing(self, tool):
        assert tool.has_table("tl_user") is True
        assert tool.has_table("tl_nope") is False

    def test_no_engine(self, build_tool):
        assert build_tool(None).has_table("tl_user") is False


class TestCreateInstallTool:
    """Tests for the create_install_tool factory."""

    def test_paths_follow_root(self, temp_db, install_root):
        from installkit.tool import create_install_tool

        db_path, _, _ = temp_db
        tool = create_install_tool(f"sqlite:///{db_path}", install_root)
        try:
            assert tool.can_connect_to_database("main") is True
            assert tool.is_fresh_installation() is True
            assert tool.log_dir == install_root / "var" / "logs"

            tool.increase_login_count()
            assert (install_root / "var" / "cache" / "installkit-cache.db").exists()
        finally:
            tool.cache.close()
            tool.engine.dispose()

    def test_unusable_url_leaves_engine_unset(self, install_root):
        from installkit.tool import create_install_tool

        tool = create_install_tool("nodriver://localhost/app", install_root)
        try:
            assert tool.engine is None
            assert tool.can_connect_to_database("app") is False
        finally:
            tool.cache.close()

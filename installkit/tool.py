"""installkit - Install tool orchestrator.

Answers the readiness questions an operator-facing driver asks while taking
an installation from an empty database to a usable one, and performs the
corresponding actions:

- Lock gate: failed-login counter kept in the counter cache
- Environment: license acceptance, file system writability
- Database: connectivity, fresh installation, legacy schema, run-once scripts
- Content: seed template listing and import
- Accounts: first administrator

All collaborators are injected. The tool holds no state of its own beyond
them, so constructing a fresh one per request is fine.

Gate predicates never raise: failures collapse to the safe answer at this
boundary. Mutations raise InstallError subclasses.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import Engine
from sqlalchemy.exc import ArgumentError

from installkit.config import (
    CACHE_DB_PATH,
    CONTENT_TABLE,
    CURRENT_SECTION_TYPES,
    DATABASE_URL,
    INSTALL_ROOT,
    LEGACY_COLUMN,
    LEGACY_TABLE,
    LICENSE_ACCEPTED_KEY,
    LOCALCONFIG_PATH,
    LOG_DIR,
    LOG_TABLE,
    LOGIN_COUNT_KEY,
    LOGIN_LOCK_THRESHOLD,
    MARKER_TABLE,
    TABLE_PREFIX,
    TEMPLATES_DIR,
)
from installkit.admin import AdminProvisioner
from installkit.cache import SqliteCounterCache
from installkit.db import create_db_engine
from installkit.errorlog import log_exception
from installkit.errors import DatabaseUnavailableError
from installkit.inspector import SchemaInspector
from installkit.localconfig import LocalConfig
from installkit.runonce import RunOnceRunner
from installkit.seed import ImportReport, SeedImporter
from installkit.templates import TemplateCatalog

logger = logging.getLogger(__name__)


class CounterCache(Protocol):
    def contains(self, key: str) -> bool: ...

    def fetch(self, key: str) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...


class ConfigStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def persist(self, key: str, value: Any) -> None: ...

    def save(self) -> None: ...


class InstallTool:
    """Installation orchestrator for one (database, application root) pair.

    Args:
        engine: Target database engine, or None if not configured yet.
        cache: Counter cache holding the failed-login count.
        config: Configuration store.
        catalog: Seed template catalog.
        root_dir: Application root (writability check, run-once scripts).
        log_dir: Directory of the fatal error logs.
        runonce: Callable running pending run-once scripts. Defaults to a
            RunOnceRunner over root_dir/runonce on the current engine.
        table_prefix: Prefix of the tables emptied before a template import.
        lock_threshold: Failed logins after which the tool is locked.
        clock: Time source for account timestamps.
    """

    def __init__(
        self,
        engine: Engine | None,
        cache: CounterCache,
        config: ConfigStore,
        catalog: TemplateCatalog,
        root_dir: str | Path,
        log_dir: str | Path,
        *,
        runonce: Callable[[], list[str]] | None = None,
        table_prefix: str = TABLE_PREFIX,
        lock_threshold: int = LOGIN_LOCK_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        self._engine = engine
        self.cache = cache
        self.config = config
        self.catalog = catalog
        self.root_dir = Path(root_dir)
        self.log_dir = Path(log_dir)
        self._runonce = runonce
        self.table_prefix = table_prefix
        self.lock_threshold = lock_threshold
        self.clock = clock

    # --- Lock gate ---

    def login_count(self) -> int:
        """Return the failed-login count (0 when none was recorded)."""
        if not self.cache.contains(LOGIN_COUNT_KEY):
            return 0
        return int(self.cache.fetch(LOGIN_COUNT_KEY) or 0)

    def is_locked(self) -> bool:
        """Return True once the failed-login count reaches the threshold."""
        return self.login_count() >= self.lock_threshold

    def increase_login_count(self) -> int:
        """Record a failed login and return the new count.

        Read-then-write; concurrent operators may lose an increment.
        """
        count = self.login_count() + 1
        self.cache.save(LOGIN_COUNT_KEY, count)
        logger.info("Failed install tool login #%d", count)
        return count

    def reset_login_count(self) -> None:
        self.cache.save(LOGIN_COUNT_KEY, 0)
        logger.info("Install tool login count reset")

    # --- Environment ---

    def should_accept_license(self) -> bool:
        return not self.config.get(LICENSE_ACCEPTED_KEY)

    def can_write_files(self) -> bool:
        """Return True if the application root is writable by this process."""
        return os.access(self.root_dir, os.W_OK)

    # --- Database ---

    def set_connection(self, engine: Engine | None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine | None:
        return self._engine

    def _inspector(self) -> SchemaInspector | None:
        if self._engine is None:
            return None
        return SchemaInspector(self._engine)

    def can_connect_to_database(self, name: str | None) -> bool:
        """Return True if the server is reachable and the schema can be selected."""
        inspector = self._inspector()
        if inspector is None:
            return False

        result = inspector.probe_connection(name)
        if not result.ok:
            logger.debug("Database %r not reachable: %s", name, result.error)
        return result.value

    def has_table(self, name: str) -> bool:
        inspector = self._inspector()
        if inspector is None:
            return False

        result = inspector.has_table(name)
        if not result.ok:
            logger.warning("Cannot list tables: %s", result.error)
        return result.value

    def is_fresh_installation(self) -> bool:
        """Return True if the database holds no application content yet.

        Fresh means the marker table is missing, or it exists and the content
        table has no rows. An unreadable schema is not considered fresh, so no
        destructive template import is offered for it.
        """
        inspector = self._inspector()
        if inspector is None:
            return False

        tables = inspector.table_names()
        if not tables.ok:
            logger.warning("Cannot list tables: %s", tables.error)
            return False
        if MARKER_TABLE not in tables.value:
            return True

        pages = inspector.count_rows(CONTENT_TABLE)
        if not pages.ok:
            logger.warning("Cannot count %s rows: %s", CONTENT_TABLE, pages.error)
            return False
        return pages.value < 1

    def has_old_database(self) -> bool:
        """Return True if the layout table predates the current section format."""
        inspector = self._inspector()
        if inspector is None:
            return False

        if not self.has_table(LEGACY_TABLE):
            return False

        declared = inspector.column_type(LEGACY_TABLE, LEGACY_COLUMN)
        if not declared.ok:
            logger.warning("Cannot inspect %s.%s: %s", LEGACY_TABLE, LEGACY_COLUMN, declared.error)
            return False
        return declared.value not in CURRENT_SECTION_TYPES

    def handle_run_once(self) -> list[str]:
        """Run pending run-once scripts once the log table exists.

        Returns:
            Names of the scripts that ran (empty while the schema is incomplete).
        """
        # The scripts log into tl_log; wait for the tables to be created
        if not self.has_table(LOG_TABLE):
            return []

        if self._runonce is not None:
            return self._runonce()
        return RunOnceRunner(self._engine, self.root_dir / "runonce").run()

    # --- Content ---

    def get_templates(self) -> list[str]:
        return self.catalog.list_templates()

    def import_template(self, template: str, preserve_data: bool = False) -> ImportReport:
        """Import a seed template, emptying prefixed tables first unless preserve_data."""
        if self._engine is None:
            raise DatabaseUnavailableError()
        importer = SeedImporter(self._engine, self.catalog, table_prefix=self.table_prefix)
        return importer.import_template(template, preserve_data=preserve_data)

    # --- Accounts ---

    def has_admin_user(self) -> bool:
        if self._engine is None:
            return False
        return AdminProvisioner(self._engine, clock=self.clock).has_admin_user()

    def persist_admin_user(self, username: str, name: str, email: str, password: str, language: str) -> None:
        if self._engine is None:
            raise DatabaseUnavailableError()
        AdminProvisioner(self._engine, clock=self.clock).persist_admin_user(
            username, name, email, password, language
        )

    # --- Configuration ---

    def get_config(self, key: str) -> Any:
        return self.config.get(key)

    def set_config(self, key: str, value: Any) -> None:
        self.config.set(key, value)

    def persist_config(self, key: str, value: Any) -> None:
        """Set a value and write it to durable storage immediately."""
        self.config.persist(key, value)
        self.config.save()

    # --- Failure logging ---

    def log_exception(self, err: BaseException) -> None:
        log_exception(err, self.log_dir)


def create_install_tool(
    database_url: str | None = None,
    root_dir: str | Path | None = None,
    *,
    cache: CounterCache | None = None,
    config_store: ConfigStore | None = None,
    catalog: TemplateCatalog | None = None,
    **kwargs: Any,
) -> InstallTool:
    """Build an InstallTool from the configured defaults.

    Args:
        database_url: Target database URL (defaults to config.DATABASE_URL).
        root_dir: Application root (defaults to config.INSTALL_ROOT). The
            templates, cache, local config and log paths follow it.
        cache: Counter cache override.
        config_store: Configuration store override.
        catalog: Template catalog override.
        **kwargs: Extra keyword arguments for InstallTool.
    """
    if root_dir is None:
        root = INSTALL_ROOT
        templates_dir, cache_path = TEMPLATES_DIR, CACHE_DB_PATH
        localconfig_path, log_dir = LOCALCONFIG_PATH, LOG_DIR
    else:
        root = Path(root_dir)
        templates_dir = root / "templates"
        cache_path = root / "var" / "cache" / "installkit-cache.db"
        localconfig_path = root / "system" / "config" / "localconfig.json"
        log_dir = root / "var" / "logs"

    try:
        engine = create_db_engine(database_url or DATABASE_URL)
    except (ArgumentError, ImportError) as e:
        logger.warning("Database not configured: %s", e)
        engine = None

    return InstallTool(
        engine=engine,
        cache=cache if cache is not None else SqliteCounterCache(cache_path),
        config=config_store if config_store is not None else LocalConfig(localconfig_path),
        catalog=catalog if catalog is not None else TemplateCatalog(templates_dir),
        root_dir=root,
        log_dir=kwargs.pop("log_dir", log_dir),
        **kwargs,
    )

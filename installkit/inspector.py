"""installkit - Schema inspection.

Every call reads the live schema; nothing is cached, so installation
decisions never act on a stale snapshot.

Failures are returned as CheckResult values instead of raised, letting the
install tool choose a safe default per predicate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Engine, column, func, inspect, select, table, text
from sqlalchemy.exc import CompileError, SQLAlchemyError

logger = logging.getLogger(__name__)

# Dialects where a schema is a database selected with USE
_USE_DIALECTS = ("mysql", "mariadb")


class UnknownSchemaError(LookupError):
    """The requested schema does not exist on the server."""


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a read-only check.

    Attributes:
        value: The checked value (meaningful only when ok).
        error: The exception that prevented the check, if any.
    """

    value: Any
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SchemaInspector:
    """Reads connectivity and schema facts from a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def probe_connection(self, schema_name: str | None) -> CheckResult:
        """Connect and select the named schema.

        Returns:
            CheckResult(True) on success, CheckResult(False, error) otherwise.
        """
        if not schema_name:
            return CheckResult(False, UnknownSchemaError("No schema name given"))

        try:
            conn = self.engine.connect()
        except Exception as e:  # driver-level errors are not always wrapped
            return CheckResult(False, e)

        with conn:
            try:
                if conn.dialect.name in _USE_DIALECTS:
                    quoted = conn.dialect.identifier_preparer.quote_identifier(schema_name)
                    conn.exec_driver_sql(f"USE {quoted}")
                elif schema_name not in inspect(conn).get_schema_names():
                    return CheckResult(False, UnknownSchemaError(f"Unknown schema: {schema_name}"))
            except SQLAlchemyError as e:
                return CheckResult(False, e)

        return CheckResult(True)

    def table_names(self) -> CheckResult:
        """List the tables of the default schema as a frozenset."""
        try:
            return CheckResult(frozenset(inspect(self.engine).get_table_names()))
        except SQLAlchemyError as e:
            return CheckResult(frozenset(), e)

    def has_table(self, name: str) -> CheckResult:
        result = self.table_names()
        if not result.ok:
            return CheckResult(False, result.error)
        return CheckResult(name in result.value)

    def count_rows(self, table_name: str, **equals: Any) -> CheckResult:
        """Count rows of a table, optionally filtered by column equality.

        Example:
            inspector.count_rows("tl_user", admin="1")
        """
        target = table(table_name, *(column(name) for name in equals))
        stmt = select(func.count()).select_from(target)
        for name, value in equals.items():
            stmt = stmt.where(target.c[name] == value)

        try:
            with self.engine.connect() as conn:
                return CheckResult(int(conn.execute(stmt).scalar_one()))
        except SQLAlchemyError as e:
            return CheckResult(0, e)

    def column_type(self, table_name: str, column_name: str) -> CheckResult:
        """Return the lower-cased declared type of a column.

        The value is None when the table has no such column.
        """
        try:
            with self.engine.connect() as conn:
                dialect = conn.dialect.name
                if dialect == "sqlite":
                    return CheckResult(_sqlite_declared_type(conn, table_name, column_name))
                if dialect in _USE_DIALECTS:
                    return CheckResult(_mysql_column_type(conn, table_name, column_name))
                for col in inspect(conn).get_columns(table_name):
                    if col["name"] == column_name:
                        return CheckResult(_compiled_type(col["type"], conn.dialect))
                return CheckResult(None)
        except SQLAlchemyError as e:
            return CheckResult(None, e)


def _sqlite_declared_type(conn, table_name: str, column_name: str) -> str | None:
    quoted = conn.dialect.identifier_preparer.quote_identifier(table_name)
    for row in conn.exec_driver_sql(f"PRAGMA table_info({quoted})"):
        # cid, name, type, notnull, dflt_value, pk
        if row[1] == column_name:
            return row[2].lower()
    return None


def _mysql_column_type(conn, table_name: str, column_name: str) -> str | None:
    row = conn.execute(
        text(
            "SELECT COLUMN_TYPE FROM information_schema.COLUMNS"
            " WHERE TABLE_SCHEMA = DATABASE()"
            " AND TABLE_NAME = :table_name AND COLUMN_NAME = :column_name"
        ),
        {"table_name": table_name, "column_name": column_name},
    ).first()
    if row is None:
        return None
    value = row[0]
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return value.lower()


def _compiled_type(type_, dialect) -> str:
    try:
        return type_.compile(dialect=dialect).lower()
    except CompileError:
        logger.debug("Cannot compile column type %r", type_)
        return type(type_).__name__.lower()

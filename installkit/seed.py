"""installkit - Seed template import.

Import procedure:
1. Read the template (a missing template leaves the database untouched)
2. Unless data is preserved, empty every table carrying the table prefix
3. Execute each line starting with "INSERT " in file order, one statement
   per line, each committed on its own

Other statement kinds in a template are skipped. The first failing statement
aborts the import; statements already executed stay committed and the
operator re-imports from an emptied schema.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from sqlalchemy import Engine, inspect
from sqlalchemy.exc import SQLAlchemyError

from installkit.config import TABLE_PREFIX
from installkit.errors import TemplateImportError
from installkit.templates import TemplateCatalog

logger = logging.getLogger(__name__)

INSERT_LINE = re.compile(r"^INSERT ")


@dataclass
class ImportReport:
    """Result of a successful template import."""

    template: str
    truncated_tables: list[str] = field(default_factory=list)
    statements: int = 0


class SeedImporter:
    """Imports seed templates into the application tables."""

    def __init__(self, engine: Engine, catalog: TemplateCatalog, table_prefix: str = TABLE_PREFIX):
        self.engine = engine
        self.catalog = catalog
        self.table_prefix = table_prefix

    def list_templates(self) -> list[str]:
        return self.catalog.list_templates()

    def truncate_prefixed_tables(self, template: str = "") -> list[str]:
        """Empty every table whose name starts with the table prefix.

        Args:
            template: Template being imported (for error reporting only).

        Returns:
            Names of the emptied tables, in listing order.

        Raises:
            TemplateImportError: If the schema cannot be read or a table
                cannot be emptied.
        """
        try:
            tables = [
                name
                for name in inspect(self.engine).get_table_names()
                if name.startswith(self.table_prefix)
            ]
            conn = self.engine.connect()
        except SQLAlchemyError as e:
            raise TemplateImportError(template, 0, "", f"cannot read schema: {e}") from e

        with conn:
            preparer = conn.dialect.identifier_preparer
            for name in tables:
                quoted = preparer.quote_identifier(name)
                # SQLite has no TRUNCATE
                if conn.dialect.name == "sqlite":
                    statement = f"DELETE FROM {quoted}"
                else:
                    statement = f"TRUNCATE TABLE {quoted}"
                try:
                    conn.exec_driver_sql(statement)
                    conn.commit()
                except SQLAlchemyError as e:
                    conn.rollback()
                    raise TemplateImportError(template, 0, statement, str(e)) from e

        logger.info("Emptied %d tables with prefix %r", len(tables), self.table_prefix)
        return tables

    def import_template(self, name: str, preserve_data: bool = False) -> ImportReport:
        """Import a seed template.

        Args:
            name: Template name relative to the templates root.
            preserve_data: If False, prefixed tables are emptied first.

        Returns:
            ImportReport with emptied tables and executed statement count.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            TemplateImportError: If the database is unreachable, or on the
                first failing statement.
        """
        lines = self.catalog.read_template(name)
        report = ImportReport(template=name)

        if not preserve_data:
            report.truncated_tables = self.truncate_prefixed_tables(name)

        try:
            conn = self.engine.connect()
        except SQLAlchemyError as e:
            raise TemplateImportError(name, 0, "", f"cannot connect: {e}") from e

        with conn:
            for line_number, line in enumerate(lines, start=1):
                if not INSERT_LINE.match(line):
                    continue
                statement = line.rstrip("\r\n")
                try:
                    conn.exec_driver_sql(statement)
                    conn.commit()
                except SQLAlchemyError as e:
                    conn.rollback()
                    logger.error(
                        "Template %s: statement at line %d failed, %d statements executed",
                        name, line_number, report.statements,
                    )
                    raise TemplateImportError(name, line_number, statement, str(e)) from e
                report.statements += 1

        logger.info("Imported template %s (%d statements)", name, report.statements)
        return report

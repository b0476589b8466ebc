"""installkit - Run-once migrations.

Post-bootstrap SQL scripts dropped into the run-once directory. Each script
runs in its own transaction, is recorded in the system log and is deleted
afterwards, so it runs at most once per installation. A failing script is
rolled back and left in place for the operator.

Script format: statements end with ";" at the end of a line; blank lines
and lines starting with "--" are ignored.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from sqlalchemy import Engine, insert
from sqlalchemy.exc import SQLAlchemyError

from installkit.errors import RunOnceError
from installkit.models import LogEntry

logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".sql"


def split_statements(script: str) -> list[str]:
    """Split a run-once script into statements."""
    statements = []
    buffer: list[str] = []
    for line in script.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        buffer.append(line)
        if stripped.endswith(";"):
            statements.append("\n".join(buffer))
            buffer = []
    if buffer:
        statements.append("\n".join(buffer))
    return statements


class RunOnceRunner:
    """Executes and removes pending run-once scripts."""

    def __init__(self, engine: Engine, directory: str | Path):
        self.engine = engine
        self.directory = Path(directory)

    def pending(self) -> list[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(p for p in self.directory.glob(f"*{SCRIPT_SUFFIX}") if p.is_file())

    def run(self) -> list[str]:
        """Run all pending scripts in name order.

        Returns:
            Names of the scripts that ran.

        Raises:
            RunOnceError: On the first failing script; later scripts do not run.
        """
        executed = []
        for script in self.pending():
            try:
                statements = split_statements(script.read_text(encoding="utf-8"))
                with self.engine.begin() as conn:
                    for statement in statements:
                        conn.exec_driver_sql(statement)
                    conn.execute(
                        insert(LogEntry).values(
                            tstamp=int(time.time()),
                            source="BE",
                            action="GENERAL",
                            text=f"File {script.name} ran once",
                            func=f"{__name__}.RunOnceRunner.run",
                        )
                    )
            except (SQLAlchemyError, OSError, UnicodeDecodeError) as e:
                logger.error("Run-once script %s failed: %s", script.name, e)
                raise RunOnceError(script.name, str(e)) from e

            script.unlink()
            executed.append(script.name)
            logger.info("Run-once script %s executed", script.name)

        return executed

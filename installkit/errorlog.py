"""installkit - Fatal error log.

Appends one record per exception to a date-stamped file in the log
directory. Writing the record must never mask the error being logged, so
log_exception never raises.
"""

from __future__ import annotations

import logging
import traceback
from datetime import date
from pathlib import Path

from installkit.utils.paths import daily_log_path

logger = logging.getLogger(__name__)


def format_exception_record(err: BaseException) -> str:
    """Format an exception as "<summary line>\\n<stack trace>\\n"."""
    frames = traceback.extract_tb(err.__traceback__)
    if frames:
        filename, lineno = frames[-1].filename, frames[-1].lineno
    else:
        filename, lineno = "unknown", 0

    stack = "".join(traceback.format_tb(err.__traceback__)).rstrip("\n") or "(no stack trace)"
    return f"Python Fatal error: {err} in {filename} on line {lineno}\n{stack}\n"


def log_exception(err: BaseException, log_dir: str | Path, today: date | None = None) -> Path | None:
    """Append a fatal error record to <log_dir>/prod-YYYY-MM-DD.log.

    Args:
        err: The exception to record.
        log_dir: Log directory (created if missing).
        today: Day of the log file (defaults to the current local date).

    Returns:
        The log file path, or None if the record could not be written.
    """
    try:
        path = daily_log_path(log_dir, today or date.today())
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(format_exception_record(err))
        return path
    except Exception:
        logger.warning("Could not write fatal error record for %r", err, exc_info=True)
        return None

"""installkit - Canonical path utilities.

Returns canonical Paths. Does NOT create directories.
Directory creation is the responsibility of the calling code.
"""

from datetime import date
from pathlib import Path


def daily_log_path(log_dir: str | Path, day: date) -> Path:
    """Get the fatal-error log file for a calendar day.

    Args:
        log_dir: Configured log directory.
        day: The calendar day.

    Returns:
        Path: {log_dir}/prod-YYYY-MM-DD.log
    """
    return Path(log_dir) / f"prod-{day.isoformat()}.log"


def resolve_template_path(templates_dir: str | Path, name: str) -> Path | None:
    """Resolve a template name relative to the templates root.

    Args:
        templates_dir: The templates root.
        name: Relative template name (e.g., "default.sql", "demo/music.sql").

    Returns:
        The resolved Path, or None if the name escapes the templates root.
    """
    root = Path(templates_dir).resolve()
    candidate = (root / name).resolve()
    if not candidate.is_relative_to(root) or candidate == root:
        return None
    return candidate

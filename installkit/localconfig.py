"""installkit - Local configuration store.

Two write tiers over one JSON document:
- set(): in-memory only, lost when the process exits
- persist(): in-memory and queued; save() writes all queued entries

The file is loaded on construction, so persisted values are what a fresh
process sees.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from installkit.errors import LocalConfigError
from installkit.utils.atomic_io import atomic_write_text

logger = logging.getLogger(__name__)


class LocalConfig:
    """Key/value configuration with an in-memory overlay and a durable file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: dict[str, Any] = self._load()
        self._pending: dict[str, Any] = {}

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            raise LocalConfigError(str(self.path), str(e)) from e
        if not isinstance(data, dict):
            raise LocalConfigError(str(self.path), "top-level value is not an object")
        return data

    def get(self, key: str) -> Any:
        """Return the value for key, or None."""
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        """Set a value for the lifetime of this process only."""
        self._data[key] = value

    def persist(self, key: str, value: Any) -> None:
        """Set a value and queue it for the next save()."""
        self._data[key] = value
        self._pending[key] = value

    def save(self) -> None:
        """Write all queued entries to disk.

        Merges with the current file content so entries persisted by other
        processes are kept.

        Raises:
            LocalConfigError: If the file on disk cannot be parsed.
            OSError: If the file cannot be written.
        """
        if not self._pending:
            return

        on_disk = self._load()
        on_disk.update(self._pending)
        atomic_write_text(self.path, json.dumps(on_disk, indent=2, sort_keys=True) + "\n")

        logger.info("Saved %d config entries to %s", len(self._pending), self.path)
        self._pending.clear()

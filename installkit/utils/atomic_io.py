"""installkit - Atomic file writes.

Configuration files are published with temp-then-rename: the document is
written and fsynced next to its final path, then moved over it. Readers of
the final path see either the previous or the new document, never a
truncated one.
"""

import os
from pathlib import Path


def atomic_write_text(final_path: str | Path, text: str, encoding: str = "utf-8") -> None:
    """Atomically replace a file with the given text.

    Parent directories are created. The temporary file is removed if the
    write fails.

    Raises:
        OSError: If directory creation, write, or rename fails.
    """
    final_path = Path(final_path)
    final_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = final_path.with_name(f".{final_path.name}.tmp")

    try:
        with open(temp_path, "w", encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, final_path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise

    _sync_parent(final_path)


def _sync_parent(path: Path) -> None:
    """Best-effort fsync of the containing directory so the rename is durable."""
    if not hasattr(os, "O_DIRECTORY"):
        return
    try:
        fd = os.open(path.parent, os.O_RDONLY | os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass  # not supported on every file system
    finally:
        os.close(fd)

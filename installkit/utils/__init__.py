"""installkit - Utility modules."""

from installkit.utils.atomic_io import atomic_write_text
from installkit.utils.hashing import hash_password, verify_password
from installkit.utils.paths import daily_log_path, resolve_template_path

__all__ = [
    # atomic_io
    "atomic_write_text",
    # hashing
    "hash_password",
    "verify_password",
    # paths
    "daily_log_path",
    "resolve_template_path",
]

"""installkit - Configuration constants.

Minimal configuration. No external config libraries.
All paths are relative to the application root by default.
"""

import os
from pathlib import Path

# Application root (parent of installkit/), overridable for deployments
INSTALL_ROOT = Path(
    os.environ.get("INSTALLKIT_ROOT") or Path(__file__).parent.parent
).resolve()

# Seed templates (run-once scripts live in INSTALL_ROOT/runonce)
TEMPLATES_DIR = INSTALL_ROOT / "templates"

# Fatal-error logs (one file per day)
LOG_DIR = Path(os.environ.get("INSTALLKIT_LOG_DIR") or INSTALL_ROOT / "var" / "logs")

# Durable key/value configuration
LOCALCONFIG_PATH = INSTALL_ROOT / "system" / "config" / "localconfig.json"

# Counter cache database path
CACHE_DB_PATH = INSTALL_ROOT / "var" / "cache" / "installkit-cache.db"

# Target database
DATABASE_URL = os.environ.get(
    "INSTALLKIT_DATABASE_URL", f"sqlite:///{INSTALL_ROOT / 'var' / 'installkit.db'}"
)
DATABASE_NAME = os.environ.get("INSTALLKIT_DATABASE_NAME", "main")

# Tables owned by the application carry this prefix
TABLE_PREFIX = os.environ.get("INSTALLKIT_TABLE_PREFIX", "tl_")


def _get_lock_threshold() -> int:
    """Get the failed-login lock threshold from environment or use default.

    Environment variable INSTALLKIT_LOGIN_LOCK_THRESHOLD allows override.

    Returns:
        Number of failed logins after which the install tool is locked.
    """
    env_val = os.environ.get("INSTALLKIT_LOGIN_LOCK_THRESHOLD")
    if env_val:
        try:
            threshold = int(env_val)
            if threshold > 0:
                return threshold
        except ValueError:
            pass
    return 3


LOGIN_LOCK_THRESHOLD = _get_lock_threshold()

# Counter cache / config keys
LOGIN_COUNT_KEY = "login-count"
LICENSE_ACCEPTED_KEY = "licenseAccepted"

# Schema fingerprints
MARKER_TABLE = "tl_module"
CONTENT_TABLE = "tl_page"
LOG_TABLE = "tl_log"
USER_TABLE = "tl_user"
LEGACY_TABLE = "tl_layout"
LEGACY_COLUMN = "sections"
# Declared types of tl_layout.sections written by current schema versions
CURRENT_SECTION_TYPES = ("varchar(1022)", "blob")

"""installkit - First administrator provisioning."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from sqlalchemy import Engine, text

from installkit.config import USER_TABLE
from installkit.inspector import SchemaInspector
from installkit.utils.hashing import hash_password

logger = logging.getLogger(__name__)

# Characters neutralised in stored names (replaced simultaneously, so the
# "#" of an inserted entity is never escaped again)
MARKUP_ENTITIES = {
    "#": "&#35;",
    "<": "&#60;",
    ">": "&#62;",
    "(": "&#40;",
    ")": "&#41;",
    "\\": "&#92;",
    "=": "&#61;",
}
_MARKUP_TABLE = str.maketrans(MARKUP_ENTITIES)

INSERT_ADMIN_SQL = text(
    f"""
    INSERT INTO {USER_TABLE}
        (tstamp, name, email, username, password, language, backendTheme,
         admin, showHelp, useRTE, useCE, thumbnails, dateAdded)
    VALUES
        (:time, :name, :email, :username, :password, :language, 'flexible',
         1, 1, 1, 1, 1, :time)
    """
)


def escape_markup(value: str) -> str:
    """Replace markup-significant characters with numeric entities."""
    return value.translate(_MARKUP_TABLE)


class AdminProvisioner:
    """Checks for and creates the first backend administrator."""

    def __init__(self, engine: Engine, clock: Callable[[], float] = time.time):
        self.engine = engine
        self.clock = clock

    def has_admin_user(self) -> bool:
        """Return True if at least one administrator account exists.

        Runs before the schema may be complete; any query failure counts as
        "no admin".
        """
        result = SchemaInspector(self.engine).count_rows(USER_TABLE, admin="1")
        if not result.ok:
            logger.debug("Admin lookup failed, assuming no admin: %s", result.error)
            return False
        return result.value > 0

    def persist_admin_user(
        self,
        username: str,
        name: str,
        email: str,
        password: str,
        language: str,
    ) -> None:
        """Insert a fully enabled administrator account.

        Username and name are entity-escaped; the password is stored as a
        salted hash. One timestamp is used for tstamp and dateAdded.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the insert fails (e.g. the
                username already exists).
        """
        now = int(self.clock())
        params = {
            "time": now,
            "name": escape_markup(name),
            "email": email,
            "username": escape_markup(username),
            "password": hash_password(password),
            "language": language,
        }

        with self.engine.begin() as conn:
            conn.execute(INSERT_ADMIN_SQL, params)

        logger.info("Created administrator account %s", params["username"])

"""installkit - SQLAlchemy ORM models.

Tables the installer reads or writes:
1. tl_user   - backend accounts (admin provisioning)
2. tl_module - front end modules (fresh-installation marker)
3. tl_page   - site structure (fresh-installation content check)
4. tl_layout - page layouts (legacy schema fingerprint)
5. tl_log    - system log (run-once gate and records)

Seed templates and the admin insert write raw SQL naming only some columns,
so every column carries a server default. Flag columns follow the CHAR(1)
convention: '1' for set, '' for unset.
"""

from sqlalchemy import CHAR, Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _int_column(*args, **kwargs):
    return mapped_column(*args, Integer, nullable=False, default=0, server_default="0", **kwargs)


def _str_column(*args, length: int = 255):
    return mapped_column(*args, String(length), nullable=False, default="", server_default="")


def _flag_column(*args):
    return mapped_column(*args, CHAR(1), nullable=False, default="", server_default="")


class UserAccount(Base):
    """Backend user account."""

    __tablename__ = "tl_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Unix timestamp of the last row modification
    tstamp: Mapped[int] = _int_column()

    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = _str_column()
    email: Mapped[str] = _str_column()
    password: Mapped[str] = _str_column()
    language: Mapped[str] = _str_column(length=5)

    backend_theme: Mapped[str] = _str_column("backendTheme", length=32)
    admin: Mapped[str] = _flag_column()
    show_help: Mapped[str] = _flag_column("showHelp")
    use_rte: Mapped[str] = _flag_column("useRTE")
    use_ce: Mapped[str] = _flag_column("useCE")
    thumbnails: Mapped[str] = _flag_column()
    disable: Mapped[str] = _flag_column()

    # Unix timestamp of account creation
    date_added: Mapped[int] = _int_column("dateAdded")


class Module(Base):
    """Front end module definition."""

    __tablename__ = "tl_module"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pid: Mapped[int] = _int_column()
    tstamp: Mapped[int] = _int_column()
    name: Mapped[str] = _str_column()
    type: Mapped[str] = _str_column(length=64)


class Page(Base):
    """Node of the site structure."""

    __tablename__ = "tl_page"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pid: Mapped[int] = _int_column()
    sorting: Mapped[int] = _int_column()
    tstamp: Mapped[int] = _int_column()
    title: Mapped[str] = _str_column()
    alias: Mapped[str] = _str_column(length=128)
    type: Mapped[str] = _str_column(length=32)
    published: Mapped[str] = _flag_column()


class Layout(Base):
    """Page layout.

    The declared type of ``sections`` changed when custom layout sections were
    reworked; older schemas are recognised by it.
    """

    __tablename__ = "tl_layout"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pid: Mapped[int] = _int_column()
    tstamp: Mapped[int] = _int_column()
    name: Mapped[str] = _str_column()
    sections: Mapped[str | None] = mapped_column(String(1022), nullable=True)
    modules: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)


class LogEntry(Base):
    """System log record."""

    __tablename__ = "tl_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tstamp: Mapped[int] = _int_column()
    source: Mapped[str] = _str_column(length=2)
    action: Mapped[str] = _str_column(length=32)
    username: Mapped[str] = _str_column(length=64)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    func: Mapped[str] = _str_column()

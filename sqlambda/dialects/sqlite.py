"""SQLite dialect."""

from typing import ClassVar, Callable

from .base import Dialect


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite)."""

    NAME: ClassVar[str] = "sqlite"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)

    F: ClassVar[dict[str, Callable[..., str]]] = {
        "concat": lambda *args: "(" + " || ".join(args) + ")",
        "now": lambda: "CURRENT_TIMESTAMP",
    }

    BOOLEAN_LITERALS: ClassVar[tuple[str, str]] = ("1", "0")
    UNLIMITED: ClassVar[str | None] = "-1"

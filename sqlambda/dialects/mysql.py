"""MySQL dialect."""

import datetime
from typing import ClassVar, Callable

from ..expressions import JoinKind
from .base import Dialect


class MysqlDialect(Dialect):
    """Dialect for MySQL (scheme mysql)."""

    NAME: ClassVar[str] = "mysql"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql", "mariadb")

    F: ClassVar[dict[str, Callable[..., str]]] = {
        "concat": lambda *args: "CONCAT(" + ", ".join(args) + ")",
        "length": lambda arg: f"CHAR_LENGTH({arg})",
    }

    IDENTIFIER_QUOTES: ClassVar[tuple[str, str]] = ("`", "`")
    UNLIMITED: ClassVar[str | None] = "18446744073709551615"
    PLACEHOLDER: ClassVar[str] = "%({name})s"
    # no FULL OUTER JOIN in MySQL
    JOIN_KEYWORDS: ClassVar[dict[JoinKind, str]] = {
        JoinKind.INNER: "INNER JOIN",
        JoinKind.LEFT: "LEFT JOIN",
        JoinKind.RIGHT: "RIGHT JOIN",
    }

    def string_literal(self, value: str) -> str:
        # backslash is an escape character in MySQL string literals
        return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"

    def date_literal(self, value: datetime.date) -> str:
        if isinstance(value, datetime.datetime):
            return "'" + value.isoformat(sep=" ") + "'"
        return "'" + value.isoformat() + "'"

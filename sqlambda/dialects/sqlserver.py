"""SQL Server dialect."""

import datetime
from typing import ClassVar, Callable

from ..expressions import JoinKind
from .base import Dialect, Pagination


class SqlserverDialect(Dialect):
    """Dialect for SQL Server (schemes mssql, sqlserver).

    Strings are emitted as Unicode literals (``N'...'``), booleans as bits,
    and pagination uses ``TOP`` or ``OFFSET ... FETCH``.
    """

    NAME: ClassVar[str] = "sqlserver"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mssql", "sqlserver")

    F: ClassVar[dict[str, Callable[..., str]]] = {
        "concat": lambda *args: "CONCAT(" + ", ".join(args) + ")",
        "now": lambda: "GETDATE()",
        "current_timestamp": lambda: "GETDATE()",
        "length": lambda arg: f"LEN({arg})",
        "trim": lambda arg: f"LTRIM(RTRIM({arg}))",
    }

    IDENTIFIER_QUOTES: ClassVar[tuple[str, str]] = ("[", "]")
    STRING_PREFIX: ClassVar[str] = "N"
    BOOLEAN_LITERALS: ClassVar[tuple[str, str]] = ("1", "0")
    NOT_EQUAL: ClassVar[str] = "<>"
    PAGINATION: ClassVar[Pagination] = Pagination.TOP_FETCH
    PLACEHOLDER: ClassVar[str] = "@{name}"
    ORDERED_SUBQUERIES_NEED_PAGINATION: ClassVar[bool] = True
    JOIN_KEYWORDS: ClassVar[dict[JoinKind, str]] = {
        JoinKind.INNER: "INNER JOIN",
        JoinKind.LEFT: "LEFT OUTER JOIN",
        JoinKind.RIGHT: "RIGHT OUTER JOIN",
        JoinKind.FULL: "FULL OUTER JOIN",
    }

    def date_literal(self, value: datetime.date) -> str:
        if not isinstance(value, datetime.datetime):
            value = datetime.datetime.combine(value, datetime.time())
        return f"CONVERT(DATETIME2, '{value.isoformat()}', 126)"

"""PostgreSQL dialect."""

import datetime
from typing import ClassVar, Callable

from .base import Dialect


class PostgresDialect(Dialect):
    """Dialect for PostgreSQL (schemes postgresql, postgres)."""

    NAME: ClassVar[str] = "postgresql"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")

    F: ClassVar[dict[str, Callable[..., str]]] = {
        "concat": lambda *args: "(" + " || ".join(args) + ")",
    }

    PLACEHOLDER: ClassVar[str] = "%({name})s"

    def date_literal(self, value: datetime.date) -> str:
        if isinstance(value, datetime.datetime):
            return "TIMESTAMP '" + value.isoformat(sep=" ") + "'"
        return "DATE '" + value.isoformat() + "'"

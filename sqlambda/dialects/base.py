"""Base Dialect type: rendering rules that vary per SQL engine.

Each subclass configures the rules through class variables (identifier
quotes, literal spellings, pagination strategy, join keywords, placeholder
token, function overrides) and may override the literal methods. The
emitter asks the dialect for every engine-specific decision.
"""

import datetime
import enum
from typing import Any, Callable, ClassVar

from pydantic import BaseModel

from ..errors import DialectValidationError
from ..expressions import BinaryOperator, JoinKind


class Pagination(str, enum.Enum):
    LIMIT_OFFSET = "limit_offset"
    """Trailing ``LIMIT n OFFSET m``."""
    TOP_FETCH = "top_fetch"
    """Leading ``TOP n`` without offset; trailing ``OFFSET m ROWS FETCH NEXT n ROWS ONLY`` with one."""


class _DialectF:
    """Helper for dialect.f: __getattr__ returns the callable from the dialect's F config."""

    __slots__ = ("_dialect",)

    def __init__(self, dialect: "Dialect") -> None:
        self._dialect = dialect

    def __getattr__(self, name: str) -> Callable[..., str]:
        F = type(self._dialect).F  # pylint: disable=invalid-name
        if name in F:
            return F[name]
        raise AttributeError(name)


class Dialect(BaseModel):
    """Base for database dialects."""

    model_config = {"frozen": True}

    NAME: ClassVar[str] = "generic"

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('sqlite',), ('mssql', 'sqlserver'))."""

    F: ClassVar[dict[str, Callable[..., str]]] = {}
    """Function-call overrides by lowercase name, taking rendered arguments (e.g. ``concat``).
    Access via dialect.f.concat("a", "b")."""

    IDENTIFIER_QUOTES: ClassVar[tuple[str, str]] = ('"', '"')
    STRING_PREFIX: ClassVar[str] = ""
    BOOLEAN_LITERALS: ClassVar[tuple[str, str]] = ("TRUE", "FALSE")
    NOT_EQUAL: ClassVar[str] = "!="
    PAGINATION: ClassVar[Pagination] = Pagination.LIMIT_OFFSET
    UNLIMITED: ClassVar[str | None] = None
    """LIMIT value emitted when only an OFFSET is requested, if the engine needs one."""
    JOIN_KEYWORDS: ClassVar[dict[JoinKind, str]] = {
        JoinKind.INNER: "INNER JOIN",
        JoinKind.LEFT: "LEFT JOIN",
        JoinKind.RIGHT: "RIGHT JOIN",
        JoinKind.FULL: "FULL JOIN",
    }
    PLACEHOLDER: ClassVar[str] = ":{name}"
    ORDERED_SUBQUERIES_NEED_PAGINATION: ClassVar[bool] = False

    quote_identifiers: bool = True
    """If False, identifiers are emitted bare."""

    @property
    def f(self) -> _DialectF:
        """Access dialect-specific helpers by name (e.g. self.f.concat(a, b, c))."""
        return _DialectF(self)

    # identifiers

    def quote_identifier(self, name: str) -> str:
        """Delimit an identifier, doubling the closing delimiter inside it."""
        if not self.quote_identifiers:
            return name
        opening, closing = self.IDENTIFIER_QUOTES
        return opening + name.replace(closing, closing * 2) + closing

    # literals

    def string_literal(self, value: str) -> str:
        return self.STRING_PREFIX + "'" + value.replace("'", "''") + "'"

    def boolean_literal(self, value: bool) -> str:
        return self.BOOLEAN_LITERALS[0] if value else self.BOOLEAN_LITERALS[1]

    def date_literal(self, value: datetime.date) -> str:
        return "'" + value.isoformat() + "'"

    def number_literal(self, value: Any) -> str:
        return str(value)

    def placeholder(self, name: str) -> str:
        return self.PLACEHOLDER.format(name=name)

    # operators, joins, functions

    def operator_token(self, operator: BinaryOperator) -> str:
        if operator == BinaryOperator.NOT_EQUAL:
            return self.NOT_EQUAL
        return operator.value

    def join_keyword(self, kind: JoinKind) -> str:
        try:
            return self.JOIN_KEYWORDS[kind]
        except KeyError as error:
            raise DialectValidationError(
                f"{self.NAME} does not support {kind.value.upper()} joins",
                dialect=self.NAME,
                join=kind.value,
            ) from error

    def function_call(self, name: str, arguments: list[str]) -> str:
        """Render ``name(arguments)``, through an ``F`` override when there is one."""
        override = type(self).F.get(name.lower())
        if override is not None:
            return override(*arguments)
        return f"{name}({', '.join(arguments)})"

"""Literal values, bound parameters, raw fragments."""

from __future__ import annotations

import datetime
import decimal
import enum
import math
from typing import Any

from ._bases import Expression
from ..errors import ConstructionError


class ValueKind(str, enum.Enum):
    """Kind of a literal value, which drives how dialects encode it."""

    NULL = "null"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


def value_kind_of(value: Any) -> ValueKind:
    """Classify a Python value; raises ConstructionError for unsupported types."""
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if (isinstance(value, float) and not math.isfinite(value)) or (
        isinstance(value, decimal.Decimal) and not value.is_finite()
    ):
        raise ConstructionError(f"Non-finite number {value!r} has no SQL literal", value=repr(value))
    if isinstance(value, (float, decimal.Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (datetime.date, datetime.datetime)):
        return ValueKind.DATE
    raise ConstructionError(
        f"Unsupported constant of type {type(value).__name__}",
        value=repr(value),
    )


class ConstantExpression(Expression):
    """Literal value; ``value_kind`` is derived from ``value`` when omitted."""

    VISIT = "constant"

    value: Any = None
    value_kind: ValueKind = ValueKind.NULL

    def __init__(self, value: Any = None, value_kind: ValueKind | str | None = None, **data: Any) -> None:
        if value_kind is None:
            value_kind = value_kind_of(value)
        super().__init__(value=value, value_kind=value_kind, **data)


class ParameterExpression(Expression):
    """Named parameter, bound to a value at emission time or left as a placeholder."""

    VISIT = "parameter"

    name: str
    type_hint: str | None = None


class FragmentExpression(Expression):
    """Raw SQL, emitted verbatim."""

    VISIT = "fragment"

    raw: str


class ValueListExpression(Expression):
    """Parenthesized list of values, the right-hand side of ``IN (a, b, c)``."""

    VISIT = "value_list"

    items: tuple[Expression, ...] = ()

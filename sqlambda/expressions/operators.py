"""Binary and unary operator expressions.

Each arity has a closed operator set. Constructors coerce the operator from
an enum member, its name (``"NOT_EQUAL"``) or its SQL token (``"<>"``,
``"!="``) and raise :class:`UnsupportedOperatorError` for anything else.
"""

from __future__ import annotations

import enum
from typing import Any

from ._bases import Expression
from ..errors import UnsupportedOperatorError


class BinaryOperator(str, enum.Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"
    EQUAL = "="
    NOT_EQUAL = "<>"
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    AND = "AND"
    OR = "OR"
    IN = "IN"
    NOT_IN = "NOT IN"
    LIKE = "LIKE"

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISONS

    @property
    def is_logical(self) -> bool:
        return self in (BinaryOperator.AND, BinaryOperator.OR)


_COMPARISONS = frozenset((
    BinaryOperator.EQUAL,
    BinaryOperator.NOT_EQUAL,
    BinaryOperator.GREATER_THAN,
    BinaryOperator.GREATER_THAN_OR_EQUAL,
    BinaryOperator.LESS_THAN,
    BinaryOperator.LESS_THAN_OR_EQUAL,
))


class UnaryOperator(str, enum.Enum):
    NOT = "NOT"
    NEGATE = "-"
    EXISTS = "EXISTS"
    NOT_EXISTS = "NOT EXISTS"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"

    @property
    def postfix(self) -> bool:
        """True for operators written after their operand (``x IS NULL``)."""
        return self in (UnaryOperator.IS_NULL, UnaryOperator.IS_NOT_NULL)


_TOKEN_ALIASES = {
    "==": "=",
    "!=": "<>",
    "&": "AND",
    "&&": "AND",
    "|": "OR",
    "||": "OR",
    "!": "NOT",
}


def _coerce(enum_type: type[enum.Enum], operator: Any, arity: str):
    if isinstance(operator, enum_type):
        return operator
    if isinstance(operator, str) and not isinstance(operator, enum.Enum):
        token = " ".join(operator.split()).upper()
        token = _TOKEN_ALIASES.get(token, token)
        for member in enum_type:
            if token in (member.value, member.name, member.name.replace("_", " ")):
                return member
    raise UnsupportedOperatorError(operator, arity)


def coerce_binary_operator(operator: Any) -> BinaryOperator:
    return _coerce(BinaryOperator, operator, "binary")


def coerce_unary_operator(operator: Any) -> UnaryOperator:
    return _coerce(UnaryOperator, operator, "unary")


class BinaryExpression(Expression):
    """``left <operator> right``."""

    VISIT = "binary"

    operator: BinaryOperator
    left: Expression
    right: Expression

    def __init__(self, operator: Any, left: Expression, right: Expression, **data: Any) -> None:
        super().__init__(operator=coerce_binary_operator(operator), left=left, right=right, **data)


class UnaryExpression(Expression):
    """Prefix or postfix operator applied to one operand."""

    VISIT = "unary"

    operator: UnaryOperator
    operand: Expression

    def __init__(self, operator: Any, operand: Expression, **data: Any) -> None:
        super().__init__(operator=coerce_unary_operator(operator), operand=operand, **data)


def conjoin(*expressions: Expression | None) -> Expression | None:
    """AND together the non-None expressions, left-associatively."""
    result = None
    for expression in expressions:
        if expression is None:
            continue
        result = expression if result is None else BinaryExpression(BinaryOperator.AND, result, expression)
    return result

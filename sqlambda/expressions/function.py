"""SQL function calls and aggregate kinds."""

from __future__ import annotations

import enum
from typing import Any

from ._bases import Expression


class AggregateKind(str, enum.Enum):
    """Aggregate functions the builder knows how to produce."""

    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"

    @property
    def function_name(self) -> str:
        return self.value.upper()


AGGREGATE_FUNCTIONS = frozenset(kind.function_name for kind in AggregateKind)


class FunctionExpression(Expression):
    """SQL function call: ``NAME(arguments...)`` (e.g. ``LOWER(u.name)``, ``COUNT(*)``)."""

    VISIT = "function"

    name: str
    arguments: tuple[Expression, ...] = ()

    def __init__(self, name: str, arguments: Any = (), **data: Any) -> None:
        super().__init__(name=name.upper(), arguments=tuple(arguments), **data)

    @property
    def is_aggregate(self) -> bool:
        return self.name in AGGREGATE_FUNCTIONS

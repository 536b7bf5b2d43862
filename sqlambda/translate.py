"""Translate parse-tree nodes into IR expressions, resolving names on the way."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from . import tree
from .errors import ConstructionError, ResolutionError, UnsupportedConstructError
from .expressions import (
    AggregateKind,
    BinaryExpression,
    BinaryOperator,
    ColumnExpression,
    ConstantExpression,
    Expression,
    FragmentExpression,
    FunctionExpression,
    ParameterExpression,
    ParentColumnExpression,
    SelectExpression,
    UnaryExpression,
    UnaryOperator,
    ValueKind,
    ValueListExpression,
)
from .registry import WILDCARD, PropertyRegistry, PropertySource

logger = logging.getLogger(__name__)

# Python spellings of SQL functions, for method-style calls (``u.name.strip()``)
FUNCTION_ALIASES = {
    "STRIP": "TRIM",
    "LSTRIP": "LTRIM",
    "RSTRIP": "RTRIM",
    "LEN": "LENGTH",
}

_MISSING = object()


class Translator:
    """Turns the body of one traced lambda into an expression.

    Args:
        registry: Names visible to the lambda.
        alias: Alias used for plain names the registry does not know.
        statement: Statement being built; projected aliases registered as
            complex resolve to the projection's expression.
        variables: Context variables for :class:`tree.Variable` nodes.
        outer_registry: Names of the enclosing query, for :class:`tree.Outer`.
        source: Source text of the lambda, for error messages.
    """

    def __init__(
        self,
        registry: PropertyRegistry,
        alias: str,
        statement: SelectExpression | None = None,
        variables: Mapping[str, Any] | None = None,
        outer_registry: PropertyRegistry | None = None,
        outer_alias: str | None = None,
        source: str | None = None,
    ) -> None:
        self.registry = registry
        self.alias = alias
        self.statement = statement
        self.variables = variables or {}
        self.outer_registry = outer_registry
        self.outer_alias = outer_alias
        self.source = source

    def expression(self, node: tree.Node) -> Expression:
        """Translate a scalar node."""
        if isinstance(node, tree.Member):
            return self.member(node)
        if isinstance(node, tree.Literal):
            return ConstantExpression(node.value)
        if isinstance(node, tree.Variable):
            return self.variable(node)
        if isinstance(node, tree.Outer):
            return self.outer(node)
        if isinstance(node, tree.BinaryOp):
            return self._binary(node)
        if isinstance(node, tree.UnaryOp):
            return UnaryExpression(node.operator, self.expression(node.operand))
        if isinstance(node, tree.Call):
            return self._call(node)
        if isinstance(node, tree.Like):
            return self._like(node)
        if isinstance(node, tree.InList):
            return self._in_list(node)
        if isinstance(node, tree.Raw):
            return FragmentExpression(raw=node.sql)
        raise UnsupportedConstructError(
            f"{type(node).__name__} cannot be used as a value here",
            source=self.source,
        )

    # names

    def source_of(self, member: tree.Member) -> PropertySource | None:
        return self.registry.resolve(member.path)

    def member(self, member: tree.Member) -> Expression:
        """Resolve a property access to a column (or a projected expression)."""
        if not member.path:
            raise UnsupportedConstructError(
                f"The whole row `{member.parameter}` cannot be used as a value",
                source=self.source,
            )
        source = self.source_of(member)
        if source is None:
            if len(member.path) == 1:
                return ColumnExpression(name=member.path[0], table_alias=self.alias)
            raise ResolutionError(
                f"Could not resolve property `{member.parameter}.{member.dotted}`",
                path=member.dotted,
                aliases=list(self.registry.table_aliases),
            )
        if source.is_complex:
            projection = self.statement.projection_named(member.dotted) if self.statement else None
            if projection is not None:
                return projection.expression
            return ColumnExpression(name=member.dotted, table_alias=None)
        if source.column_name == WILDCARD:
            raise ResolutionError(
                f"`{member.dotted}` is a whole joined record; use one of its fields",
                path=member.dotted,
            )
        return ColumnExpression(name=source.column_name, table_alias=source.table_alias)

    def variable(self, node: tree.Variable) -> Expression:
        value = self.variable_value(node)
        if value is _MISSING:
            return ParameterExpression(name=".".join(node.path))
        if isinstance(value, (list, tuple, set, frozenset)):
            return ValueListExpression(items=tuple(ConstantExpression(item) for item in value))
        return ConstantExpression(value)

    def variable_value(self, node: tree.Variable) -> Any:
        if not node.path:
            raise UnsupportedConstructError("Context variables must be accessed by name", source=self.source)
        value: Any = self.variables
        for name in node.path:
            if isinstance(value, Mapping):
                value = value.get(name, _MISSING)
            else:
                value = getattr(value, name, _MISSING)
            if value is _MISSING:
                return _MISSING
        return value

    def outer(self, node: tree.Outer) -> Expression:
        if self.outer_registry is None:
            raise UnsupportedConstructError("`outer` can only be used inside a subquery", source=self.source)
        if not node.path:
            raise UnsupportedConstructError("The whole outer row cannot be used as a value", source=self.source)
        source = self.outer_registry.resolve(node.path)
        if source is None:
            if len(node.path) == 1 and self.outer_alias is not None:
                return ParentColumnExpression(table_alias=self.outer_alias, column_name=node.path[0])
            raise ResolutionError(
                f"Could not resolve outer property `{'.'.join(node.path)}`",
                path=".".join(node.path),
            )
        if source.is_complex or source.column_name == WILDCARD:
            raise ResolutionError(
                f"Outer property `{'.'.join(node.path)}` is not a column",
                path=".".join(node.path),
            )
        return ParentColumnExpression(table_alias=source.table_alias, column_name=source.column_name)

    # operators and calls

    def _binary(self, node: tree.BinaryOp) -> Expression:
        left = self.expression(node.left)
        right = self.expression(node.right)
        expression = BinaryExpression(node.operator, left, right)
        # `x == None` means IS NULL
        if isinstance(right, ConstantExpression) and right.value_kind == ValueKind.NULL:
            if expression.operator == BinaryOperator.EQUAL:
                return UnaryExpression(UnaryOperator.IS_NULL, left)
            if expression.operator == BinaryOperator.NOT_EQUAL:
                return UnaryExpression(UnaryOperator.IS_NOT_NULL, left)
        return expression

    def _call(self, node: tree.Call) -> Expression:
        name = node.name.upper()
        name = FUNCTION_ALIASES.get(name, name)
        if name == AggregateKind.COUNT.function_name and not node.arguments:
            return count_all()
        return FunctionExpression(name, tuple(self.expression(argument) for argument in node.arguments))

    def _like(self, node: tree.Like) -> Expression:
        operand = self.expression(node.operand)
        pattern = self.expression(node.pattern)
        if node.mode != "like":
            prefix = "%" if node.mode in ("contains", "endswith") else ""
            suffix = "%" if node.mode in ("contains", "startswith") else ""
            if isinstance(pattern, ConstantExpression) and pattern.value_kind == ValueKind.STRING:
                pattern = ConstantExpression(f"{prefix}{pattern.value}{suffix}")
            else:
                parts = [ConstantExpression(prefix)] if prefix else []
                parts.append(pattern)
                if suffix:
                    parts.append(ConstantExpression(suffix))
                pattern = FunctionExpression("CONCAT", parts)
        return BinaryExpression(BinaryOperator.LIKE, operand, pattern)

    def _in_list(self, node: tree.InList) -> Expression:
        operator = BinaryOperator.NOT_IN if node.negated else BinaryOperator.IN
        operand = self.expression(node.operand)
        if len(node.values) == 1 and isinstance(node.values[0], tree.Variable):
            values = self.expression(node.values[0])
            if not isinstance(values, ValueListExpression):
                raise ConstructionError(
                    "`in_` needs a list of values",
                    variable=".".join(node.values[0].path),
                )
        else:
            values = ValueListExpression(items=tuple(self.expression(value) for value in node.values))
        if not values.items:
            raise ConstructionError("`in_` needs at least one value")
        return BinaryExpression(operator, operand, values)


def count_all() -> FunctionExpression:
    """``COUNT(*)``."""
    return FunctionExpression("COUNT", (FragmentExpression(raw="*"),))


def aggregate_of(kind: AggregateKind | str, argument: Expression | None) -> FunctionExpression:
    kind = AggregateKind(kind.lower() if isinstance(kind, str) else kind)
    if argument is None:
        if kind != AggregateKind.COUNT:
            raise ConstructionError(f"{kind.function_name} needs a field", aggregate=kind.value)
        return count_all()
    return FunctionExpression(kind.function_name, (argument,))


def wrap_ungrouped(
    expression: Expression,
    group_by: tuple[Expression, ...],
    aggregate: AggregateKind | None,
    source: str | None = None,
) -> Expression:
    """Wrap bare columns that are not grouped on, outside of aggregate calls.

    With ``aggregate=None`` such a column raises :class:`ResolutionError`
    instead, since HAVING cannot compare it without an aggregate.
    """
    if isinstance(expression, FunctionExpression) and expression.is_aggregate:
        return expression
    if isinstance(expression, ColumnExpression):
        if expression in group_by:
            return expression
        if aggregate is None:
            raise ResolutionError(
                f"Column `{expression.name}` is neither grouped nor aggregated; name an aggregate",
                column=expression.name,
                table_alias=expression.table_alias,
                source=source,
            )
        logger.warning("HAVING: wrapping ungrouped column %s in %s", expression.name, aggregate.function_name)
        return FunctionExpression(aggregate.function_name, (expression,))
    if isinstance(expression, BinaryExpression):
        return expression.model_copy(update={
            "left": wrap_ungrouped(expression.left, group_by, aggregate, source),
            "right": wrap_ungrouped(expression.right, group_by, aggregate, source),
        })
    if isinstance(expression, UnaryExpression):
        return expression.model_copy(update={
            "operand": wrap_ungrouped(expression.operand, group_by, aggregate, source),
        })
    if isinstance(expression, FunctionExpression):
        return expression.model_copy(update={
            "arguments": tuple(wrap_ungrouped(a, group_by, aggregate, source) for a in expression.arguments),
        })
    return expression

"""SQL emitter: renders a statement to text for one dialect.

One :class:`SqlEmitter` instance walks the whole tree, nested statements
included. Scalar nodes render to strings; a statement renders clause by
clause into the emitter's output buffer. Entering a nested statement saves
the buffer, indentation level and nested flag, renders into a fresh buffer,
then restores them, so the outer statement's partial output is never lost.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .dialects import Dialect, Pagination
from .errors import DialectValidationError
from .expressions import (
    BinaryExpression,
    ColumnExpression,
    ConstantExpression,
    Expression,
    FragmentExpression,
    FunctionExpression,
    JoinExpression,
    OrderingExpression,
    ParameterExpression,
    ParentColumnExpression,
    ProjectionExpression,
    SelectExpression,
    SubqueryExpression,
    TableExpression,
    UnaryExpression,
    UnaryOperator,
    ValueKind,
    ValueListExpression,
)

logger = logging.getLogger(__name__)


class SqlEmitter:
    """Stateful visitor turning IR into SQL text.

    Args:
        dialect: Rendering rules.
        parameters: Values for :class:`ParameterExpression` nodes; unbound
            parameters render as the dialect's placeholder.
        pretty: Put each clause on its own line, indenting nested statements.
    """

    INDENT = "  "

    def __init__(
        self,
        dialect: Dialect,
        parameters: Mapping[str, Any] | None = None,
        pretty: bool = False,
    ) -> None:
        self.dialect = dialect
        self.parameters = dict(parameters or {})
        self.pretty = pretty
        self._buffer: list[str] | None = None
        self._level = 0
        self._nested = False

    def emit(self, statement: SelectExpression) -> str:
        """Render a whole statement."""
        self._buffer, self._level, self._nested = None, 0, False
        sql = self.visit_select(statement)
        logger.debug("Emitted %s SQL: %s", self.dialect.NAME, sql)
        return sql

    def render(self, expression: Expression) -> str:
        return expression.accept(self)

    # statements

    def visit_select(self, node: SelectExpression) -> str:
        saved = (self._buffer, self._level, self._nested)
        if self._buffer is not None:
            self._level += 1
            self._nested = True
        self._buffer = []
        try:
            self._write_select(node)
            return "".join(self._buffer)
        finally:
            self._buffer, self._level, self._nested = saved

    def visit_subquery(self, node: SubqueryExpression) -> str:
        return "(" + self.visit_select(node.statement) + ")"

    def _clause(self, text: str) -> None:
        if self._buffer:
            if self.pretty:
                self._buffer.append("\n" + self.INDENT * self._level)
            else:
                self._buffer.append(" ")
        self._buffer.append(text)

    def _write_select(self, node: SelectExpression) -> None:
        dialect = self.dialect
        uses_top = dialect.PAGINATION == Pagination.TOP_FETCH and node.offset is None and node.limit is not None
        if dialect.PAGINATION == Pagination.TOP_FETCH and node.offset is not None and not node.order_by:
            raise DialectValidationError(
                f"{dialect.NAME} requires ORDER BY when using OFFSET",
                dialect=dialect.NAME,
                offset=self.render(node.offset),
            )
        if (
            self._nested
            and node.order_by
            and dialect.ORDERED_SUBQUERIES_NEED_PAGINATION
            and node.limit is None
            and node.offset is None
        ):
            raise DialectValidationError(
                f"{dialect.NAME} does not allow ORDER BY in a subquery without TOP or OFFSET",
                dialect=dialect.NAME,
            )

        head = "SELECT"
        if node.distinct:
            head += " DISTINCT"
        if uses_top:
            head += " TOP " + self._top_count(node.limit)
        projections = ", ".join(self.render(projection) for projection in node.projections) or "*"
        self._clause(f"{head} {projections}")
        self._clause("FROM " + self.render(node.from_table))
        for join in node.joins:
            self._clause(self.render(join))
        if node.where is not None:
            self._clause("WHERE " + self.render(node.where))
        if node.group_by:
            self._clause("GROUP BY " + ", ".join(self.render(e) for e in node.group_by))
        if node.having is not None:
            self._clause("HAVING " + self.render(node.having))
        if node.order_by:
            self._clause("ORDER BY " + ", ".join(self.render(o) for o in node.order_by))

        if dialect.PAGINATION == Pagination.TOP_FETCH:
            if node.offset is not None:
                self._clause(f"OFFSET {self.render(node.offset)} ROWS")
                if node.limit is not None:
                    self._clause(f"FETCH NEXT {self.render(node.limit)} ROWS ONLY")
        else:
            if node.limit is not None:
                self._clause("LIMIT " + self.render(node.limit))
            elif node.offset is not None and dialect.UNLIMITED is not None:
                self._clause("LIMIT " + dialect.UNLIMITED)
            if node.offset is not None:
                self._clause("OFFSET " + self.render(node.offset))

    def _top_count(self, limit: Expression) -> str:
        text = self.render(limit)
        if isinstance(limit, ConstantExpression) and limit.value_kind == ValueKind.INTEGER:
            return text
        return f"({text})"

    # FROM clause

    def visit_table(self, node: TableExpression) -> str:
        quote = self.dialect.quote_identifier
        return f"{quote(node.name)} AS {quote(node.alias)}"

    def visit_join(self, node: JoinExpression) -> str:
        keyword = self.dialect.join_keyword(node.kind)
        return f"{keyword} {self.render(node.table)} ON {self.render(node.condition)}"

    # select list, ordering

    def visit_projection(self, node: ProjectionExpression) -> str:
        text = self.render(node.expression)
        if node.alias:
            text += " AS " + self.dialect.quote_identifier(node.alias)
        return text

    def visit_ordering(self, node: OrderingExpression) -> str:
        return f"{self.render(node.expression)} {'ASC' if node.ascending else 'DESC'}"

    # values

    def _qualified(self, alias: str | None, name: str) -> str:
        quote = self.dialect.quote_identifier
        column = "*" if name == "*" else quote(name)
        if alias is None:
            return column
        return f"{quote(alias)}.{column}"

    def visit_column(self, node: ColumnExpression) -> str:
        return self._qualified(node.table_alias, node.name)

    def visit_parent_column(self, node: ParentColumnExpression) -> str:
        return self._qualified(node.table_alias, node.column_name)

    def visit_constant(self, node: ConstantExpression) -> str:
        dialect = self.dialect
        kind = node.value_kind
        if kind == ValueKind.NULL:
            return "NULL"
        if kind == ValueKind.STRING:
            return dialect.string_literal(node.value)
        if kind == ValueKind.BOOLEAN:
            return dialect.boolean_literal(node.value)
        if kind == ValueKind.DATE:
            return dialect.date_literal(node.value)
        return dialect.number_literal(node.value)

    def visit_parameter(self, node: ParameterExpression) -> str:
        if node.name not in self.parameters:
            return self.dialect.placeholder(node.name)
        value = self.parameters[node.name]
        if isinstance(value, (list, tuple, set, frozenset)):
            return self.render(ValueListExpression(items=tuple(ConstantExpression(v) for v in value)))
        return self.render(ConstantExpression(value))

    def visit_fragment(self, node: FragmentExpression) -> str:
        return node.raw

    def visit_value_list(self, node: ValueListExpression) -> str:
        return "(" + ", ".join(self.render(item) for item in node.items) + ")"

    def visit_function(self, node: FunctionExpression) -> str:
        return self.dialect.function_call(node.name, [self.render(a) for a in node.arguments])

    def visit_binary(self, node: BinaryExpression) -> str:
        token = self.dialect.operator_token(node.operator)
        return f"({self.render(node.left)} {token} {self.render(node.right)})"

    def visit_unary(self, node: UnaryExpression) -> str:
        operand = self.render(node.operand)
        if node.operator.postfix:
            return f"({operand} {node.operator.value})"
        # binary and subquery operands render parenthesized already
        if not isinstance(node.operand, (BinaryExpression, SubqueryExpression, ValueListExpression)):
            operand = f"({operand})"
        if node.operator == UnaryOperator.NEGATE:
            return f"-{operand}"
        return f"{node.operator.value} {operand}"


def emit(
    statement: SelectExpression,
    dialect: Dialect,
    parameters: Mapping[str, Any] | None = None,
    pretty: bool = False,
) -> str:
    """Render ``statement`` with a fresh :class:`SqlEmitter`."""
    return SqlEmitter(dialect, parameters=parameters, pretty=pretty).emit(statement)

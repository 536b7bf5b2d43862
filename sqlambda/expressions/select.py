"""The SELECT statement model and its subquery wrapper."""

from __future__ import annotations

from ._bases import Expression
from .function import FunctionExpression
from .operators import conjoin
from .projection import OrderingExpression, ProjectionExpression
from .table import JoinExpression, TableExpression


class SelectExpression(Expression):
    """One SELECT statement, not yet rendered.

    Builders never change a statement in place; each clause operation derives
    a new one with :meth:`model_copy`, so untouched parts (joins, projections,
    nested subqueries) are shared between the old and new values.
    """

    VISIT = "select"

    from_table: TableExpression
    projections: tuple[ProjectionExpression, ...] = ()
    joins: tuple[JoinExpression, ...] = ()
    where: Expression | None = None
    group_by: tuple[Expression, ...] = ()
    having: Expression | None = None
    order_by: tuple[OrderingExpression, ...] = ()
    limit: Expression | None = None
    offset: Expression | None = None
    distinct: bool = False

    @property
    def is_grouped(self) -> bool:
        return bool(self.group_by)

    def conjoin_where(self, expression: Expression) -> SelectExpression:
        """Copy with ``expression`` ANDed onto the existing filter."""
        return self.model_copy(update={"where": conjoin(self.where, expression)})

    def conjoin_having(self, expression: Expression) -> SelectExpression:
        return self.model_copy(update={"having": conjoin(self.having, expression)})

    def projection_named(self, alias: str) -> ProjectionExpression | None:
        for projection in self.projections:
            if projection.alias == alias:
                return projection
        return None

    def is_valid_grouped_projection(self, projection: ProjectionExpression) -> bool:
        """Whether a projection may stay in the SELECT list of a grouped statement."""
        expression = projection.expression
        if isinstance(expression, FunctionExpression) and expression.is_aggregate:
            return True
        return expression in self.group_by


class SubqueryExpression(Expression):
    """A nested statement used as a value (scalar, ``IN``, ``EXISTS``)."""

    VISIT = "subquery"

    statement: SelectExpression

"""SELECT-list and ORDER BY wrappers."""

from ._bases import Expression


class ProjectionExpression(Expression):
    """One SELECT-list item: ``expression [AS alias]``."""

    VISIT = "projection"

    expression: Expression
    alias: str | None = None


class OrderingExpression(Expression):
    """One ORDER BY item."""

    VISIT = "ordering"

    expression: Expression
    ascending: bool = True

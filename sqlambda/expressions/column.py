"""Column references, local and correlated."""

from ._bases import Expression


class ColumnExpression(Expression):
    """Reference to one column of a table alias in the current statement.

    A ``name`` of ``*`` stands for every column of the alias.
    """

    VISIT = "column"

    name: str
    """Column name (e.g. ``id``, ``user_id``, ``*``)."""
    table_alias: str | None = None
    """Alias of the table the column belongs to; ``None`` leaves it unqualified."""


class ParentColumnExpression(Expression):
    """Reference, from inside a correlated subquery, to a column of an enclosing statement."""

    VISIT = "parent_column"

    table_alias: str
    column_name: str

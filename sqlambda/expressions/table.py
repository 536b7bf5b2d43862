"""Tables and joins in the FROM clause."""

import enum

from ._bases import Expression


class JoinKind(str, enum.Enum):
    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"
    FULL = "full"


class TableExpression(Expression):
    """A table with its alias in this statement (``users AS u``)."""

    VISIT = "table"

    name: str
    alias: str


class JoinExpression(Expression):
    """``<kind> JOIN <table> ON <condition>``."""

    VISIT = "join"

    table: TableExpression
    condition: Expression
    kind: JoinKind = JoinKind.INNER

"""SQL expression tree (IR).

Every SQL-level construct the builder can produce is one of the frozen node
types below. A statement is a :class:`SelectExpression`; a nested statement
used as a value is a :class:`SubqueryExpression`. Nodes carry no dialect
knowledge: :class:`sqlambda.emitter.SqlEmitter` renders them.
"""

from ._bases import Expression
from .column import ColumnExpression, ParentColumnExpression
from .constant import (
    ConstantExpression,
    FragmentExpression,
    ParameterExpression,
    ValueKind,
    ValueListExpression,
    value_kind_of,
)
from .function import AGGREGATE_FUNCTIONS, AggregateKind, FunctionExpression
from .operators import (
    BinaryExpression,
    BinaryOperator,
    UnaryExpression,
    UnaryOperator,
    coerce_binary_operator,
    coerce_unary_operator,
    conjoin,
)
from .projection import OrderingExpression, ProjectionExpression
from .select import SelectExpression, SubqueryExpression
from .serialize import dump, load
from .table import JoinExpression, JoinKind, TableExpression

__all__ = [
    "AGGREGATE_FUNCTIONS",
    "AggregateKind",
    "BinaryExpression",
    "BinaryOperator",
    "ColumnExpression",
    "ConstantExpression",
    "Expression",
    "FragmentExpression",
    "FunctionExpression",
    "JoinExpression",
    "JoinKind",
    "OrderingExpression",
    "ParameterExpression",
    "ParentColumnExpression",
    "ProjectionExpression",
    "SelectExpression",
    "SubqueryExpression",
    "TableExpression",
    "UnaryExpression",
    "UnaryOperator",
    "ValueKind",
    "ValueListExpression",
    "coerce_binary_operator",
    "coerce_unary_operator",
    "conjoin",
    "dump",
    "load",
    "value_kind_of",
]

"""sqlambda: compile Python lambdas over table rows into dialect-correct SQL."""

from .connection import connect, disconnect, get_dialect
from .context import DbContext
from .dialects import (
    Dialect,
    MysqlDialect,
    PostgresDialect,
    SqliteDialect,
    SqlserverDialect,
    get_dialect_for_scheme,
)
from .emitter import SqlEmitter, emit
from .errors import (
    ConstructionError,
    DialectValidationError,
    DuplicateAliasError,
    ResolutionError,
    SqlambdaError,
    UnknownAliasError,
    UnsupportedConstructError,
    UnsupportedOperatorError,
)
from .expressions import AggregateKind, JoinKind
from .provider import BaseProvider, Provider
from .query import Query
from .registry import PropertyRegistry, PropertySource
from .tracing import fn, outer, sql, trace

__all__ = [
    "AggregateKind",
    "BaseProvider",
    "ConstructionError",
    "DbContext",
    "Dialect",
    "DialectValidationError",
    "DuplicateAliasError",
    "JoinKind",
    "MysqlDialect",
    "PostgresDialect",
    "PropertyRegistry",
    "PropertySource",
    "Provider",
    "Query",
    "ResolutionError",
    "SqlEmitter",
    "SqlambdaError",
    "SqliteDialect",
    "SqlserverDialect",
    "UnknownAliasError",
    "UnsupportedConstructError",
    "UnsupportedOperatorError",
    "connect",
    "disconnect",
    "emit",
    "fn",
    "get_dialect",
    "get_dialect_for_scheme",
    "outer",
    "sql",
    "trace",
]

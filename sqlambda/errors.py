"""Errors raised while building, resolving and emitting queries.

Every error carries a ``kind`` and a ``context`` dict so callers (and logs)
can tell what failed without parsing the message.
"""

from typing import Any


class SqlambdaError(ValueError):
    """Base for all sqlambda errors."""

    kind = "error"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured form of the error, e.g. for logging."""
        return {"kind": self.kind, "message": self.message, "context": dict(self.context)}


class ConstructionError(SqlambdaError):
    """An IR node could not be built from the given parts."""

    kind = "construction"


class UnsupportedOperatorError(ConstructionError):
    """Operator is not legal for the requested arity."""

    kind = "unsupported_operator"

    def __init__(self, operator: Any, arity: str) -> None:
        super().__init__(
            f"Unsupported {arity} operator: {operator!r}",
            operator=str(operator),
            arity=arity,
        )


class ResolutionError(SqlambdaError):
    """A property path could not be resolved to a column."""

    kind = "resolution"


class UnknownAliasError(ResolutionError):
    """A property was registered against a table alias nobody registered."""

    kind = "unknown_alias"

    def __init__(self, alias: str) -> None:
        super().__init__(f"Table alias not registered: {alias}", alias=alias)


class DuplicateAliasError(ResolutionError):
    kind = "duplicate_alias"

    def __init__(self, alias: str, table_name: str) -> None:
        super().__init__(
            f"Alias `{alias}` is already used in this context (table `{table_name}`)",
            alias=alias,
            table_name=table_name,
        )


class DialectValidationError(SqlambdaError):
    """The statement is valid IR but cannot be rendered for this dialect."""

    kind = "dialect_validation"


class UnsupportedConstructError(SqlambdaError):
    """A traced construct has no IR mapping.

    ``context["source"]`` holds the source text of the offending callable
    when it could be retrieved.
    """

    kind = "unsupported_construct"

    def __init__(self, message: str, source: str | None = None, **context: Any) -> None:
        if source:
            message = f"{message}\n  in: {source}"
        super().__init__(message, source=source, **context)

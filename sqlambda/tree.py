"""Normalized parse tree produced by the front end and consumed by the builder.

A tree is scoped to the named parameters of one callable: every property
access is a :class:`Member` naming the parameter it starts from and the
ordered list of attribute names that follow it. Nothing here knows about
tables or aliases; :mod:`sqlambda.translate` resolves names against a
registry.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Node(BaseModel):
    """Base parse-tree node."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Member(Node):
    """``parameter.path[0].path[1]...``; an empty path is the parameter itself."""

    parameter: str
    path: tuple[str, ...] = ()

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


class Variable(Node):
    """Access to a caller-supplied context variable (``params.min_age``)."""

    path: tuple[str, ...]


class Outer(Node):
    """Access to a property of the enclosing query, from inside a subquery."""

    path: tuple[str, ...]


class Literal(Node):
    value: Any = None


class BinaryOp(Node):
    operator: str
    left: Node
    right: Node


class UnaryOp(Node):
    operator: str
    operand: Node


class Call(Node):
    """Function call, e.g. ``fn.lower(u.name)`` or ``u.name.lower()``."""

    name: str
    arguments: tuple[Node, ...] = ()


class Like(Node):
    """Pattern match; ``mode`` is one of ``contains``, ``startswith``, ``endswith``, ``like``."""

    operand: Node
    pattern: Node
    mode: str = "like"


class InList(Node):
    operand: Node
    values: tuple[Node, ...]
    negated: bool = False


class Spread(Node):
    """``**source`` inside a record."""

    source: Member


class Record(Node):
    """Result shape: ordered named fields plus spreads."""

    fields: tuple[tuple[str, Node], ...] = ()
    spreads: tuple[Spread, ...] = ()


class Sequence(Node):
    """Several values returned at once (e.g. multi-column ``group_by``)."""

    items: tuple[Node, ...]


class Raw(Node):
    """Literal SQL text."""

    sql: str


class Lambda(Node):
    """One traced callable: its parameter names, body tree and source text."""

    parameters: tuple[str, ...]
    body: Node
    source: str | None = None

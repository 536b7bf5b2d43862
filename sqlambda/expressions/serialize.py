"""Lossless structural dump of expression trees, for tooling and debugging.

``dump`` turns a tree into plain dicts and lists, each node tagged with its
class name under ``"node"``; ``load`` rebuilds the exact same tree, so
``load(dump(expression)) == expression``.
"""

from __future__ import annotations

import datetime
import enum
from typing import Any, Iterable

from ._bases import Expression
from .constant import ConstantExpression, ValueKind
from ..errors import ConstructionError

NODE_KEY = "node"


def _subclasses(base: type) -> Iterable[type]:
    for subclass in base.__subclasses__():
        yield subclass
        yield from _subclasses(subclass)


def find_expression_type(name: str) -> type[Expression]:
    """Return the Expression subclass called ``name``.

    Raises:
        ConstructionError: if no subclass, or more than one, has that name.
    """
    matches = {cls for cls in _subclasses(Expression) if cls.__name__ == name}
    if len(matches) != 1:
        raise ConstructionError(
            f"Cannot load node `{name}`: {len(matches)} matching expression types",
            node=name,
        )
    return matches.pop()


def _dump_value(value: Any) -> Any:
    if isinstance(value, Expression):
        return dump(value)
    if isinstance(value, tuple):
        return [_dump_value(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


def dump(expression: Expression) -> dict[str, Any]:
    """Recursive dict form of an expression tree."""
    data: dict[str, Any] = {NODE_KEY: type(expression).__name__}
    for name in type(expression).model_fields:
        data[name] = _dump_value(getattr(expression, name))
    return data


def _load_value(value: Any) -> Any:
    if isinstance(value, dict) and NODE_KEY in value:
        return load(value)
    if isinstance(value, list):
        return tuple(_load_value(item) for item in value)
    return value


def _parse_date(value: str) -> datetime.date | datetime.datetime:
    # datetime.isoformat() always contains "T", date.isoformat() never does
    if "T" in value:
        return datetime.datetime.fromisoformat(value)
    return datetime.date.fromisoformat(value)


def load(data: dict[str, Any]) -> Expression:
    """Rebuild an expression tree from :func:`dump` output."""
    fields = dict(data)
    try:
        node = fields.pop(NODE_KEY)
    except KeyError as error:
        raise ConstructionError("Serialized expression has no node tag", data=repr(data)) from error
    cls = find_expression_type(node)
    fields = {name: _load_value(value) for name, value in fields.items()}
    if cls is ConstantExpression and fields.get("value_kind") == ValueKind.DATE.value:
        if isinstance(fields.get("value"), str):
            fields["value"] = _parse_date(fields["value"])
    return cls(**fields)

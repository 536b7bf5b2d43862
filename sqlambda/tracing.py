"""Front end: trace Python callables into the normalized parse tree.

The callable is called once with proxy objects instead of rows. Attribute
access on a proxy records a property path, operators record operator nodes,
and the returned value (a proxy, a dict, a tuple, a literal) becomes the body
of a :class:`sqlambda.tree.Lambda`::

    trace(lambda u: (u.age >= 18) & u.name.startswith("A"), 1)

Python's ``and``, ``or``, ``not``, ``in`` and ``if`` force a proxy to a
bool, which cannot be recorded; they raise
:class:`UnsupportedConstructError`. Use ``&``, ``|``, ``~`` and ``.in_()``.

Attributes that are also proxy methods (``keys``, ``contains``, ``in_``, ...)
can still be reached as columns with item access: ``u["keys"]``.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable

from . import tree
from .errors import UnsupportedConstructError


class _SpreadKey:
    """Key yielded by ``Traced.keys()`` so that ``{**proxy}`` records a spread."""

    __slots__ = ("member",)

    def __init__(self, member: tree.Member) -> None:
        self.member = member

    def __hash__(self) -> int:
        return hash(self.member)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _SpreadKey) and other.member == self.member


class Traced:
    """Proxy recording what a callable does with its arguments."""

    __slots__ = ("_node", "_source")

    def __init__(self, node: tree.Node, source: str | None = None) -> None:
        object.__setattr__(self, "_node", node)
        object.__setattr__(self, "_source", source)

    def __repr__(self) -> str:
        return f"Traced({self._node!r})"

    def _wrap(self, node: tree.Node) -> Traced:
        return Traced(node, self._source)

    def _unsupported(self, message: str) -> UnsupportedConstructError:
        return UnsupportedConstructError(message, source=self._source, node=repr(self._node))

    # property access

    def __getattr__(self, name: str) -> Traced:
        if name.startswith("__"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, key: Any) -> Traced:
        node = self._node
        if isinstance(key, _SpreadKey):
            return self._wrap(tree.Spread(source=key.member))
        if not isinstance(key, str):
            raise self._unsupported(f"Only string keys can be used on query proxies, got {key!r}")
        if isinstance(node, tree.Member):
            return self._wrap(tree.Member(parameter=node.parameter, path=node.path + (key,)))
        if isinstance(node, tree.Variable):
            return self._wrap(tree.Variable(path=node.path + (key,)))
        if isinstance(node, tree.Outer):
            return self._wrap(tree.Outer(path=node.path + (key,)))
        raise self._unsupported(f"Cannot access `{key}` on a computed value")

    def __setattr__(self, name: str, value: Any) -> None:
        raise self._unsupported("Query lambdas cannot assign attributes")

    def keys(self) -> tuple[_SpreadKey, ...]:
        """Mapping protocol hook: ``{**proxy}`` records a spread of this member."""
        if not isinstance(self._node, tree.Member):
            raise self._unsupported("Only row members can be spread")
        return (_SpreadKey(self._node),)

    # things that cannot be recorded

    def __bool__(self) -> bool:
        raise self._unsupported(
            "Query lambdas cannot use `and`, `or`, `not`, `in` or `if`; use `&`, `|`, `~` and `.in_()`"
        )

    def __iter__(self):
        raise self._unsupported("Query lambdas cannot iterate over a row")

    def __contains__(self, item: Any) -> bool:
        raise self._unsupported("Query lambdas cannot use `in`; use `.in_()`")

    __hash__ = None

    # calls

    def __call__(self, *args: Any) -> Traced:
        node = self._node
        if isinstance(node, tree.Member) and len(node.path) >= 1:
            receiver = tree.Member(parameter=node.parameter, path=node.path[:-1])
            if receiver.path:
                arguments = (receiver,) + tuple(to_node(arg, self._source) for arg in args)
                return self._wrap(tree.Call(name=node.path[-1], arguments=arguments))
        raise self._unsupported("Only methods of row members can be called")

    # operators

    def _binary(self, operator: str, other: Any, reflected: bool = False) -> Traced:
        other_node = to_node(other, self._source)
        if reflected:
            return self._wrap(tree.BinaryOp(operator=operator, left=other_node, right=self._node))
        return self._wrap(tree.BinaryOp(operator=operator, left=self._node, right=other_node))

    def __eq__(self, other: Any) -> Traced:  # type: ignore[override]
        return self._binary("=", other)

    def __ne__(self, other: Any) -> Traced:  # type: ignore[override]
        return self._binary("<>", other)

    def __lt__(self, other: Any) -> Traced:
        return self._binary("<", other)

    def __le__(self, other: Any) -> Traced:
        return self._binary("<=", other)

    def __gt__(self, other: Any) -> Traced:
        return self._binary(">", other)

    def __ge__(self, other: Any) -> Traced:
        return self._binary(">=", other)

    def __add__(self, other: Any) -> Traced:
        return self._binary("+", other)

    def __radd__(self, other: Any) -> Traced:
        return self._binary("+", other, reflected=True)

    def __sub__(self, other: Any) -> Traced:
        return self._binary("-", other)

    def __rsub__(self, other: Any) -> Traced:
        return self._binary("-", other, reflected=True)

    def __mul__(self, other: Any) -> Traced:
        return self._binary("*", other)

    def __rmul__(self, other: Any) -> Traced:
        return self._binary("*", other, reflected=True)

    def __truediv__(self, other: Any) -> Traced:
        return self._binary("/", other)

    def __rtruediv__(self, other: Any) -> Traced:
        return self._binary("/", other, reflected=True)

    def __mod__(self, other: Any) -> Traced:
        return self._binary("%", other)

    def __rmod__(self, other: Any) -> Traced:
        return self._binary("%", other, reflected=True)

    def __and__(self, other: Any) -> Traced:
        return self._binary("AND", other)

    def __rand__(self, other: Any) -> Traced:
        return self._binary("AND", other, reflected=True)

    def __or__(self, other: Any) -> Traced:
        return self._binary("OR", other)

    def __ror__(self, other: Any) -> Traced:
        return self._binary("OR", other, reflected=True)

    def __invert__(self) -> Traced:
        return self._wrap(tree.UnaryOp(operator="NOT", operand=self._node))

    def __neg__(self) -> Traced:
        return self._wrap(tree.UnaryOp(operator="NEGATE", operand=self._node))

    # named operations

    def in_(self, values: Any) -> Traced:
        """``self IN (values...)``; ``values`` may be a list or a context variable."""
        return self._wrap(tree.InList(operand=self._node, values=_value_nodes(values, self._source)))

    def not_in(self, values: Any) -> Traced:
        return self._wrap(tree.InList(operand=self._node, values=_value_nodes(values, self._source), negated=True))

    def is_null(self) -> Traced:
        return self._wrap(tree.UnaryOp(operator="IS NULL", operand=self._node))

    def is_not_null(self) -> Traced:
        return self._wrap(tree.UnaryOp(operator="IS NOT NULL", operand=self._node))

    def between(self, low: Any, high: Any) -> Traced:
        """Inclusive range: ``(self >= low) & (self <= high)``."""
        return (self >= low) & (self <= high)

    def like(self, pattern: Any) -> Traced:
        return self._like(pattern, "like")

    def contains(self, needle: Any) -> Traced:
        return self._like(needle, "contains")

    def startswith(self, prefix: Any) -> Traced:
        return self._like(prefix, "startswith")

    def endswith(self, suffix: Any) -> Traced:
        return self._like(suffix, "endswith")

    def _like(self, pattern: Any, mode: str) -> Traced:
        return self._wrap(tree.Like(operand=self._node, pattern=to_node(pattern, self._source), mode=mode))


def _value_nodes(values: Any, source: str | None) -> tuple[tree.Node, ...]:
    if isinstance(values, Traced):
        return (values._node,)
    if isinstance(values, (list, tuple, set, frozenset)):
        return tuple(to_node(value, source) for value in values)
    raise UnsupportedConstructError(f"`in_` expects a list of values, got {values!r}", source=source)


class _Functions:
    """``fn.<name>(*args)`` builds a SQL function call (``fn.count()``, ``fn.lower(u.name)``)."""

    __slots__ = ()

    def __getattr__(self, name: str) -> Callable[..., Traced]:
        if name.startswith("__"):
            raise AttributeError(name)

        def call(*args: Any) -> Traced:
            return Traced(tree.Call(name=name, arguments=tuple(to_node(arg, None) for arg in args)))

        call.__name__ = name
        return call


fn = _Functions()
"""SQL function namespace for use inside query lambdas."""

outer = Traced(tree.Outer(path=()))
"""The enclosing query's row, for use inside subquery lambdas (``outer.credit_limit``)."""


def sql(raw: str) -> Traced:
    """Literal SQL text for use inside query lambdas."""
    return Traced(tree.Raw(sql=raw))


def to_node(value: Any, source: str | None = None) -> tree.Node:
    """Convert whatever a lambda returned (or was given) into a parse-tree node."""
    if isinstance(value, Traced):
        return value._node
    if isinstance(value, tree.Node):
        return value
    if isinstance(value, dict):
        return _record(value, source)
    if isinstance(value, (list, tuple)):
        return tree.Sequence(items=tuple(to_node(item, source) for item in value))
    return tree.Literal(value=value)


def _record(mapping: dict, source: str | None) -> tree.Record:
    fields = []
    spreads = []
    for key, value in mapping.items():
        if isinstance(key, _SpreadKey):
            spreads.append(tree.Spread(source=key.member))
        elif isinstance(key, str):
            fields.append((key, to_node(value, source)))
        else:
            raise UnsupportedConstructError(f"Record keys must be strings, got {key!r}", source=source)
    return tree.Record(fields=tuple(fields), spreads=tuple(spreads))


def _source_of(function: Callable) -> str | None:
    try:
        return inspect.getsource(function).strip()
    except (OSError, TypeError):
        return None


def trace(function: Callable, rows: int, variables: bool = True) -> tree.Lambda:
    """Call ``function`` with proxies and return the recorded tree.

    Args:
        function: The caller's lambda.
        rows: How many leading parameters stand for table rows.
        variables: If True, one extra trailing parameter receives the
            query's context variables.

    Raises:
        UnsupportedConstructError: if the parameter count does not fit, or
            the callable does something that cannot be recorded.
    """
    source = _source_of(function)
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError) as error:
        raise UnsupportedConstructError("Cannot inspect query callable", source=source) from error
    names = [
        parameter.name
        for parameter in signature.parameters.values()
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
    ]
    if len(names) != len(signature.parameters):
        raise UnsupportedConstructError("Query callables take plain positional parameters only", source=source)
    maximum = rows + (1 if variables else 0)
    if not rows <= len(names) <= maximum:
        raise UnsupportedConstructError(
            f"Query callable takes {len(names)} parameters, expected {rows}"
            + (f" or {maximum}" if maximum != rows else ""),
            source=source,
        )
    arguments = [Traced(tree.Member(parameter=name), source) for name in names[:rows]]
    if len(names) > rows:
        arguments.append(Traced(tree.Variable(path=()), source))
    result = function(*arguments)
    return tree.Lambda(parameters=tuple(names[:rows]), body=to_node(result, source), source=source)

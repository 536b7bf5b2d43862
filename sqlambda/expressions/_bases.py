"""Base expression type for the SQL expression tree (IR)."""

from __future__ import annotations
from typing import Any, ClassVar, Iterator

from pydantic import BaseModel, ConfigDict

from ..errors import UnsupportedConstructError


class Expression(BaseModel):
    """Base type for all IR nodes.

    Nodes are frozen pydantic models: once built they are never changed, so a
    subtree can be shared by any number of statements and builders. Derived
    nodes are produced with ``model_copy(update=...)``.

    Rendering is not done here; the emitter walks the tree through
    :meth:`accept`, which dispatches to ``visitor.visit_<VISIT>(node)``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    VISIT: ClassVar[str] = ""
    """Suffix of the visitor method handling this node type."""

    def accept(self, visitor: Any) -> Any:
        """Dispatch to the visitor method for this node type."""
        method = getattr(visitor, f"visit_{self.VISIT}", None)
        if method is None:
            raise UnsupportedConstructError(
                f"{type(visitor).__name__} cannot visit {type(self).__name__}",
                node=type(self).__name__,
                visitor=type(visitor).__name__,
            )
        return method(self)

    def children(self) -> Iterator[Expression]:
        """Direct child expressions, in field order."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, Expression):
                yield value
            elif isinstance(value, tuple):
                for item in value:
                    if isinstance(item, Expression):
                        yield item

    def walk(self) -> Iterator[Expression]:
        """This node and all its descendants, depth-first."""
        yield self
        for child in self.children():
            yield from child.walk()

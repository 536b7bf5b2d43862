"""Database context: hands out root queries with unique table aliases."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, PrivateAttr

from .connection import get_dialect
from .dialects import Dialect
from .errors import DuplicateAliasError
from .expressions import AggregateKind
from .query import Query

logger = logging.getLogger(__name__)


class DbContext(BaseModel):
    """Configuration shared by the queries of one database.

    Aliases are unique within a context: the first table starting with
    ``u`` gets ``u``, the next ones ``u1``, ``u2``... so self-joins and
    subqueries over the same table never collide.
    """

    model_config = {"arbitrary_types_allowed": True}

    dialect: Optional[Dialect] = None
    """Rendering rules; when unset, taken from the named connection."""
    connection: str = "default"
    """Name passed to :func:`sqlambda.connect`."""
    provider: Any = None
    """Executes queries (see :class:`sqlambda.provider.Provider`)."""
    having_default_aggregate: Optional[AggregateKind] = None
    """Aggregate wrapped around ungrouped columns in HAVING; None rejects them."""
    pretty: bool = False
    """Render one clause per line."""

    _aliases: dict[str, str] = PrivateAttr(default_factory=dict)

    def get_dialect(self) -> Dialect:
        if self.dialect is not None:
            return self.dialect
        return get_dialect(self.connection)

    @property
    def aliases(self) -> dict[str, str]:
        """Aliases handed out so far, mapped to their table names."""
        return dict(self._aliases)

    def _generate_alias(self, table_name: str) -> str:
        letters = re.sub(r"[^a-z]", "", table_name.lower())
        base = letters[:1] or "t"
        alias, counter = base, 0
        while alias in self._aliases:
            counter += 1
            alias = f"{base}{counter}"
        return alias

    def table(self, name: str, alias: str | None = None) -> Query:
        """Root query over ``name``.

        Raises:
            DuplicateAliasError: if ``alias`` was already handed out.
        """
        if alias is None:
            alias = self._generate_alias(name)
        elif alias in self._aliases:
            raise DuplicateAliasError(alias, self._aliases[alias])
        self._aliases[alias] = name
        logger.debug("Table %s AS %s", name, alias)
        return Query.from_table(name, alias, context=self)

    set = table

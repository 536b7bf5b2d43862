"""Execution collaborator contract.

The compilation core never talks to a database. Queries hand their SQL (or
their serialized statement) and parameters to a provider, which owns
connections, retries and timeouts.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Row = dict[str, Any]


@runtime_checkable
class Provider(Protocol):
    """What :class:`sqlambda.query.Query` needs to run itself."""

    async def query(self, sql: str, parameters: Mapping[str, Any]) -> list[Row]:
        ...

    async def first(self, sql: str, parameters: Mapping[str, Any]) -> Row | None:
        ...

    async def execute_ir(self, ir: Mapping[str, Any], parameters: Mapping[str, Any]) -> Any:
        ...


class BaseProvider(ABC):
    """Convenience base: implement :meth:`query`, get :meth:`first` for free."""

    @abstractmethod
    async def query(self, sql: str, parameters: Mapping[str, Any]) -> list[Row]:
        """Run ``sql`` and return all rows as dicts."""
        ...  # pylint: disable=unnecessary-ellipsis

    async def first(self, sql: str, parameters: Mapping[str, Any]) -> Row | None:
        rows = await self.query(sql, parameters)
        return rows[0] if rows else None

    async def execute_ir(self, ir: Mapping[str, Any], parameters: Mapping[str, Any]) -> Any:
        """Run a serialized statement; providers that only take SQL do not support it."""
        raise NotImplementedError(f"{type(self).__name__} does not accept serialized statements")

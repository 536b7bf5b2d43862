"""Alias and property registry: the symbol table behind name resolution.

The registry maps table aliases to table names, and property names (which may
be dotted paths introduced by joins and projections) to the table alias and
column they stand for. Registries are immutable: every ``register_*`` call
returns a new registry, and entries are frozen, so forks of a query share
them freely.

Resolution follows a fixed, ordered fallback chain (see :meth:`PropertyRegistry.resolve`).
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterator, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

from .errors import UnknownAliasError

logger = logging.getLogger(__name__)

WILDCARD = "*"


class PropertySource(BaseModel):
    """Where a property name comes from."""

    model_config = ConfigDict(frozen=True)

    table_alias: str
    table_name: str
    column_name: str
    """Column name, or ``*`` for a compound entry."""
    property_path: tuple[str, ...] | None = None
    """Path of the property as written in the shaping selector, if nested."""
    is_compound: bool = False
    """Entry stands for a whole joined record rather than a single column."""
    is_complex: bool = False
    """Entry is a projected expression with no column identity."""


class PropertyRegistry:
    """Immutable table-alias and property-name symbol table."""

    __slots__ = ("_tables", "_properties")

    def __init__(
        self,
        tables: Mapping[str, str] | None = None,
        properties: Mapping[str, PropertySource] | None = None,
    ) -> None:
        self._tables = MappingProxyType(dict(tables or {}))
        self._properties = MappingProxyType(dict(properties or {}))

    def __repr__(self) -> str:
        return f"PropertyRegistry(tables={dict(self._tables)!r}, properties={list(self._properties)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyRegistry):
            return NotImplemented
        return dict(self._tables) == dict(other._tables) and dict(self._properties) == dict(other._properties)

    __hash__ = None

    def __contains__(self, name: str) -> bool:
        return name in self._properties

    def __len__(self) -> int:
        return len(self._properties)

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    # tables

    @property
    def table_aliases(self) -> tuple[str, ...]:
        return tuple(self._tables)

    def table_name_for(self, alias: str) -> str | None:
        return self._tables.get(alias)

    def register_table(self, name: str, alias: str) -> PropertyRegistry:
        """Return a registry that also knows ``alias`` as ``name``."""
        tables = dict(self._tables)
        tables[alias] = name
        return PropertyRegistry(tables, self._properties)

    # properties

    def get(self, name: str) -> PropertySource | None:
        """Exact lookup, no fallbacks."""
        return self._properties.get(name)

    def register_property(
        self,
        name: str,
        alias: str,
        column: str,
        path: Sequence[str] | None = None,
    ) -> PropertyRegistry:
        """Return a registry where ``name`` resolves to ``alias.column``.

        A ``column`` of ``*`` or a given ``path`` marks the entry as compound.

        Raises:
            UnknownAliasError: if ``alias`` was never registered as a table.
        """
        table_name = self._tables.get(alias)
        if table_name is None:
            raise UnknownAliasError(alias)
        source = PropertySource(
            table_alias=alias,
            table_name=table_name,
            column_name=column,
            property_path=tuple(path) if path is not None else None,
            is_compound=column == WILDCARD or path is not None,
        )
        return self._with_property(name, source)

    def register_compound(self, name: str, alias: str) -> PropertyRegistry:
        """Register ``name`` as a whole record of ``alias``, plus its ``name.*`` wildcard."""
        registry = self.register_property(name, alias, WILDCARD, path=name.split("."))
        return registry.register_property(f"{name}.{WILDCARD}", alias, WILDCARD)

    def register_complex(self, name: str, alias: str) -> PropertyRegistry:
        """Register a projected alias whose expression is not a plain column."""
        table_name = self._tables.get(alias)
        if table_name is None:
            raise UnknownAliasError(alias)
        source = PropertySource(
            table_alias=alias,
            table_name=table_name,
            column_name=name,
            is_complex=True,
        )
        return self._with_property(name, source)

    def register_source(self, name: str, source: PropertySource) -> PropertyRegistry:
        """Register an existing entry (e.g. from another registry) under ``name``."""
        if source.table_alias not in self._tables:
            raise UnknownAliasError(source.table_alias)
        return self._with_property(name, source)

    def _with_property(self, name: str, source: PropertySource) -> PropertyRegistry:
        properties = dict(self._properties)
        properties[name] = source
        return PropertyRegistry(self._tables, properties)

    def properties_for_alias(self, alias: str) -> dict[str, PropertySource]:
        return {
            name: source
            for name, source in self._properties.items()
            if source.table_alias == alias
        }

    def entries_under(self, prefix: str) -> dict[str, PropertySource]:
        """Entries registered as ``prefix.<sub>``, keyed by ``<sub>`` (wildcard excluded)."""
        start = prefix + "."
        return {
            name[len(start):]: source
            for name, source in self._properties.items()
            if name.startswith(start) and name != start + WILDCARD
        }

    # composition

    def merge(self, other: PropertyRegistry) -> PropertyRegistry:
        """Union of both registries; ``other`` wins on conflicting names."""
        tables = {**self._tables, **other._tables}
        properties = {**self._properties, **other._properties}
        return PropertyRegistry(tables, properties)

    def with_prefix(self, prefix: str) -> PropertyRegistry:
        """Copy where every property name is moved under ``prefix.``."""
        properties = {
            f"{prefix}.{name}": source.model_copy(update={
                "property_path": (prefix,) + (source.property_path or tuple(name.split("."))),
            })
            for name, source in self._properties.items()
        }
        return PropertyRegistry(self._tables, properties)

    # resolution

    def resolve(self, path: str | Sequence[str]) -> PropertySource | None:
        """Resolve a (dotted) property path to its source; ``None`` if nothing matches.

        In order, first hit wins:

        1. exact match of the full path;
        2. first segment is compound and ``first.*`` is registered: wildcard's
           alias, last segment as column;
        3. first segment is registered directly and compound: its alias, last
           segment as column;
        4. some entry's recorded ``property_path`` contains the second segment:
           that entry's alias, last segment as column;
        5. some non-final segment equals a table alias, or its first character
           does: that alias, last segment as column.

        Pure lookup: no state changes, same answer for the same registry and path.
        """
        segments = tuple(path.split(".")) if isinstance(path, str) else tuple(path)
        if not segments:
            return None
        name = ".".join(segments)

        source = self._properties.get(name)
        if source is not None:
            return source
        if len(segments) < 2:
            return None
        first, last = segments[0], segments[-1]

        wildcard = self._properties.get(f"{first}.{WILDCARD}")
        root = self._properties.get(first)
        if wildcard is not None and (root is None or root.is_compound):
            return self._column_of(wildcard, last, segments)

        if root is not None and root.is_compound:
            return self._column_of(root, last, segments)

        second = segments[1]
        for candidate in self._properties.values():
            if candidate.property_path and second in candidate.property_path:
                logger.debug("Resolved %s through property path of %s", name, candidate.property_path)
                return self._column_of(candidate, last, segments)

        for segment in segments[:-1]:
            for alias in self._tables:
                if segment == alias or segment[:1] == alias:
                    logger.debug("Resolved %s through table alias %s", name, alias)
                    return PropertySource(
                        table_alias=alias,
                        table_name=self._tables[alias],
                        column_name=last,
                        property_path=segments,
                    )
        return None

    @staticmethod
    def _column_of(source: PropertySource, column: str, segments: tuple[str, ...]) -> PropertySource:
        return PropertySource(
            table_alias=source.table_alias,
            table_name=source.table_name,
            column_name=column,
            property_path=segments,
        )

    def dump(self) -> str:
        """Human-readable listing of tables and properties."""
        lines = ["tables:"]
        lines += [f"  {alias} -> {name}" for alias, name in self._tables.items()]
        lines.append("properties:")
        for name, source in self._properties.items():
            flags = "".join((
                " compound" if source.is_compound else "",
                " complex" if source.is_complex else "",
            ))
            path = ".".join(source.property_path) if source.property_path else "-"
            lines.append(f"  {name} -> {source.table_alias}.{source.column_name} (path {path}){flags}")
        return "\n".join(lines)

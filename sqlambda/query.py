"""Immutable query builder.

A :class:`Query` wraps one statement in progress, the registry of names its
lambdas can use, the table it started from and the caller's context
variables. Every clause method returns a new Query through
:meth:`Query.clone_query_with`; the receiver is left as it was, so a base
query can be branched into any number of variants::

    adults = db.table("users").where(lambda u: u.age >= 18)
    names = adults.select(lambda u: {"id": u.id, "name": u.name}).order_by(lambda u: u.name)
    print(names.limit(10).sql)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from . import tree
from .dialects import Dialect
from .emitter import SqlEmitter
from .errors import (
    ConstructionError,
    DuplicateAliasError,
    ResolutionError,
    UnsupportedConstructError,
    UnsupportedOperatorError,
)
from .expressions import (
    AggregateKind,
    BinaryExpression,
    BinaryOperator,
    ColumnExpression,
    ConstantExpression,
    Expression,
    JoinExpression,
    JoinKind,
    OrderingExpression,
    ParameterExpression,
    ParentColumnExpression,
    ProjectionExpression,
    SelectExpression,
    SubqueryExpression,
    TableExpression,
    UnaryExpression,
    UnaryOperator,
    coerce_binary_operator,
    conjoin,
    dump,
)
from .registry import WILDCARD, PropertyRegistry
from .tracing import trace
from .translate import Translator, aggregate_of, wrap_ungrouped

logger = logging.getLogger("sqlambda")

Lambda = Callable[..., Any]


class Query(BaseModel):
    """Fluent, immutable SELECT builder for one root table."""

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    table_name: str
    """Table the query selects from."""
    alias: str
    """Alias of that table in the statement."""
    statement: SelectExpression
    registry: PropertyRegistry
    """Names lambdas of this query can refer to."""
    variables: dict[str, Any] = Field(default_factory=dict)
    """Context variables, passed as the extra lambda parameter."""
    context: Any = Field(default=None, exclude=True, repr=False)
    """Owning DbContext (dialect, provider, defaults), if any."""
    outer_registry: Optional[PropertyRegistry] = None
    """Names of the enclosing queries, when this query is a subquery."""
    outer_alias: Optional[str] = None

    @classmethod
    def from_table(cls, table_name: str, alias: str, context: Any = None) -> Query:
        """Root query selecting every column of ``table_name AS alias``."""
        return cls(
            table_name=table_name,
            alias=alias,
            statement=SelectExpression(from_table=TableExpression(name=table_name, alias=alias)),
            registry=PropertyRegistry().register_table(table_name, alias),
            context=context,
        )

    def clone_query_with(self, **changes) -> Query:
        """Return a new Query with the same state except for the given overrides.

        Unchanged fields (statement subtrees, registry entries) are shared,
        not copied.
        """
        return self.model_copy(update=changes)

    def _with_statement(self, statement: SelectExpression, **changes) -> Query:
        return self.clone_query_with(statement=statement, **changes)

    # lambda compilation

    def _translator(self, source: str | None = None) -> Translator:
        return Translator(
            self.registry,
            self.alias,
            statement=self.statement,
            variables=self.variables,
            outer_registry=self.outer_registry,
            outer_alias=self.outer_alias,
            source=source,
        )

    def _trace(self, function: Lambda) -> tree.Lambda:
        return trace(function, 1)

    def _expression(self, function: Lambda) -> Expression:
        """Compile a one-row lambda returning a single value."""
        traced = self._trace(function)
        return self._translator(traced.source).expression(traced.body)

    def _expressions(self, function: Lambda) -> tuple[Expression, ...]:
        """Compile a one-row lambda returning one value or a tuple of them."""
        traced = self._trace(function)
        translator = self._translator(traced.source)
        body = traced.body
        nodes = body.items if isinstance(body, tree.Sequence) else (body,)
        return tuple(translator.expression(node) for node in nodes)

    @property
    def _scope(self) -> PropertyRegistry:
        """Names visible to a subquery of this query: its own, then the outer ones."""
        if self.outer_registry is None:
            return self.registry
        return self.outer_registry.merge(self.registry)

    # filtering

    def where(self, predicate: Lambda) -> Query:
        """Add a predicate; predicates accumulate with AND.

        ``predicate`` takes the row, and optionally the context variables::

            query.where(lambda u, params: u.age >= params.min_age)
        """
        return self._with_statement(self.statement.conjoin_where(self._expression(predicate)))

    filter = where

    def with_variables(self, **values: Any) -> Query:
        """Bind context variables for the lambdas of this query and later ones."""
        return self.clone_query_with(variables={**self.variables, **values})

    # projection

    def select(self, selector: Lambda) -> Query:
        """Replace the SELECT list.

        ``selector`` returns a dict (one projection per key), a single
        property (projected under its last name), or the row itself
        (``alias.*``). Projected names become resolvable by later lambdas.
        Projections added by :meth:`with_subquery` are kept.
        """
        traced = self._trace(selector)
        translator = self._translator(traced.source)
        body = traced.body
        registry = self.registry
        projections: list[ProjectionExpression] = []

        if isinstance(body, tree.Record):
            for spread in body.spreads:
                projections.append(self._spread_projection(spread.source, traced.source))
            fields = body.fields
        elif isinstance(body, tree.Member) and not body.path:
            projections.append(ProjectionExpression(expression=ColumnExpression(name=WILDCARD, table_alias=self.alias)))
            fields = ()
        elif isinstance(body, tree.Member):
            fields = ((body.path[-1], body),)
        else:
            projections.append(ProjectionExpression(expression=translator.expression(body)))
            fields = ()

        for name, node in fields:
            projection, registry = self._project_field(name, node, translator, registry)
            projections.append(projection)

        if self.statement.is_grouped:
            for projection in projections:
                if not self.statement.is_valid_grouped_projection(projection):
                    label = projection.alias or SqlEmitter(self.dialect).render(projection.expression)
                    raise ResolutionError(
                        f"Projection `{label}` is neither grouped nor aggregated",
                        projection=label,
                    )

        aliases = {projection.alias for projection in projections}
        kept = tuple(
            projection
            for projection in self.statement.projections
            if isinstance(projection.expression, SubqueryExpression) and projection.alias not in aliases
        )
        statement = self.statement.model_copy(update={"projections": tuple(projections) + kept})
        return self._with_statement(statement, registry=registry)

    project = select

    def _spread_projection(self, member: tree.Member, source: str | None) -> ProjectionExpression:
        if not member.path:
            return ProjectionExpression(expression=ColumnExpression(name=WILDCARD, table_alias=self.alias))
        resolved = self.registry.resolve(member.path)
        if resolved is None or resolved.column_name != WILDCARD:
            raise UnsupportedConstructError(f"Only joined records can be spread, not `{member.dotted}`", source=source)
        return ProjectionExpression(expression=ColumnExpression(name=WILDCARD, table_alias=resolved.table_alias))

    def _project_field(
        self,
        name: str,
        node: tree.Node,
        translator: Translator,
        registry: PropertyRegistry,
    ) -> tuple[ProjectionExpression, PropertyRegistry]:
        if isinstance(node, tree.Member):
            if not node.path:
                registry = registry.register_compound(name, self.alias)
                return ProjectionExpression(expression=ColumnExpression(name=WILDCARD, table_alias=self.alias)), registry
            source = self.registry.resolve(node.path)
            if source is not None and source.column_name == WILDCARD:
                registry = registry.register_compound(name, source.table_alias)
                column = ColumnExpression(name=WILDCARD, table_alias=source.table_alias)
                return ProjectionExpression(expression=column), registry
        expression = translator.expression(node)
        if isinstance(expression, ColumnExpression) and expression.table_alias in registry.table_aliases:
            registry = registry.register_property(name, expression.table_alias, expression.name)
        else:
            registry = registry.register_complex(name, self.alias)
        return ProjectionExpression(expression=expression, alias=name), registry

    def distinct(self, enabled: bool = True) -> Query:
        return self._with_statement(self.statement.model_copy(update={"distinct": enabled}))

    # joins

    def join(
        self,
        target: Query,
        source_key: Lambda,
        target_key: Lambda,
        shape: Lambda,
        kind: JoinKind | str = JoinKind.INNER,
    ) -> Query:
        """Join ``target`` on ``source_key(row) == target_key(target_row)``.

        Args:
            target: Root query of the joined table (``db.table("orders")``);
                its filter, if any, is added to the ON condition.
            source_key: Key of this query's row; nested paths through
                earlier joins are allowed. May return a tuple for composite keys.
            target_key: Key of the target row, same arity as ``source_key``.
            shape: Two-parameter lambda returning the dict that names what
                later lambdas see, e.g. ``lambda u, o: {"user": u, "order": o}``
                or ``lambda joined, item: {**joined, "item": item}``.
            kind: ``inner``, ``left``, ``right`` or ``full``.

        Raises:
            DuplicateAliasError: if the target's alias is already in this query.
            ResolutionError: if a key cannot be resolved.
        """
        if target.alias in self.registry.table_aliases:
            raise DuplicateAliasError(target.alias, target.table_name)
        if target.statement.joins:
            raise ConstructionError(
                "Join targets must be plain table queries",
                table=target.table_name,
            )
        source_keys = self._expressions(source_key)
        target_keys = target._expressions(target_key)
        if len(source_keys) != len(target_keys):
            raise ConstructionError(
                "Join keys differ in length",
                source=len(source_keys),
                target=len(target_keys),
            )
        condition = conjoin(
            *(BinaryExpression(BinaryOperator.EQUAL, s, t) for s, t in zip(source_keys, target_keys)),
            target.statement.where,
        )
        registry = self.registry.register_table(target.table_name, target.alias)
        registry = self._register_shape(trace(shape, 2, variables=False), registry, target)
        join = JoinExpression(
            table=TableExpression(name=target.table_name, alias=target.alias),
            condition=condition,
            kind=JoinKind(kind),
        )
        logger.debug("JOIN %s AS %s; registry now:\n%s", target.table_name, target.alias, registry.dump())
        statement = self.statement.model_copy(update={"joins": self.statement.joins + (join,)})
        return self._with_statement(statement, registry=registry)

    def left_join(self, target: Query, source_key: Lambda, target_key: Lambda, shape: Lambda) -> Query:
        return self.join(target, source_key, target_key, shape, JoinKind.LEFT)

    def right_join(self, target: Query, source_key: Lambda, target_key: Lambda, shape: Lambda) -> Query:
        return self.join(target, source_key, target_key, shape, JoinKind.RIGHT)

    def full_join(self, target: Query, source_key: Lambda, target_key: Lambda, shape: Lambda) -> Query:
        return self.join(target, source_key, target_key, shape, JoinKind.FULL)

    def _register_shape(self, traced: tree.Lambda, registry: PropertyRegistry, target: Query) -> PropertyRegistry:
        """Register the names a join shape introduces."""
        body = traced.body
        if not isinstance(body, tree.Record):
            raise UnsupportedConstructError("Join shapes must return a dict", source=traced.source)
        source_parameter, target_parameter = traced.parameters
        sides = {
            source_parameter: (self.registry, self.alias),
            target_parameter: (target.registry, target.alias),
        }

        for spread in body.spreads:
            member = spread.source
            side_registry, _ = sides[member.parameter]
            if not member.path:
                if member.parameter == target_parameter:
                    registry = registry.merge(target.registry)
                continue
            for sub, source in side_registry.entries_under(member.dotted).items():
                registry = registry.register_source(sub, source)

        for name, node in body.fields:
            if not isinstance(node, tree.Member):
                raise UnsupportedConstructError(
                    f"Join shape field `{name}` must be a row or one of its fields",
                    source=traced.source,
                )
            side_registry, side_alias = sides[node.parameter]
            if not node.path:
                if node.parameter == source_parameter and self.statement.joins:
                    # a record carried through earlier joins: keep its names under the new one
                    registry = registry.merge(self.registry.with_prefix(name))
                else:
                    registry = registry.register_compound(name, side_alias)
                continue
            source = side_registry.resolve(node.path)
            if source is None:
                if len(node.path) > 1:
                    raise ResolutionError(
                        f"Could not resolve property `{node.parameter}.{node.dotted}`",
                        path=node.dotted,
                    )
                registry = registry.register_property(name, side_alias, node.path[0])
            elif source.column_name == WILDCARD:
                registry = registry.register_compound(name, source.table_alias)
                for sub, entry in side_registry.entries_under(node.dotted).items():
                    registry = registry.register_source(f"{name}.{sub}", entry)
            else:
                registry = registry.register_property(name, source.table_alias, source.column_name)
        return registry

    # grouping and aggregates

    def group_by(self, selector: Lambda) -> Query:
        """Group on one or more fields (a selector may return a tuple).

        Projections that are neither aggregates nor grouped columns are
        dropped; if none remain, the grouped columns are projected.
        """
        columns = self._expressions(selector)
        statement = self.statement.model_copy(update={"group_by": self.statement.group_by + columns})
        projections = tuple(p for p in statement.projections if statement.is_valid_grouped_projection(p))
        if not projections:
            projections = _group_projections(statement.group_by)
        return self._with_statement(statement.model_copy(update={"projections": projections}))

    def aggregate(self, kind: AggregateKind | str, selector: Lambda | None = None, alias: str | None = None) -> Query:
        """Project an aggregate (``COUNT(*)`` when counting without a selector).

        In a grouped statement, projections other than aggregates and
        grouped columns are dropped first.
        """
        argument = None if selector is None else self._expression(selector)
        function = aggregate_of(kind, argument)
        alias = alias or function.name.lower()
        projections = self.statement.projections
        if self.statement.is_grouped:
            projections = tuple(p for p in projections if self.statement.is_valid_grouped_projection(p))
        projections = tuple(p for p in projections if p.alias != alias)
        projections += (ProjectionExpression(expression=function, alias=alias),)
        statement = self.statement.model_copy(update={"projections": projections})
        return self._with_statement(statement, registry=self.registry.register_complex(alias, self.alias))

    def count(self, selector: Lambda | None = None, alias: str = "count") -> Query:
        return self.aggregate(AggregateKind.COUNT, selector, alias)

    def sum(self, selector: Lambda, alias: str = "sum") -> Query:
        return self.aggregate(AggregateKind.SUM, selector, alias)

    def avg(self, selector: Lambda, alias: str = "avg") -> Query:
        return self.aggregate(AggregateKind.AVG, selector, alias)

    def min(self, selector: Lambda, alias: str = "min") -> Query:
        return self.aggregate(AggregateKind.MIN, selector, alias)

    def max(self, selector: Lambda, alias: str = "max") -> Query:
        return self.aggregate(AggregateKind.MAX, selector, alias)

    def having(self, predicate: Lambda, default_aggregate: AggregateKind | str | None = None) -> Query:
        """Add a HAVING predicate; predicates accumulate with AND.

        Projected aggregate names resolve to their aggregate
        (``having(lambda g: g.cnt > 5)`` gives ``COUNT(*) > 5``). In a grouped
        statement a bare column that is not grouped on is wrapped in
        ``default_aggregate`` (falling back to the context's
        ``having_default_aggregate``), or rejected when neither is set.
        """
        traced = self._trace(predicate)
        expression = self._translator(traced.source).expression(traced.body)
        if self.statement.is_grouped:
            aggregate = default_aggregate
            if aggregate is None and self.context is not None:
                aggregate = self.context.having_default_aggregate
            if aggregate is not None:
                aggregate = AggregateKind(aggregate.lower() if isinstance(aggregate, str) else aggregate)
            expression = wrap_ungrouped(expression, self.statement.group_by, aggregate, traced.source)
        return self._with_statement(self.statement.conjoin_having(expression))

    def having_aggregate(
        self,
        kind: AggregateKind | str,
        selector: Lambda | None,
        operator: BinaryOperator | str,
        value: Any,
    ) -> Query:
        """``HAVING <kind>(field) <operator> value``."""
        argument = None if selector is None else self._expression(selector)
        comparison = _comparison(operator)
        expression = BinaryExpression(comparison, aggregate_of(kind, argument), ConstantExpression(value))
        return self._with_statement(self.statement.conjoin_having(expression))

    def having_count(self, operator: BinaryOperator | str, value: Any) -> Query:
        return self.having_aggregate(AggregateKind.COUNT, None, operator, value)

    def having_sum(self, selector: Lambda, operator: BinaryOperator | str, value: Any) -> Query:
        return self.having_aggregate(AggregateKind.SUM, selector, operator, value)

    def having_avg(self, selector: Lambda, operator: BinaryOperator | str, value: Any) -> Query:
        return self.having_aggregate(AggregateKind.AVG, selector, operator, value)

    def having_min(self, selector: Lambda, operator: BinaryOperator | str, value: Any) -> Query:
        return self.having_aggregate(AggregateKind.MIN, selector, operator, value)

    def having_max(self, selector: Lambda, operator: BinaryOperator | str, value: Any) -> Query:
        return self.having_aggregate(AggregateKind.MAX, selector, operator, value)

    # ordering and pagination

    def order_by(self, selector: Lambda, ascending: bool = True) -> Query:
        """Append orderings (a selector may return a tuple)."""
        orderings = tuple(
            OrderingExpression(expression=expression, ascending=ascending)
            for expression in self._expressions(selector)
        )
        return self._with_statement(self.statement.model_copy(update={"order_by": self.statement.order_by + orderings}))

    def order_by_desc(self, selector: Lambda) -> Query:
        return self.order_by(selector, ascending=False)

    def order_by_aggregate(
        self,
        kind: AggregateKind | str,
        selector: Lambda | None = None,
        ascending: bool = True,
    ) -> Query:
        argument = None if selector is None else self._expression(selector)
        ordering = OrderingExpression(expression=aggregate_of(kind, argument), ascending=ascending)
        return self._with_statement(self.statement.model_copy(update={"order_by": self.statement.order_by + (ordering,)}))

    def paginate(self, limit: int | None = None, offset: int | None = None) -> Query:
        """Set LIMIT and/or OFFSET. Dialect requirements are checked when emitting."""
        changes = {}
        if limit is not None:
            changes["limit"] = ConstantExpression(_non_negative("limit", limit))
        if offset is not None:
            changes["offset"] = ConstantExpression(_non_negative("offset", offset))
        return self._with_statement(self.statement.model_copy(update=changes))

    def limit(self, limit: int) -> Query:
        return self.paginate(limit=limit)

    def offset(self, offset: int) -> Query:
        return self.paginate(offset=offset)

    # subqueries

    def _correlated(
        self,
        source: Query,
        parent_key: Lambda | None,
        sub_key: Lambda | None,
        build: Callable[[Query], Query] | None,
    ) -> Query:
        """Clone ``source`` as a subquery of this query, correlated on the keys."""
        inner = source.clone_query_with(
            outer_registry=self._scope,
            outer_alias=self.alias,
            variables={**self.variables, **source.variables},
        )
        if (parent_key is None) != (sub_key is None):
            raise ConstructionError("Correlation needs both a parent key and a subquery key")
        if parent_key is not None:
            outer_column = _as_parent_column(self._expression(parent_key))
            correlation = BinaryExpression(BinaryOperator.EQUAL, inner._expression(sub_key), outer_column)
            inner = inner.clone_query_with(statement=inner.statement.conjoin_where(correlation))
        if build is not None:
            inner = build(inner)
            if not isinstance(inner, Query):
                raise ConstructionError(
                    f"Subquery builders must return a Query, got {type(inner).__name__}"
                )
        return inner

    @staticmethod
    def _subquery(inner: Query, default: Expression | None, purpose: str) -> SubqueryExpression:
        statement = inner.statement
        if not statement.projections:
            if default is None:
                raise ConstructionError(f"{purpose} subquery must select a value", table=inner.table_name)
            statement = statement.model_copy(update={"projections": (ProjectionExpression(expression=default),)})
        return SubqueryExpression(statement=statement)

    def where_exists(
        self,
        source: Query,
        parent_key: Lambda | None = None,
        sub_key: Lambda | None = None,
        build: Callable[[Query], Query] | None = None,
    ) -> Query:
        """``WHERE EXISTS (SELECT 1 FROM source WHERE sub_key = parent_key ...)``."""
        return self._where_exists(UnaryOperator.EXISTS, source, parent_key, sub_key, build)

    def where_not_exists(
        self,
        source: Query,
        parent_key: Lambda | None = None,
        sub_key: Lambda | None = None,
        build: Callable[[Query], Query] | None = None,
    ) -> Query:
        return self._where_exists(UnaryOperator.NOT_EXISTS, source, parent_key, sub_key, build)

    def _where_exists(self, operator, source, parent_key, sub_key, build) -> Query:
        inner = self._correlated(source, parent_key, sub_key, build)
        subquery = self._subquery(inner, ConstantExpression(1), operator.value)
        return self._with_statement(self.statement.conjoin_where(UnaryExpression(operator, subquery)))

    def where_in(
        self,
        selector: Lambda,
        source: Query,
        parent_key: Lambda | None = None,
        sub_key: Lambda | None = None,
        build: Callable[[Query], Query] | None = None,
    ) -> Query:
        """``WHERE selector IN (subquery)``; correlated when keys are given.

        The subquery must select one value, either through ``build`` or,
        failing that, its correlation key.
        """
        return self.where_compare(selector, BinaryOperator.IN, source, parent_key, sub_key, build)

    def where_not_in(
        self,
        selector: Lambda,
        source: Query,
        parent_key: Lambda | None = None,
        sub_key: Lambda | None = None,
        build: Callable[[Query], Query] | None = None,
    ) -> Query:
        return self.where_compare(selector, BinaryOperator.NOT_IN, source, parent_key, sub_key, build)

    def where_compare(
        self,
        selector: Lambda,
        operator: BinaryOperator | str,
        source: Query,
        parent_key: Lambda | None = None,
        sub_key: Lambda | None = None,
        build: Callable[[Query], Query] | None = None,
    ) -> Query:
        """``WHERE selector <operator> (subquery)``, for comparisons, IN and NOT IN."""
        operator = coerce_binary_operator(operator)
        if not (operator.is_comparison or operator in (BinaryOperator.IN, BinaryOperator.NOT_IN)):
            raise UnsupportedOperatorError(operator.value, "subquery comparison")
        left = self._expression(selector)
        inner = self._correlated(source, parent_key, sub_key, build)
        default = inner._expression(sub_key) if sub_key is not None else None
        subquery = self._subquery(inner, default, operator.value)
        return self._with_statement(self.statement.conjoin_where(BinaryExpression(operator, left, subquery)))

    def where_equal(self, selector: Lambda, source: Query, *args, **kwargs) -> Query:
        return self.where_compare(selector, BinaryOperator.EQUAL, source, *args, **kwargs)

    def where_not_equal(self, selector: Lambda, source: Query, *args, **kwargs) -> Query:
        return self.where_compare(selector, BinaryOperator.NOT_EQUAL, source, *args, **kwargs)

    def where_greater_than(self, selector: Lambda, source: Query, *args, **kwargs) -> Query:
        return self.where_compare(selector, BinaryOperator.GREATER_THAN, source, *args, **kwargs)

    def where_greater_than_or_equal(self, selector: Lambda, source: Query, *args, **kwargs) -> Query:
        return self.where_compare(selector, BinaryOperator.GREATER_THAN_OR_EQUAL, source, *args, **kwargs)

    def where_less_than(self, selector: Lambda, source: Query, *args, **kwargs) -> Query:
        return self.where_compare(selector, BinaryOperator.LESS_THAN, source, *args, **kwargs)

    def where_less_than_or_equal(self, selector: Lambda, source: Query, *args, **kwargs) -> Query:
        return self.where_compare(selector, BinaryOperator.LESS_THAN_OR_EQUAL, source, *args, **kwargs)

    def with_subquery(
        self,
        name: str,
        source: Query,
        parent_key: Lambda,
        sub_key: Lambda,
        build: Callable[[Query], Query] | None = None,
    ) -> Query:
        """Project a correlated scalar subquery as ``name``.

        The subquery must select one value, typically through an aggregate
        in ``build`` (``lambda q: q.count()``).
        """
        inner = self._correlated(source, parent_key, sub_key, build)
        subquery = self._subquery(inner, None, "Scalar")
        projections = self.statement.projections or (
            ProjectionExpression(expression=ColumnExpression(name=WILDCARD, table_alias=self.alias)),
        )
        projections = tuple(p for p in projections if p.alias != name)
        projections += (ProjectionExpression(expression=subquery, alias=name),)
        statement = self.statement.model_copy(update={"projections": projections})
        return self._with_statement(statement, registry=self.registry.register_complex(name, self.alias))

    # output

    @property
    def dialect(self) -> Dialect:
        """Dialect of the owning context, else of the default connection."""
        if self.context is not None:
            return self.context.get_dialect()
        from .connection import get_dialect  # pylint: disable=import-outside-toplevel
        return get_dialect()

    def to_sql(
        self,
        dialect: Dialect | None = None,
        parameters: dict[str, Any] | None = None,
        pretty: bool | None = None,
    ) -> str:
        """Render the statement.

        Args:
            dialect: Overrides the query's dialect.
            parameters: Values for parameters left unbound at build time;
                the rest render as placeholders.
            pretty: One clause per line; defaults to the context's setting.
        """
        if pretty is None:
            pretty = bool(self.context is not None and self.context.pretty)
        emitter = SqlEmitter(dialect or self.dialect, parameters=parameters, pretty=pretty)
        return emitter.emit(self.statement)

    @property
    def sql(self) -> str:
        return self.to_sql()

    def to_ir(self) -> dict[str, Any]:
        """Structural dump of the statement (see :func:`sqlambda.expressions.dump`)."""
        return dump(self.statement)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Names of the parameters left unbound at build time, in tree order."""
        names: list[str] = []
        for node in self.statement.walk():
            if isinstance(node, ParameterExpression) and node.name not in names:
                names.append(node.name)
        return tuple(names)

    def _provider(self, parameters: dict[str, Any]):
        provider = self.context.provider if self.context is not None else None
        if provider is None:
            raise ConstructionError("No provider configured to run this query", table=self.table_name)
        missing = [name for name in self.parameter_names if name not in parameters]
        if missing:
            raise ConstructionError(
                f"Missing value for parameter `{missing[0]}`",
                missing=missing,
                table=self.table_name,
            )
        return provider

    async def fetch_all(self, **parameters: Any) -> list[dict[str, Any]]:
        """Run the query through the context's provider and return every row."""
        provider = self._provider(parameters)
        sql = self.to_sql()
        logger.info("Running query on %s", self.table_name)
        return await provider.query(sql, parameters)

    async def fetch_first(self, **parameters: Any) -> dict[str, Any] | None:
        """Run the query (limited to one row) and return that row, or None."""
        query = self if self.statement.limit is not None else self.limit(1)
        return await self._provider(parameters).first(query.to_sql(), parameters)

    async def execute(self, **parameters: Any) -> Any:
        """Send the serialized statement to the provider."""
        return await self._provider(parameters).execute_ir(self.to_ir(), parameters)


def _group_projections(group_by: tuple[Expression, ...]) -> tuple[ProjectionExpression, ...]:
    projections = []
    used = set()
    for expression in group_by:
        alias = None
        if isinstance(expression, ColumnExpression):
            alias = expression.name
            if alias in used:
                alias = f"{expression.table_alias}_{expression.name}"
            used.add(alias)
        projections.append(ProjectionExpression(expression=expression, alias=alias))
    return tuple(projections)


def _comparison(operator: BinaryOperator | str) -> BinaryOperator:
    operator = coerce_binary_operator(operator)
    if not operator.is_comparison:
        raise UnsupportedOperatorError(operator.value, "comparison")
    return operator


def _non_negative(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConstructionError(f"{name} must be a non-negative integer", **{name: repr(value)})
    return value


def _as_parent_column(expression: Expression) -> ParentColumnExpression:
    if isinstance(expression, ParentColumnExpression):
        return expression
    if isinstance(expression, ColumnExpression) and expression.table_alias is not None:
        return ParentColumnExpression(table_alias=expression.table_alias, column_name=expression.name)
    raise ResolutionError("Correlation keys must be columns", expression=repr(expression))

"""Tests for EXISTS / IN / comparison subqueries and projected scalar subqueries."""

import pytest

from sqlambda import outer
from sqlambda.errors import (
    ConstructionError,
    DialectValidationError,
    ResolutionError,
    UnsupportedConstructError,
    UnsupportedOperatorError,
)


def test_correlated_exists(db):
    query = db.table("users").where_exists(db.table("orders"), lambda u: u.id, lambda o: o.user_id)
    assert query.sql == "SELECT * FROM users AS u WHERE EXISTS (SELECT 1 FROM orders AS o WHERE (o.user_id = u.id))"


def test_not_exists_with_extra_filter(db):
    query = db.table("users").where_not_exists(
        db.table("orders"),
        lambda u: u.id,
        lambda o: o.user_id,
        build=lambda q: q.where(lambda o: o.status == "open"),
    )
    assert query.sql == (
        "SELECT * FROM users AS u WHERE NOT EXISTS"
        " (SELECT 1 FROM orders AS o WHERE ((o.user_id = u.id) AND (o.status = 'open')))"
    )


def test_correlation_through_outer(db):
    query = db.table("users").where_exists(
        db.table("orders"),
        build=lambda q: q.where(lambda o: o.user_id == outer.id),
    )
    assert query.sql == "SELECT * FROM users AS u WHERE EXISTS (SELECT 1 FROM orders AS o WHERE (o.user_id = u.id))"


def test_two_levels_of_exists(db):
    items = db.table("items")
    query = db.table("users").where_exists(
        db.table("orders"),
        lambda u: u.id,
        lambda o: o.user_id,
        build=lambda q: q.where_exists(items, lambda o: o.id, lambda i: i.order_id),
    )
    assert query.sql == (
        "SELECT * FROM users AS u WHERE EXISTS (SELECT 1 FROM orders AS o WHERE ((o.user_id = u.id)"
        " AND EXISTS (SELECT 1 FROM items AS i WHERE (i.order_id = o.id))))"
    )


def test_pretty_nested_exists(db):
    query = db.table("users").where_exists(db.table("orders"), lambda u: u.id, lambda o: o.user_id)
    assert query.to_sql(pretty=True) == (
        "SELECT *\n"
        "FROM users AS u\n"
        "WHERE EXISTS (SELECT 1\n"
        "  FROM orders AS o\n"
        "  WHERE (o.user_id = u.id))"
    )


def test_outer_variables_reach_the_subquery(db):
    query = db.table("users").with_variables(minimum=100).where_exists(
        db.table("orders"),
        lambda u: u.id,
        lambda o: o.user_id,
        build=lambda q: q.where(lambda o, p: o.amount > p.minimum),
    )
    assert query.sql.endswith("WHERE ((o.user_id = u.id) AND (o.amount > 100)))")


def test_where_in(db):
    query = db.table("users").where_in(
        lambda u: u.id,
        db.table("orders"),
        build=lambda q: q.where(lambda o: o.amount > 100).select(lambda o: o.user_id),
    )
    assert query.sql == (
        "SELECT * FROM users AS u WHERE (u.id IN (SELECT o.user_id AS user_id FROM orders AS o WHERE (o.amount > 100)))"
    )


def test_where_not_in_projects_the_correlation_key(db):
    query = db.table("users").where_not_in(lambda u: u.id, db.table("bans"), lambda u: u.id, lambda b: b.user_id)
    assert query.sql == (
        "SELECT * FROM users AS u WHERE (u.id NOT IN (SELECT b.user_id FROM bans AS b WHERE (b.user_id = u.id)))"
    )


def test_where_in_needs_a_value(db):
    with pytest.raises(ConstructionError, match="IN subquery must select a value"):
        db.table("users").where_in(lambda u: u.id, db.table("orders"))


def test_correlated_scalar_comparison(db):
    query = db.table("users").where_greater_than(
        lambda u: u.credit_limit,
        db.table("orders"),
        lambda u: u.id,
        lambda o: o.user_id,
        build=lambda q: q.sum(lambda o: o.amount, alias="total"),
    )
    assert query.sql == (
        "SELECT * FROM users AS u WHERE (u.credit_limit >"
        " (SELECT SUM(o.amount) AS total FROM orders AS o WHERE (o.user_id = u.id)))"
    )


@pytest.mark.parametrize(
    "method, token",
    [
        ("where_equal", "="),
        ("where_not_equal", "!="),
        ("where_greater_than_or_equal", ">="),
        ("where_less_than", "<"),
        ("where_less_than_or_equal", "<="),
    ],
)
def test_comparison_shortcuts(db, method, token):
    query = getattr(db.table("users"), method)(
        lambda u: u.score,
        db.table("scores"),
        build=lambda q: q.avg(lambda s: s.value),
    )
    assert query.sql == f"SELECT * FROM users AS u WHERE (u.score {token} (SELECT AVG(s.value) AS avg FROM scores AS s))"


def test_where_compare_rejects_other_operators(db):
    with pytest.raises(UnsupportedOperatorError):
        db.table("users").where_compare(lambda u: u.name, "LIKE", db.table("names"))


def test_correlation_needs_both_keys(db):
    with pytest.raises(ConstructionError, match="both a parent key and a subquery key"):
        db.table("users").where_exists(db.table("orders"), lambda u: u.id)


def test_correlation_keys_must_be_columns(db):
    with pytest.raises(ResolutionError, match="Correlation keys must be columns"):
        db.table("users").where_exists(db.table("orders"), lambda u: u.id + 1, lambda o: o.user_id)


def test_builder_must_return_a_query(db):
    with pytest.raises(ConstructionError, match="must return a Query, got str"):
        db.table("users").where_exists(db.table("orders"), build=lambda q: "nope")


def test_outer_outside_a_subquery(db):
    with pytest.raises(UnsupportedConstructError, match="only be used inside a subquery"):
        db.table("users").where(lambda u: u.id == outer.id)


class TestWithSubquery:

    def test_projects_alongside_the_row(self, db):
        query = db.table("users").with_subquery(
            "order_count", db.table("orders"), lambda u: u.id, lambda o: o.user_id, build=lambda q: q.count()
        )
        assert query.sql == (
            "SELECT u.*, (SELECT COUNT(*) AS count FROM orders AS o WHERE (o.user_id = u.id)) AS order_count"
            " FROM users AS u"
        )

    def test_kept_by_later_select_and_orderable(self, db):
        query = (
            db.table("users")
            .with_subquery(
                "order_count", db.table("orders"), lambda u: u.id, lambda o: o.user_id, build=lambda q: q.count()
            )
            .select(lambda u: {"id": u.id})
            .order_by_desc(lambda u: u.order_count)
        )
        subquery = "(SELECT COUNT(*) AS count FROM orders AS o WHERE (o.user_id = u.id))"
        assert query.sql == f"SELECT u.id AS id, {subquery} AS order_count FROM users AS u ORDER BY {subquery} DESC"

    def test_needs_a_selected_value(self, db):
        with pytest.raises(ConstructionError, match="Scalar subquery must select a value"):
            db.table("users").with_subquery("x", db.table("orders"), lambda u: u.id, lambda o: o.user_id)

    def test_sql_server_rejects_unpaginated_ordered_subquery(self, mssql):
        query = mssql.table("users").with_subquery(
            "last_order",
            mssql.table("orders"),
            lambda u: u.id,
            lambda o: o.user_id,
            build=lambda q: q.select(lambda o: o.created_at).order_by_desc(lambda o: o.created_at),
        )
        with pytest.raises(DialectValidationError, match="ORDER BY in a subquery"):
            query.to_sql()

    def test_sql_server_accepts_top_1_subquery(self, mssql):
        query = mssql.table("users").with_subquery(
            "last_order",
            mssql.table("orders"),
            lambda u: u.id,
            lambda o: o.user_id,
            build=lambda q: q.select(lambda o: o.created_at).order_by_desc(lambda o: o.created_at).limit(1),
        )
        assert query.sql == (
            "SELECT [u].*, (SELECT TOP 1 [o].[created_at] AS [created_at] FROM [orders] AS [o]"
            " WHERE ([o].[user_id] = [u].[id]) ORDER BY [o].[created_at] DESC) AS [last_order] FROM [users] AS [u]"
        )

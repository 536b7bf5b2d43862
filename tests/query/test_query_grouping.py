"""Tests for grouping, aggregates and HAVING."""

import pytest

from sqlambda import AggregateKind, DbContext, SqliteDialect, fn
from sqlambda.errors import ConstructionError, ResolutionError, UnsupportedOperatorError


def test_group_count_having(db):
    query = (
        db.table("orders")
        .join(db.table("users"), lambda o: o.user_id, lambda u: u.id, lambda o, u: {"order": o, "user": u})
        .group_by(lambda r: r.order.user_id)
        .count(alias="cnt")
        .having(lambda g: g.cnt > 5)
    )
    assert query.sql == (
        "SELECT o.user_id AS user_id, COUNT(*) AS cnt FROM orders AS o"
        " INNER JOIN users AS u ON (o.user_id = u.id)"
        " GROUP BY o.user_id HAVING (COUNT(*) > 5)"
    )


def test_group_by_projects_group_columns(db):
    query = db.table("orders").group_by(lambda o: (o.user_id, o.status))
    assert query.sql == (
        "SELECT o.user_id AS user_id, o.status AS status FROM orders AS o GROUP BY o.user_id, o.status"
    )


def test_group_by_drops_ungrouped_projections(db):
    query = (
        db.table("orders")
        .select(lambda o: {"user_id": o.user_id, "amount": o.amount})
        .group_by(lambda o: o.user_id)
    )
    assert query.sql == "SELECT o.user_id AS user_id FROM orders AS o GROUP BY o.user_id"


def test_select_after_group_by(db):
    grouped = db.table("orders").group_by(lambda o: o.user_id)
    query = grouped.select(lambda o: {"user_id": o.user_id, "n": fn.count(), "top": fn.max(o.amount)})
    assert query.sql == (
        "SELECT o.user_id AS user_id, COUNT(*) AS n, MAX(o.amount) AS top FROM orders AS o GROUP BY o.user_id"
    )
    with pytest.raises(ResolutionError, match="Projection `amount` is neither grouped nor aggregated"):
        grouped.select(lambda o: {"amount": o.amount})


def test_grouped_select_names_unaliased_projection(db):
    grouped = db.table("orders").group_by(lambda o: o.user_id)
    with pytest.raises(ResolutionError, match=r"Projection `o\.\*` is neither grouped nor aggregated"):
        grouped.select(lambda o: o)


@pytest.mark.parametrize(
    "method, function",
    [("sum", "SUM"), ("avg", "AVG"), ("min", "MIN"), ("max", "MAX")],
)
def test_aggregate_shortcuts(db, method, function):
    query = getattr(db.table("orders"), method)(lambda o: o.amount)
    assert query.sql == f"SELECT {function}(o.amount) AS {method} FROM orders AS o"


def test_aggregate_with_alias_and_count_of_field(db):
    query = db.table("orders").aggregate("avg", lambda o: o.amount, alias="mean").count(lambda o: o.coupon, alias="n")
    assert query.sql == "SELECT AVG(o.amount) AS mean, COUNT(o.coupon) AS n FROM orders AS o"


def test_aggregate_needs_a_field(db):
    with pytest.raises(ConstructionError, match="SUM needs a field"):
        db.table("orders").aggregate(AggregateKind.SUM)


def test_order_by_aggregate(db):
    query = db.table("orders").group_by(lambda o: o.user_id).order_by_aggregate("count", ascending=False)
    assert query.sql == "SELECT o.user_id AS user_id FROM orders AS o GROUP BY o.user_id ORDER BY COUNT(*) DESC"


class TestHaving:

    def test_grouped_column(self, db):
        query = db.table("orders").group_by(lambda o: o.user_id).having(lambda o: o.user_id > 3)
        assert query.sql.endswith("GROUP BY o.user_id HAVING (o.user_id > 3)")

    def test_ungrouped_column_needs_an_aggregate(self, db):
        grouped = db.table("orders").group_by(lambda o: o.user_id)
        with pytest.raises(ResolutionError, match="Column `amount` is neither grouped nor aggregated"):
            grouped.having(lambda o: o.amount > 100)

    def test_default_aggregate_argument(self, db, caplog):
        query = db.table("orders").group_by(lambda o: o.user_id).having(lambda o: o.amount > 100, default_aggregate="max")
        assert query.sql.endswith("HAVING (MAX(o.amount) > 100)")
        assert "wrapping ungrouped column amount in MAX" in caplog.text

    def test_default_aggregate_from_context(self):
        db = DbContext(dialect=SqliteDialect(quote_identifiers=False), having_default_aggregate="sum")
        query = db.table("orders").group_by(lambda o: o.user_id).having(lambda o: o.amount > 100)
        assert query.sql.endswith("HAVING (SUM(o.amount) > 100)")

    def test_predicates_accumulate(self, db):
        query = (
            db.table("orders")
            .group_by(lambda o: o.user_id)
            .having_count(">", 5)
            .having_sum(lambda o: o.amount, ">=", 1000)
        )
        assert query.sql.endswith("HAVING ((COUNT(*) > 5) AND (SUM(o.amount) >= 1000))")

    @pytest.mark.parametrize(
        "method, function",
        [("having_avg", "AVG"), ("having_min", "MIN"), ("having_max", "MAX")],
    )
    def test_having_helpers(self, db, method, function):
        query = getattr(db.table("orders").group_by(lambda o: o.user_id), method)(lambda o: o.amount, "<", 10)
        assert query.sql.endswith(f"HAVING ({function}(o.amount) < 10)")

    def test_having_helpers_need_a_comparison(self, db):
        with pytest.raises(UnsupportedOperatorError, match="Unsupported comparison operator"):
            db.table("orders").group_by(lambda o: o.user_id).having_count("AND", 1)

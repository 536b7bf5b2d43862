"""Tests for sqlambda.dialects.postgres."""

import datetime

from sqlambda.dialects import PostgresDialect
from sqlambda.emitter import emit
from sqlambda.expressions import ConstantExpression, SelectExpression, TableExpression


def test_postgres_f_concat():
    assert PostgresDialect().f.concat("a", "b") == "(a || b)"


def test_postgres_literals():
    d = PostgresDialect()
    assert d.quote_identifier("user") == '"user"'
    assert d.boolean_literal(False) == "FALSE"
    assert d.date_literal(datetime.date(2024, 1, 2)) == "DATE '2024-01-02'"
    assert d.date_literal(datetime.datetime(2024, 1, 2, 3, 4, 5)) == "TIMESTAMP '2024-01-02 03:04:05'"
    assert d.placeholder("n") == "%(n)s"


def test_postgres_limit_offset():
    statement = SelectExpression(
        from_table=TableExpression(name="users", alias="u"),
        limit=ConstantExpression(10),
        offset=ConstantExpression(20),
    )
    assert emit(statement, PostgresDialect()) == 'SELECT * FROM "users" AS "u" LIMIT 10 OFFSET 20'

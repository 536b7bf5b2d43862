"""Tests for sqlambda.dialects.sqlserver."""

import datetime

from sqlambda.dialects import Pagination, SqlserverDialect
from sqlambda.expressions import BinaryOperator, JoinKind


def test_sqlserver_f_concat():
    assert SqlserverDialect().f.concat("a", "b") == "CONCAT(a, b)"


def test_sqlserver_function_overrides():
    d = SqlserverDialect()
    assert d.function_call("NOW", []) == "GETDATE()"
    assert d.function_call("CURRENT_TIMESTAMP", []) == "GETDATE()"
    assert d.function_call("LENGTH", ["x"]) == "LEN(x)"
    assert d.function_call("TRIM", ["x"]) == "LTRIM(RTRIM(x))"


def test_sqlserver_literals():
    d = SqlserverDialect()
    assert d.quote_identifier("order") == "[order]"
    assert d.quote_identifier("a]b") == "[a]]b]"
    assert d.string_literal("café") == "N'café'"
    assert d.boolean_literal(True) == "1"
    assert d.operator_token(BinaryOperator.NOT_EQUAL) == "<>"
    assert d.placeholder("id") == "@id"


def test_sqlserver_dates():
    d = SqlserverDialect()
    assert d.date_literal(datetime.date(2024, 1, 2)) == "CONVERT(DATETIME2, '2024-01-02T00:00:00', 126)"
    assert d.date_literal(datetime.datetime(2024, 1, 2, 3, 4, 5)) == "CONVERT(DATETIME2, '2024-01-02T03:04:05', 126)"


def test_sqlserver_pagination_and_joins():
    d = SqlserverDialect()
    assert d.PAGINATION == Pagination.TOP_FETCH
    assert d.ORDERED_SUBQUERIES_NEED_PAGINATION
    assert d.join_keyword(JoinKind.INNER) == "INNER JOIN"
    assert d.join_keyword(JoinKind.LEFT) == "LEFT OUTER JOIN"
    assert d.join_keyword(JoinKind.FULL) == "FULL OUTER JOIN"

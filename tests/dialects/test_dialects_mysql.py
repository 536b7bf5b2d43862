"""Tests for sqlambda.dialects.mysql."""

import datetime

import pytest

from sqlambda.dialects import MysqlDialect
from sqlambda.errors import DialectValidationError
from sqlambda.expressions import JoinKind


def test_mysql_f_concat():
    assert MysqlDialect().f.concat("a", "b") == "CONCAT(a, b)"


def test_mysql_length_counts_characters():
    assert MysqlDialect().function_call("LENGTH", ["`u`.`name`"]) == "CHAR_LENGTH(`u`.`name`)"


def test_mysql_identifiers_and_strings():
    d = MysqlDialect()
    assert d.quote_identifier("select") == "`select`"
    assert d.quote_identifier("a`b") == "`a``b`"
    assert d.string_literal("C:\\temp's") == "'C:\\\\temp''s'"
    assert d.boolean_literal(True) == "TRUE"


def test_mysql_dates():
    d = MysqlDialect()
    assert d.date_literal(datetime.date(2024, 1, 2)) == "'2024-01-02'"
    assert d.date_literal(datetime.datetime(2024, 1, 2, 3, 4, 5)) == "'2024-01-02 03:04:05'"


def test_mysql_placeholder_and_unlimited():
    assert MysqlDialect().placeholder("min_age") == "%(min_age)s"
    assert MysqlDialect.UNLIMITED == "18446744073709551615"


def test_mysql_has_no_full_join():
    d = MysqlDialect()
    assert d.join_keyword(JoinKind.LEFT) == "LEFT JOIN"
    with pytest.raises(DialectValidationError):
        d.join_keyword(JoinKind.FULL)

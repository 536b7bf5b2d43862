"""Tests for sqlambda.dialects: get_dialect_for_scheme and supported schemes."""

import pytest

from sqlambda.dialects import (
    get_dialect_for_scheme,
    SqliteDialect,
    MysqlDialect,
    PostgresDialect,
    SqlserverDialect,
)


@pytest.mark.parametrize(
    "scheme, dialect_cls",
    [
        ("sqlite", SqliteDialect),
        ("mysql", MysqlDialect),
        ("mariadb", MysqlDialect),
        ("postgresql", PostgresDialect),
        ("postgres", PostgresDialect),
        ("mssql", SqlserverDialect),
        ("sqlserver", SqlserverDialect),
    ],
)
def test_get_dialect_for_scheme(scheme, dialect_cls):
    assert isinstance(get_dialect_for_scheme(scheme), dialect_cls)


def test_get_dialect_for_scheme_normalizes_and_lowercases():
    assert isinstance(get_dialect_for_scheme("SQLITE"), SqliteDialect)
    assert isinstance(get_dialect_for_scheme("postgresql+psycopg2"), PostgresDialect)
    assert isinstance(get_dialect_for_scheme("mssql+pyodbc"), SqlserverDialect)


def test_get_dialect_for_scheme_passes_options():
    d = get_dialect_for_scheme("mysql", quote_identifiers=False)
    assert d.quote_identifier("users") == "users"


@pytest.mark.parametrize("scheme", ["oracle", "", None])
def test_get_dialect_for_scheme_unsupported_raises(scheme):
    with pytest.raises(ValueError, match="Unsupported database scheme"):
        get_dialect_for_scheme(scheme)

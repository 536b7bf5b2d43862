"""Tests for sqlambda.expressions.serialize: tagged dump and lossless load."""

import datetime
import json

import pytest

from sqlambda.errors import ConstructionError
from sqlambda.expressions import (
    BinaryExpression,
    ColumnExpression,
    ConstantExpression,
    FragmentExpression,
    FunctionExpression,
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
    ValueListExpression,
    dump,
    load,
)


@pytest.fixture
def statement():
    exists = SubqueryExpression(statement=SelectExpression(
        from_table=TableExpression(name="items", alias="i"),
        projections=(ProjectionExpression(expression=ConstantExpression(1)),),
        where=BinaryExpression(
            "=",
            ColumnExpression(name="order_id", table_alias="i"),
            ParentColumnExpression(table_alias="o", column_name="id"),
        ),
    ))
    return SelectExpression(
        from_table=TableExpression(name="users", alias="u"),
        projections=(
            ProjectionExpression(expression=ColumnExpression(name="id", table_alias="u"), alias="id"),
            ProjectionExpression(expression=FunctionExpression("count", [FragmentExpression(raw="*")]), alias="cnt"),
        ),
        joins=(JoinExpression(
            table=TableExpression(name="orders", alias="o"),
            condition=BinaryExpression(
                "=",
                ColumnExpression(name="user_id", table_alias="o"),
                ColumnExpression(name="id", table_alias="u"),
            ),
            kind=JoinKind.LEFT,
        ),),
        where=BinaryExpression(
            "AND",
            BinaryExpression(
                ">=",
                ColumnExpression(name="created_at", table_alias="o"),
                ConstantExpression(datetime.date(2024, 1, 1)),
            ),
            BinaryExpression(
                "OR",
                UnaryExpression("EXISTS", exists),
                BinaryExpression(
                    "IN",
                    ColumnExpression(name="status", table_alias="o"),
                    ValueListExpression(items=(ConstantExpression("open"), ParameterExpression(name="status"))),
                ),
            ),
        ),
        group_by=(ColumnExpression(name="id", table_alias="u"),),
        order_by=(OrderingExpression(expression=ColumnExpression(name="id", table_alias="u"), ascending=False),),
        limit=ConstantExpression(10),
        distinct=True,
    )


def test_dump_tags_every_node(statement):
    data = dump(statement)
    assert data["node"] == "SelectExpression"
    assert data["from_table"] == {"node": "TableExpression", "name": "users", "alias": "u"}
    assert data["joins"][0]["kind"] == "left"
    assert data["where"]["operator"] == "AND"
    assert data["where"]["left"]["right"] == {
        "node": "ConstantExpression",
        "value": "2024-01-01",
        "value_kind": "date",
    }
    # plain data only
    json.dumps(data)


def test_load_restores_the_same_tree(statement):
    assert load(dump(statement)) == statement


def test_load_restores_datetimes():
    constant = ConstantExpression(datetime.datetime(2024, 1, 2, 3, 4, 5))
    assert load(dump(constant)).value == datetime.datetime(2024, 1, 2, 3, 4, 5)


def test_load_rejects_unknown_nodes():
    with pytest.raises(ConstructionError, match="Cannot load node `NoSuchExpression`"):
        load({"node": "NoSuchExpression"})
    with pytest.raises(ConstructionError, match="no node tag"):
        load({"name": "id"})

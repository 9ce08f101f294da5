"""Unit tests for query validation."""

from __future__ import annotations

import pytest

from core.errors import InvalidQueryError, NotFoundError
from core.query_types import (
    AndNode,
    ComparisonNode,
    ComparisonOperator,
    FieldRef,
    NotNode,
    SortDirection,
    StringMatchNode,
)
from ingest.record_schema import COURSES_SCHEMA
from query.query_validator import parse_field_key, parse_query, validate_query


def _lookup(dataset_id: str):
    if dataset_id != "courses":
        raise NotFoundError(dataset_id)
    return COURSES_SCHEMA


def _query(where: object, columns: object = None, **options: object) -> dict:
    payload = {"COLUMNS": columns if columns is not None else ["courses_dept", "courses_avg"]}
    payload.update(options)
    return {"WHERE": where, "OPTIONS": payload}


def test_validate_query_builds_typed_tree() -> None:
    """Valid documents should become a typed query."""
    document = _query(
        {"AND": [{"GT": {"courses_avg": 90}}, {"NOT": {"IS": {"courses_dept": "cp*"}}}]},
        ORDER={"dir": "DOWN", "keys": ["courses_avg"]},
    )

    query = validate_query(document, _lookup)

    assert query.dataset_id == "courses"
    assert query.where == AndNode(
        (
            ComparisonNode(FieldRef("courses", "avg"), ComparisonOperator.GT, 90),
            NotNode(StringMatchNode(FieldRef("courses", "dept"), "cp*")),
        )
    )
    assert query.order is not None
    assert query.order.direction is SortDirection.DOWN


def test_parse_query_treats_empty_where_as_match_all() -> None:
    """An empty WHERE object should parse to no predicate."""
    query = parse_query(_query({}, ORDER="courses_dept"))

    assert query.where is None
    assert query.order is not None
    assert query.order.keys == (FieldRef("courses", "dept"),)
    assert query.order.direction is SortDirection.UP


def test_parse_field_key_splits_on_first_underscore() -> None:
    """Field names may not hide the dataset id prefix."""
    assert parse_field_key("courses_dept") == FieldRef("courses", "dept")


@pytest.mark.parametrize(
    "document",
    [
        None,
        [],
        "WHERE",
        {"OPTIONS": {"COLUMNS": ["courses_dept"]}},
        {"WHERE": {}},
        {"WHERE": {}, "OPTIONS": {"COLUMNS": ["courses_dept"]}, "EXTRA": 1},
        _query([]),
        _query({}, columns=[]),
        _query({}, columns="courses_dept"),
        _query({}, columns=["dept"]),
        _query({}, columns=["_dept"]),
        _query({}, columns=["courses_"]),
        _query({}, columns=[3]),
        _query({}, ORDER="courses_title"),
        _query({}, ORDER={"dir": "SIDEWAYS", "keys": ["courses_avg"]}),
        _query({}, ORDER={"dir": "UP", "keys": []}),
        _query({}, ORDER={"dir": "UP"}),
        _query({}, ORDER=["courses_avg"]),
        _query({}, FORM="TABLE"),
        _query({"AND": []}),
        _query({"OR": {"GT": {"courses_avg": 1}}}),
        _query({"GT": {"courses_avg": 1}, "LT": {"courses_avg": 5}}),
        _query({"XOR": [{"GT": {"courses_avg": 1}}]}),
        _query({"NOT": {}}),
        _query({"GT": {}}),
        _query({"GT": {"courses_avg": 1, "courses_pass": 2}}),
        _query({"GT": {"courses_avg": "90"}}),
        _query({"GT": {"courses_avg": True}}),
        _query({"IS": {"courses_dept": 5}}),
        _query({"IS": {"courses_dept": "cp*sc"}}),
        _query({"IS": {"courses_dept": "c**"}}),
        _query({"AND": [{"GT": {"courses_avg": 1}}, {}]}),
        _query({}, columns=["courses_dept", "rooms_name"]),
        _query({"GT": {"archive_avg": 90}}),
    ],
)
def test_parse_query_rejects_malformed_documents(document) -> None:
    """Structural and cross-dataset violations should be rejected."""
    with pytest.raises(InvalidQueryError):
        parse_query(document)


@pytest.mark.parametrize(
    "where",
    [
        {"GT": {"courses_dept": 5}},
        {"EQ": {"courses_uuid": 1001}},
        {"IS": {"courses_avg": "9*"}},
        {"IS": {"courses_year": "2015"}},
        {"LT": {"courses_size": 10}},
    ],
)
def test_validate_query_rejects_ill_typed_fields(where) -> None:
    """Operators should only apply to fields of their type."""
    with pytest.raises(InvalidQueryError):
        validate_query(_query(where), _lookup)


def test_validate_query_rejects_unknown_columns() -> None:
    """Projected fields must exist in the dataset schema."""
    with pytest.raises(InvalidQueryError, match="courses_rank"):
        validate_query(_query({}, columns=["courses_rank"]), _lookup)


def test_validate_query_raises_not_found_for_unknown_dataset() -> None:
    """Unknown dataset ids surface from the schema lookup."""
    with pytest.raises(NotFoundError):
        validate_query(_query({}, columns=["archive_dept"]), _lookup)


def test_parse_query_accepts_trees_deeper_than_the_interpreter_stack() -> None:
    """Nesting depth should not be limited by recursion."""
    where: dict = {"GT": {"courses_avg": 50}}
    for _ in range(5000):
        where = {"NOT": where}

    query = parse_query(_query(where))

    depth = 0
    node = query.where
    while isinstance(node, NotNode):
        node = node.child
        depth += 1
    assert depth == 5000
    assert isinstance(node, ComparisonNode)


def test_parse_query_reports_errors_deep_inside_trees() -> None:
    """A bad leaf far below the root should still fail as an invalid query."""
    where: dict = {"GT": {"courses_avg": "high"}}
    for _ in range(5000):
        where = {"AND": [{"IS": {"courses_dept": "cpsc"}}, {"NOT": where}]}

    with pytest.raises(InvalidQueryError, match="must be a number"):
        parse_query(_query(where))

"""Query document validation.

This module checks raw query documents against the query grammar and
parses them into typed query trees. It never touches dataset records.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping

from core.constants import FIELD_KEY_SEPARATOR, WILDCARD
from core.errors import InvalidQueryError
from core.query_types import (
    AndNode,
    ComparisonNode,
    ComparisonOperator,
    FieldRef,
    NotNode,
    OrNode,
    PredicateNode,
    Query,
    SortDirection,
    SortSpec,
    StringMatchNode,
)
from core.types import FieldType
from ingest.record_schema import RecordSchema

SchemaLookup = Callable[[str], RecordSchema]

_QUERY_KEYS = frozenset({"WHERE", "OPTIONS"})
_OPTIONS_KEYS = frozenset({"COLUMNS", "ORDER"})
_SORT_KEYS = frozenset({"dir", "keys"})
_LOGIC_OPERATORS = ("AND", "OR")
_COMPARISON_OPERATORS = tuple(operator.value for operator in ComparisonOperator)


def validate_query(document: Any, schema_lookup: SchemaLookup) -> Query:
    """Parse a query document and type-check it against its dataset schema.

    Args:
        document: Raw query document.
        schema_lookup: Resolves a dataset id to its record schema.

    Returns:
        Validated typed query.

    Raises:
        InvalidQueryError: If the document is malformed or ill-typed.
        NotFoundError: If the lookup does not know the dataset id.
    """
    query = parse_query(document)
    check_query_fields(query, schema_lookup(query.dataset_id))
    return query


def parse_query(document: Any) -> Query:
    """Parse the structure of a query document.

    Args:
        document: Raw query document.

    Returns:
        Typed query whose field references share one dataset id.

    Raises:
        InvalidQueryError: If structure or dataset references are invalid.
    """
    if not isinstance(document, Mapping):
        raise InvalidQueryError("Query must be a JSON object with WHERE and OPTIONS.")
    _require_keys(document, required=_QUERY_KEYS, allowed=_QUERY_KEYS, context="query")
    options = document["OPTIONS"]
    if not isinstance(options, Mapping):
        raise InvalidQueryError("OPTIONS must be a JSON object.")
    _require_keys(options, required=frozenset({"COLUMNS"}), allowed=_OPTIONS_KEYS, context="OPTIONS")
    columns = _parse_columns(options["COLUMNS"])
    order = _parse_order(options["ORDER"], columns) if "ORDER" in options else None
    where = _parse_where(document["WHERE"])
    query = Query(
        dataset_id=columns[0].dataset_id,
        where=where,
        columns=columns,
        order=order,
    )
    dataset_ids = {ref.dataset_id for ref in query.field_refs()}
    if len(dataset_ids) > 1:
        raise InvalidQueryError(
            f"Query references multiple datasets {sorted(dataset_ids)}; "
            "a query may address exactly one dataset."
        )
    return query


def check_query_fields(query: Query, schema: RecordSchema) -> None:
    """Check every field reference against a record schema.

    Args:
        query: Parsed query.
        schema: Schema of the addressed dataset.

    Raises:
        InvalidQueryError: If a field is unknown or has the wrong type.
    """
    for ref in query.field_refs():
        if schema.field_type(ref.field_name) is None:
            raise InvalidQueryError(
                f"Unknown field '{ref.key}' for {schema.kind.value} datasets. "
                f"Valid fields: {', '.join(schema.field_names)}."
            )
    if query.where is None:
        return
    pending: list[PredicateNode] = [query.where]
    while pending:
        node = pending.pop()
        if isinstance(node, (AndNode, OrNode)):
            pending.extend(node.children)
        elif isinstance(node, NotNode):
            pending.append(node.child)
        elif isinstance(node, ComparisonNode):
            _require_field_type(node.field, FieldType.NUMBER, node.operator.value, schema)
        else:
            _require_field_type(node.field, FieldType.STRING, "IS", schema)


def parse_field_key(key: Any) -> FieldRef:
    """Split a ``<datasetId>_<field>`` key into a field reference.

    Raises:
        InvalidQueryError: If the key is not a well-formed field key.
    """
    if not isinstance(key, str):
        raise InvalidQueryError(f"Field key must be a string, got {type(key).__name__}.")
    dataset_id, separator, field_name = key.partition(FIELD_KEY_SEPARATOR)
    if not separator or not dataset_id.strip() or not field_name:
        raise InvalidQueryError(
            f"Invalid field key '{key}'; expected '<datasetId>_<field>'."
        )
    return FieldRef(dataset_id=dataset_id, field_name=field_name)


def _require_keys(
    payload: Mapping[str, Any],
    required: frozenset[str],
    allowed: frozenset[str],
    context: str,
) -> None:
    missing = required - set(payload)
    if missing:
        raise InvalidQueryError(f"{context} is missing {', '.join(sorted(missing))}.")
    unexpected = set(payload) - allowed
    if unexpected:
        raise InvalidQueryError(
            f"{context} has unexpected keys: {', '.join(sorted(map(str, unexpected)))}."
        )


def _parse_columns(raw_columns: Any) -> tuple[FieldRef, ...]:
    if not isinstance(raw_columns, list) or not raw_columns:
        raise InvalidQueryError("COLUMNS must be a non-empty list of field keys.")
    return tuple(parse_field_key(key) for key in raw_columns)


def _parse_order(raw_order: Any, columns: tuple[FieldRef, ...]) -> SortSpec:
    """Parse ORDER as a single key or a ``{dir, keys}`` object.

    Raises:
        InvalidQueryError: If the order is malformed or names a non-column key.
    """
    if isinstance(raw_order, str):
        return SortSpec(keys=(_order_key(raw_order, columns),))
    if not isinstance(raw_order, Mapping):
        raise InvalidQueryError("ORDER must be a field key or an object with dir and keys.")
    _require_keys(raw_order, required=_SORT_KEYS, allowed=_SORT_KEYS, context="ORDER")
    raw_direction = raw_order["dir"]
    if raw_direction not in (SortDirection.UP.value, SortDirection.DOWN.value):
        raise InvalidQueryError(f"ORDER dir must be UP or DOWN, got {raw_direction!r}.")
    raw_keys = raw_order["keys"]
    if not isinstance(raw_keys, list) or not raw_keys:
        raise InvalidQueryError("ORDER keys must be a non-empty list of column keys.")
    return SortSpec(
        keys=tuple(_order_key(key, columns) for key in raw_keys),
        direction=SortDirection(raw_direction),
    )


def _order_key(raw_key: Any, columns: tuple[FieldRef, ...]) -> FieldRef:
    ref = parse_field_key(raw_key)
    if ref not in columns:
        raise InvalidQueryError(f"ORDER key '{ref.key}' must be one of the COLUMNS.")
    return ref


def _parse_where(raw_where: Any) -> PredicateNode | None:
    if not isinstance(raw_where, Mapping):
        raise InvalidQueryError("WHERE must be a JSON object.")
    if not raw_where:
        return None
    return _parse_filter(raw_where)


def _parse_filter(raw_filter: Any) -> PredicateNode:
    """Parse a filter object into a predicate tree.

    The tree is built bottom-up from an explicit work list, so nesting
    depth is bounded by memory rather than the interpreter stack.

    Raises:
        InvalidQueryError: If any filter is not a single known operator.
    """
    built: list[PredicateNode] = []
    # (raw filter, None) parses a filter; (child count, operator) combines children.
    pending: list[tuple[Any, str | None]] = [(raw_filter, None)]
    while pending:
        item, combine_operator = pending.pop()
        if combine_operator is not None:
            built.append(_combine_children(combine_operator, item, built))
            continue
        if not isinstance(item, Mapping) or len(item) != 1:
            raise InvalidQueryError("Each filter must be an object with exactly one operator.")
        operator, operand = next(iter(item.items()))
        if operator in _LOGIC_OPERATORS:
            if not isinstance(operand, list) or not operand:
                raise InvalidQueryError(f"{operator} must be a non-empty list of filters.")
            pending.append((len(operand), operator))
            pending.extend((child, None) for child in reversed(operand))
        elif operator == "NOT":
            pending.append((1, operator))
            pending.append((operand, None))
        else:
            built.append(_parse_leaf(operator, operand))
    return built[0]


def _combine_children(
    operator: str,
    child_count: int,
    built: list[PredicateNode],
) -> PredicateNode:
    start = len(built) - child_count
    children = tuple(built[start:])
    del built[start:]
    if operator == "AND":
        return AndNode(children)
    if operator == "OR":
        return OrNode(children)
    return NotNode(children[0])


def _parse_leaf(operator: Any, operand: Any) -> PredicateNode:
    """Parse a comparison or string-match filter.

    Raises:
        InvalidQueryError: If the operator is unknown or its value is ill-typed.
    """
    if operator in _COMPARISON_OPERATORS:
        ref, value = _single_field_operand(operator, operand)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidQueryError(f"{operator} value for '{ref.key}' must be a number.")
        if not math.isfinite(value):
            raise InvalidQueryError(f"{operator} value for '{ref.key}' must be finite.")
        return ComparisonNode(field=ref, operator=ComparisonOperator(operator), value=value)
    if operator == "IS":
        ref, value = _single_field_operand(operator, operand)
        if not isinstance(value, str):
            raise InvalidQueryError(f"IS value for '{ref.key}' must be a string.")
        if WILDCARD in value[1:-1]:
            raise InvalidQueryError(
                f"IS pattern {value!r} may only use '{WILDCARD}' at its start or end."
            )
        return StringMatchNode(field=ref, pattern=value)
    raise InvalidQueryError(f"Unknown filter operator {operator!r}.")


def _single_field_operand(operator: str, operand: Any) -> tuple[FieldRef, Any]:
    if not isinstance(operand, Mapping) or len(operand) != 1:
        raise InvalidQueryError(f"{operator} must be an object with exactly one field key.")
    key, value = next(iter(operand.items()))
    return parse_field_key(key), value


def _require_field_type(
    ref: FieldRef,
    expected_type: FieldType,
    operator: str,
    schema: RecordSchema,
) -> None:
    if schema.field_type(ref.field_name) is not expected_type:
        raise InvalidQueryError(
            f"{operator} requires a {expected_type.value} field, "
            f"but '{ref.key}' is not one."
        )

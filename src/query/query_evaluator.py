"""Query evaluation over loaded datasets.

This module filters records with a typed predicate tree, projects
the requested columns, and applies a stable multi-key sort.
"""

from __future__ import annotations

from core.constants import WILDCARD
from core.errors import InvalidQueryError, ResultTooLargeError
from core.logging_config import get_logger
from core.query_types import (
    AndNode,
    ComparisonNode,
    ComparisonOperator,
    NotNode,
    OrNode,
    PredicateNode,
    Query,
    SortDirection,
    SortSpec,
    StringMatchNode,
)
from core.types import Dataset, FieldValue, Record
from ingest.record_schema import schema_for
from query.query_validator import check_query_fields

_LOGGER = get_logger(__name__)

Row = dict[str, FieldValue]


def evaluate_query(query: Query, dataset: Dataset, max_result_rows: int) -> list[Row]:
    """Evaluate a validated query against one dataset.

    Args:
        query: Typed query produced by the validator.
        dataset: Dataset the query addresses.
        max_result_rows: Largest number of matching rows allowed.

    Returns:
        Projected rows, sorted when the query has an ORDER clause and in
        ingestion order otherwise.

    Raises:
        InvalidQueryError: If the query does not fit the dataset.
        ResultTooLargeError: If more than ``max_result_rows`` records match.
    """
    if query.dataset_id != dataset.dataset_id:
        raise InvalidQueryError(
            f"Query addresses dataset '{query.dataset_id}' but was evaluated "
            f"against '{dataset.dataset_id}'."
        )
    check_query_fields(query, schema_for(dataset.kind))
    matches = filter_records(dataset.records, query.where)
    if len(matches) > max_result_rows:
        raise ResultTooLargeError(
            f"Query matched {len(matches)} rows, above the limit of {max_result_rows}. "
            "Narrow the WHERE clause."
        )
    rows = [project_record(record, query) for record in matches]
    if query.order is not None:
        rows = sort_rows(rows, query.order)
    _LOGGER.info(
        "query_evaluated",
        dataset_id=dataset.dataset_id,
        record_count=dataset.record_count,
        match_count=len(rows),
    )
    return rows


def filter_records(records: tuple[Record, ...], where: PredicateNode | None) -> list[Record]:
    """Return records satisfying a predicate, preserving input order.

    Args:
        records: Records in ingestion order.
        where: Predicate tree; ``None`` matches every record.

    Returns:
        Matching records.
    """
    if where is None:
        return list(records)
    return [record for record in records if matches(where, record)]


def matches(node: PredicateNode, record: Record) -> bool:
    """Evaluate a predicate tree against one record.

    Walks the tree post-order with an explicit stack, so arbitrarily
    deep trees evaluate without recursion.
    """
    outcomes: list[bool] = []
    pending: list[tuple[PredicateNode, bool]] = [(node, False)]
    while pending:
        current, children_done = pending.pop()
        if isinstance(current, (AndNode, OrNode, NotNode)):
            children = (current.child,) if isinstance(current, NotNode) else current.children
            if not children_done:
                pending.append((current, True))
                pending.extend((child, False) for child in children)
                continue
            start = len(outcomes) - len(children)
            child_outcomes = outcomes[start:]
            del outcomes[start:]
            if isinstance(current, AndNode):
                outcomes.append(all(child_outcomes))
            elif isinstance(current, OrNode):
                outcomes.append(any(child_outcomes))
            else:
                outcomes.append(not child_outcomes[0])
        elif isinstance(current, ComparisonNode):
            outcomes.append(_compare(record[current.field.field_name], current))
        elif isinstance(current, StringMatchNode):
            outcomes.append(
                matches_pattern(str(record[current.field.field_name]), current.pattern)
            )
        else:
            raise InvalidQueryError(f"Unsupported predicate node {type(current).__name__}.")
    return outcomes[0]


def matches_pattern(value: str, pattern: str) -> bool:
    """Match a value against an exact or ``*``-anchored pattern.

    Args:
        value: String field value.
        pattern: Pattern with optional leading and/or trailing ``*``.

    Returns:
        Whether the value matches.
    """
    leading = pattern.startswith(WILDCARD)
    trailing = len(pattern) > 1 and pattern.endswith(WILDCARD)
    start = 1 if leading else 0
    end = len(pattern) - 1 if trailing else len(pattern)
    core = pattern[start:end]
    if leading and trailing:
        return core in value
    if leading:
        return value.endswith(core)
    if trailing:
        return value.startswith(core)
    return value == pattern


def project_record(record: Record, query: Query) -> Row:
    """Build an output row holding only the requested columns."""
    return {ref.key: record[ref.field_name] for ref in query.columns}


def sort_rows(rows: list[Row], order: SortSpec) -> list[Row]:
    """Stable multi-key sort; ties keep their filter-pass order.

    Args:
        rows: Projected rows.
        order: Sort keys and direction.

    Returns:
        Sorted copy of the rows.
    """
    sort_keys = [ref.key for ref in order.keys]
    return sorted(
        rows,
        key=lambda row: tuple(row[key] for key in sort_keys),
        reverse=order.direction is SortDirection.DOWN,
    )


def _compare(value: FieldValue, node: ComparisonNode) -> bool:
    if node.operator is ComparisonOperator.LT:
        return value < node.value
    if node.operator is ComparisonOperator.GT:
        return value > node.value
    return value == node.value

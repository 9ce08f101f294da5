"""Typed query models.

This module defines the parsed query tree produced by validation and
consumed by evaluation. Raw query documents never reach the evaluator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ComparisonOperator(str, Enum):
    """Numeric comparison operators."""

    LT = "LT"
    GT = "GT"
    EQ = "EQ"


class SortDirection(str, Enum):
    """Sort direction for ORDER clauses."""

    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class FieldRef:
    """Dataset-qualified field reference such as ``courses_avg``.

    Attributes:
        dataset_id: Dataset identifier prefix.
        field_name: Schema field name suffix.
    """

    dataset_id: str
    field_name: str

    @property
    def key(self) -> str:
        """Full ``<datasetId>_<field>`` key used in documents and rows."""
        return f"{self.dataset_id}_{self.field_name}"


@dataclass(frozen=True)
class AndNode:
    """Conjunction over one or more child predicates."""

    children: tuple["PredicateNode", ...]


@dataclass(frozen=True)
class OrNode:
    """Disjunction over one or more child predicates."""

    children: tuple["PredicateNode", ...]


@dataclass(frozen=True)
class NotNode:
    """Negation of one child predicate."""

    child: "PredicateNode"


@dataclass(frozen=True)
class ComparisonNode:
    """Numeric comparison between a field and a literal."""

    field: FieldRef
    operator: ComparisonOperator
    value: float


@dataclass(frozen=True)
class StringMatchNode:
    """Exact or leading/trailing wildcard match on a string field."""

    field: FieldRef
    pattern: str


PredicateNode = Union[AndNode, OrNode, NotNode, ComparisonNode, StringMatchNode]


@dataclass(frozen=True)
class SortSpec:
    """Ordered sort keys with one shared direction.

    Attributes:
        keys: Field references in priority order.
        direction: Ascending (UP) or descending (DOWN).
    """

    keys: tuple[FieldRef, ...]
    direction: SortDirection = SortDirection.UP


@dataclass(frozen=True)
class Query:
    """Validated query against exactly one dataset.

    Attributes:
        dataset_id: Dataset addressed by every field reference.
        where: Filter tree; ``None`` matches every record.
        columns: Projected fields in output order.
        order: Optional sort specification.
    """

    dataset_id: str
    where: PredicateNode | None
    columns: tuple[FieldRef, ...]
    order: SortSpec | None = None

    def field_refs(self) -> tuple[FieldRef, ...]:
        """Return every field referenced by filter, columns, and order."""
        refs: list[FieldRef] = list(self.columns)
        if self.order is not None:
            refs.extend(self.order.keys)
        if self.where is not None:
            refs.extend(_predicate_field_refs(self.where))
        return tuple(refs)


def _predicate_field_refs(node: PredicateNode) -> list[FieldRef]:
    """Collect field references from a predicate subtree in document order."""
    refs: list[FieldRef] = []
    pending: list[PredicateNode] = [node]
    while pending:
        current = pending.pop()
        if isinstance(current, (AndNode, OrNode)):
            pending.extend(reversed(current.children))
        elif isinstance(current, NotNode):
            pending.append(current.child)
        else:
            refs.append(current.field)
    return refs

"""Shared typed models.

This module defines immutable data models used by ingest, store,
query, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

FieldValue = Union[str, int, float]
Record = Mapping[str, FieldValue]


class DatasetKind(str, Enum):
    """Closed set of dataset kinds; each kind selects one record schema."""

    COURSES = "courses"


class FieldType(str, Enum):
    """Declared value type of a schema field."""

    STRING = "string"
    NUMBER = "number"


@dataclass(frozen=True)
class Dataset:
    """Immutable, ordered collection of validated records of one kind.

    Attributes:
        dataset_id: Registered dataset identifier.
        kind: Dataset kind that determines the record schema.
        records: Records in ingestion order.
    """

    dataset_id: str
    kind: DatasetKind
    records: tuple[Record, ...]

    @property
    def record_count(self) -> int:
        """Number of records held by the dataset."""
        return len(self.records)

    def metadata(self) -> "DatasetMetadata":
        """Return listing metadata without exposing records."""
        return DatasetMetadata(
            dataset_id=self.dataset_id,
            kind=self.kind,
            num_rows=self.record_count,
        )


@dataclass(frozen=True)
class DatasetMetadata:
    """Public listing entry for one registered dataset.

    Attributes:
        dataset_id: Dataset identifier.
        kind: Dataset kind.
        num_rows: Number of valid records ingested.
    """

    dataset_id: str
    kind: DatasetKind
    num_rows: int

    def to_dict(self) -> dict[str, object]:
        """Render the entry as ``{id, kind, numRows}``."""
        return {"id": self.dataset_id, "kind": self.kind.value, "numRows": self.num_rows}


@dataclass(frozen=True)
class SnapshotManifest:
    """Persisted snapshot metadata.

    Attributes:
        dataset_id: Dataset identifier the snapshot belongs to.
        kind: Dataset kind.
        record_count: Number of records in the snapshot.
        created_at: UTC creation timestamp.
    """

    dataset_id: str
    kind: DatasetKind
    record_count: int
    created_at: datetime


def freeze_record(values: Mapping[str, FieldValue]) -> Record:
    """Wrap record values in a read-only mapping.

    Args:
        values: Field name to value mapping.

    Returns:
        Read-only record view over a private copy.
    """
    return MappingProxyType(dict(values))

"""Per-kind record schemas and archive layout profiles.

This module declares the queryable fields of each dataset kind and
validates raw archive entries into typed, read-only records.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import math
from typing import Any, Callable, Mapping

from core.constants import OVERALL_SECTION_NAME, OVERALL_SECTION_YEAR
from core.types import DatasetKind, FieldType, FieldValue, Record, freeze_record

RawEntry = Mapping[str, Any]


class _InvalidValue(Exception):
    """Internal signal for a raw value that fails coercion."""


@dataclass(frozen=True)
class FieldSpec:
    """One schema field and where its raw value comes from.

    Attributes:
        name: Queryable field name (suffix after ``<datasetId>_``).
        source_key: Key of the raw value in a source entry.
        field_type: Declared value type.
        extract: Optional raw-value override for derived fields.
    """

    name: str
    source_key: str
    field_type: FieldType
    extract: Callable[[RawEntry], Any] | None = None

    def raw_value(self, entry: RawEntry) -> Any:
        """Return the raw value for this field; raises KeyError if absent."""
        if self.extract is not None:
            return self.extract(entry)
        return entry[self.source_key]


@dataclass(frozen=True)
class RecordSchema:
    """Ordered field declarations for one dataset kind."""

    kind: DatasetKind
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> tuple[str, ...]:
        """Queryable field names in declaration order."""
        return tuple(spec.name for spec in self.fields)

    def field_type(self, field_name: str) -> FieldType | None:
        """Return the declared type of a field, or ``None`` if unknown."""
        for spec in self.fields:
            if spec.name == field_name:
                return spec.field_type
        return None

    def validate(self, entry: Any) -> Record | None:
        """Validate one raw entry into a record.

        Args:
            entry: Raw decoded entry, expected to be a JSON object.

        Returns:
            Read-only record, or ``None`` when the entry is invalid.
        """
        if not isinstance(entry, Mapping):
            return None
        values: dict[str, FieldValue] = {}
        for spec in self.fields:
            try:
                values[spec.name] = _coerce(spec.raw_value(entry), spec.field_type)
            except (KeyError, _InvalidValue):
                return None
        return freeze_record(values)


@dataclass(frozen=True)
class KindProfile:
    """Archive layout precondition and schema for one dataset kind.

    Attributes:
        kind: Dataset kind.
        root_dir: Archive directory that must hold every data entry.
        schema: Record schema applied to each raw entry.
        split_entry: Parser from one archive entry text to raw entries.
    """

    kind: DatasetKind
    root_dir: str
    schema: RecordSchema
    split_entry: Callable[[str], list[Any]]

    def owns_path(self, entry_path: str) -> bool:
        """Return whether an archive path lives under the kind root."""
        prefix = f"{self.root_dir}/"
        return entry_path.startswith(prefix) and len(entry_path) > len(prefix)


def profile_for(kind: DatasetKind) -> KindProfile:
    """Return the profile registered for a dataset kind.

    Args:
        kind: Dataset kind.

    Returns:
        Kind profile with layout rule and schema.
    """
    return _PROFILES[kind]


def schema_for(kind: DatasetKind) -> RecordSchema:
    """Return the record schema of a dataset kind."""
    return _PROFILES[kind].schema


def _coerce(raw_value: Any, field_type: FieldType) -> FieldValue:
    """Coerce one raw value into its declared type.

    Raises:
        _InvalidValue: If the value cannot be represented in that type.
    """
    if field_type is FieldType.NUMBER:
        return _coerce_number(raw_value)
    return _coerce_string(raw_value)


def _coerce_number(raw_value: Any) -> int | float:
    if isinstance(raw_value, bool):
        raise _InvalidValue(raw_value)
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, float):
        if not math.isfinite(raw_value):
            raise _InvalidValue(raw_value)
        return raw_value
    if isinstance(raw_value, str):
        text = raw_value.strip()
        if "_" in text:
            raise _InvalidValue(raw_value)
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError as error:
            raise _InvalidValue(raw_value) from error
        if not math.isfinite(parsed):
            raise _InvalidValue(raw_value)
        return parsed
    raise _InvalidValue(raw_value)


def _coerce_string(raw_value: Any) -> str:
    if isinstance(raw_value, str):
        return raw_value
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)):
        raise _InvalidValue(raw_value)
    if isinstance(raw_value, float):
        if not math.isfinite(raw_value):
            raise _InvalidValue(raw_value)
        if raw_value.is_integer():
            return str(int(raw_value))
    return str(raw_value)


def _course_year(entry: RawEntry) -> Any:
    # Aggregate "overall" sections carry no real offering year.
    if entry.get("Section") == OVERALL_SECTION_NAME:
        return OVERALL_SECTION_YEAR
    return entry["Year"]


def _split_course_entry(text: str) -> list[Any]:
    """Parse one course file into its raw section entries.

    Args:
        text: Entry text, expected to be a JSON object with a ``result`` list.

    Returns:
        Raw section entries; empty when the file is malformed.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return []
    if not isinstance(payload, dict):
        return []
    sections = payload.get("result")
    if not isinstance(sections, list):
        return []
    return sections


COURSES_SCHEMA = RecordSchema(
    kind=DatasetKind.COURSES,
    fields=(
        FieldSpec("dept", "Subject", FieldType.STRING),
        FieldSpec("id", "Course", FieldType.STRING),
        FieldSpec("avg", "Avg", FieldType.NUMBER),
        FieldSpec("instructor", "Professor", FieldType.STRING),
        FieldSpec("title", "Title", FieldType.STRING),
        FieldSpec("pass", "Pass", FieldType.NUMBER),
        FieldSpec("fail", "Fail", FieldType.NUMBER),
        FieldSpec("audit", "Audit", FieldType.NUMBER),
        FieldSpec("uuid", "id", FieldType.STRING),
        FieldSpec("year", "Year", FieldType.NUMBER, extract=_course_year),
    ),
)

_PROFILES: dict[DatasetKind, KindProfile] = {
    DatasetKind.COURSES: KindProfile(
        kind=DatasetKind.COURSES,
        root_dir="courses",
        schema=COURSES_SCHEMA,
        split_entry=_split_course_entry,
    ),
}

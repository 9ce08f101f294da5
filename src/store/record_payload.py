"""Shared JSONL serialization for dataset records.

This module centralizes record JSON serialization logic.
It is reused by snapshot persistence and restore flows.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.types import FieldType, FieldValue, Record, freeze_record
from ingest.record_schema import RecordSchema


def record_to_payload(record: Record) -> dict[str, FieldValue]:
    """Serialize a record into a JSON-safe payload.

    Args:
        record: Read-only record.

    Returns:
        Plain dictionary copy of the record.
    """
    return dict(record)


def record_from_payload(payload: dict[str, Any], schema: RecordSchema) -> Record:
    """Deserialize a JSON payload into a record of the given schema.

    Args:
        payload: Serialized record payload.
        schema: Schema the record must conform to.

    Returns:
        Read-only record with fields in schema order.

    Raises:
        ValueError: If a field is missing or has the wrong type.
    """
    values: dict[str, FieldValue] = {}
    for spec in schema.fields:
        if spec.name not in payload:
            raise ValueError(f"missing field '{spec.name}'")
        value = payload[spec.name]
        if not _matches_type(value, spec.field_type):
            raise ValueError(f"field '{spec.name}' is not a {spec.field_type.value}")
        values[spec.name] = value
    return freeze_record(values)


def write_records_jsonl(records_path: Path, records: tuple[Record, ...]) -> None:
    """Write records to a JSONL file in order.

    Args:
        records_path: Output JSONL file path.
        records: Records to serialize.
    """
    lines = [json.dumps(record_to_payload(record), sort_keys=True) for record in records]
    records_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def read_records_jsonl(records_path: Path, schema: RecordSchema) -> list[Record]:
    """Read records from a JSONL file.

    Args:
        records_path: Input JSONL file path.
        schema: Schema every row must conform to.

    Returns:
        Parsed records in file order.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    parsed_records: list[Record] = []
    for line_number, line in enumerate(records_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_payload_line(line, line_number)
        try:
            parsed_records.append(record_from_payload(payload, schema))
        except ValueError as error:
            raise ValueError(f"Invalid record at line {line_number}: {error}") from error
    return parsed_records


def _matches_type(value: Any, field_type: FieldType) -> bool:
    if field_type is FieldType.STRING:
        return isinstance(value, str)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(
            f"Invalid JSON at line {line_number}: {error.msg}"
        ) from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload

"""Snapshot payload persistence helpers.

This module writes dataset records as canonical JSONL and mirrors
them to Apache Lance when the optional columnar stack is available.
"""

from __future__ import annotations

from pathlib import Path

from core.constants import LANCE_DIR_NAME, RECORDS_FILE_NAME
from core.errors import StoreError
from core.types import FieldType, Record
from ingest.record_schema import RecordSchema
from store.record_payload import read_records_jsonl, write_records_jsonl


def write_snapshot_payload(
    snapshot_dir: Path,
    records: tuple[Record, ...],
    schema: RecordSchema,
) -> bool:
    """Persist snapshot records and attempt Lance conversion.

    Args:
        snapshot_dir: Snapshot directory.
        records: Records to persist.
        schema: Schema describing record columns.

    Returns:
        ``True`` when Lance export succeeded, else ``False``.

    Raises:
        StoreError: If JSONL or Lance persistence fails.
    """
    records_path = snapshot_dir / RECORDS_FILE_NAME
    try:
        write_records_jsonl(records_path, records)
    except OSError as error:
        raise StoreError(
            f"Failed to persist snapshot payload at {records_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    return _try_write_lance_dataset(snapshot_dir, records, schema)


def read_snapshot_payload(snapshot_dir: Path, schema: RecordSchema) -> list[Record]:
    """Load snapshot records from the JSONL file.

    Args:
        snapshot_dir: Snapshot directory.
        schema: Schema every record must conform to.

    Returns:
        Parsed records in persisted order.

    Raises:
        StoreError: If records file is missing or invalid.
    """
    records_path = snapshot_dir / RECORDS_FILE_NAME
    if not records_path.exists():
        raise StoreError(
            f"Failed to load snapshot at {snapshot_dir}: missing {RECORDS_FILE_NAME}."
        )
    try:
        return read_records_jsonl(records_path, schema)
    except (OSError, ValueError) as error:
        raise StoreError(
            f"Failed to parse snapshot payload at {records_path}: {error}. "
            "Remove the dataset and add it again."
        ) from error


def _try_write_lance_dataset(
    snapshot_dir: Path,
    records: tuple[Record, ...],
    schema: RecordSchema,
) -> bool:
    """Attempt to write records to Apache Lance.

    Args:
        snapshot_dir: Snapshot directory.
        records: Snapshot records.
        schema: Schema describing record columns.

    Returns:
        Whether Lance export succeeded.
    """
    try:
        import lance
        import pyarrow as pa
    except ImportError:
        return False

    columns = {}
    for spec in schema.fields:
        arrow_type = pa.float64() if spec.field_type is FieldType.NUMBER else pa.string()
        columns[spec.name] = pa.array([record[spec.name] for record in records], type=arrow_type)
    table = pa.table(columns)
    lance_uri = str(snapshot_dir / LANCE_DIR_NAME)
    try:
        lance.write_dataset(table, lance_uri, mode="overwrite")
    except Exception as error:
        raise StoreError(
            f"Failed to write Lance dataset at {lance_uri}: {error}. "
            "Validate lance/pyarrow compatibility and retry."
        ) from error
    return True

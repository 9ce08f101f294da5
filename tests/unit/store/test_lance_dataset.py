"""Unit tests for snapshot payload persistence."""

from __future__ import annotations

import sys

import pytest

from ingest.record_schema import COURSES_SCHEMA
from store.lance_dataset import read_snapshot_payload, write_snapshot_payload
from tests.archive_builders import course_section


def _sample_records() -> tuple:
    return (
        COURSES_SCHEMA.validate(course_section()),
        COURSES_SCHEMA.validate(course_section(id=1002, Avg=91.5, Section="overall")),
    )


def test_write_snapshot_payload_mirrors_records_to_lance(tmp_path) -> None:
    """The Lance copy should hold every schema column for every record."""
    lance = pytest.importorskip("lance")
    pytest.importorskip("pyarrow")
    records = _sample_records()

    lance_written = write_snapshot_payload(tmp_path, records, COURSES_SCHEMA)

    rows = lance.dataset(str(tmp_path / "data.lance")).to_table().to_pylist()
    assert lance_written is True
    assert len(rows) == len(records)
    for row, record in zip(rows, records):
        assert set(row) == set(COURSES_SCHEMA.field_names)
        for field_name in COURSES_SCHEMA.field_names:
            assert row[field_name] == record[field_name]


def test_write_snapshot_payload_skips_lance_when_unavailable(tmp_path, monkeypatch) -> None:
    """Without lance installed only the JSONL payload should be written."""
    monkeypatch.setitem(sys.modules, "lance", None)
    records = _sample_records()

    lance_written = write_snapshot_payload(tmp_path, records, COURSES_SCHEMA)

    assert lance_written is False
    assert not (tmp_path / "data.lance").exists()
    restored = read_snapshot_payload(tmp_path, COURSES_SCHEMA)
    assert [dict(record) for record in restored] == [dict(record) for record in records]

"""Declarative query tests driven by JSON files in tests/fixtures/queries."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from core import errors
from core.types import DatasetKind
from store.dataset_sdk import CoursebaseClient
from tests.archive_builders import sample_course_archive, to_base64

QUERIES_DIR = Path(__file__).resolve().parent.parent / "fixtures" / "queries"


def _load_query_cases() -> list[dict[str, Any]]:
    cases = []
    for query_path in sorted(QUERIES_DIR.glob("*.json")):
        case = json.loads(query_path.read_text(encoding="utf-8"))
        case["filename"] = query_path.name
        cases.append(case)
    return cases


QUERY_CASES = _load_query_cases()


@pytest.mark.parametrize(
    "case",
    QUERY_CASES,
    ids=[f"[{case['filename']}] {case['title']}" for case in QUERY_CASES],
)
def test_query_case(config, case: dict[str, Any]) -> None:
    """Each query file should produce its recorded rows or error kind."""
    if "maxResultRows" in case:
        config = replace(config, max_result_rows=case["maxResultRows"])
    with CoursebaseClient(config) as client:
        content = to_base64(sample_course_archive())
        client.add_dataset("courses", content, DatasetKind.COURSES).result()
        future = client.perform_query(case["query"])

        if case["isQueryValid"]:
            assert future.result() == case["result"]
        else:
            with pytest.raises(getattr(errors, case["result"])):
                future.result()


def test_query_cases_are_present() -> None:
    """The query fixture directory should not be empty."""
    assert len(QUERY_CASES) >= 10

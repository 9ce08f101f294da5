"""Shared archive builders for tests."""

from __future__ import annotations

import base64
import io
import json
import zipfile
from typing import Any


def course_section(**overrides: Any) -> dict[str, Any]:
    """Return one raw course section entry with overridable keys.

    Args:
        **overrides: Raw keys to replace; a ``None`` value drops the key.

    Returns:
        Raw section dictionary.
    """
    section: dict[str, Any] = {
        "Subject": "cpsc",
        "Course": "310",
        "Avg": 78.5,
        "Professor": "holmes, reid",
        "Title": "intro sw eng",
        "Pass": 100,
        "Fail": 5,
        "Audit": 0,
        "id": 1001,
        "Year": "2015",
        "Section": "101",
    }
    for key, value in overrides.items():
        if value is None:
            section.pop(key, None)
        else:
            section[key] = value
    return section


def build_zip(entries: dict[str, Any]) -> bytes:
    """Build zip bytes from entry path to content.

    Args:
        entries: Path to content; lists are wrapped as ``{"result": [...]}``.

    Returns:
        Zip archive bytes.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path, content in entries.items():
            if isinstance(content, list):
                content = json.dumps({"result": content, "rank": 0})
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(path, content)
    return buffer.getvalue()


def to_base64(archive_bytes: bytes) -> str:
    """Return base64 text for archive bytes."""
    return base64.b64encode(archive_bytes).decode("ascii")


def sample_course_entries() -> dict[str, Any]:
    """Return the entries of the shared query test archive.

    Valid sections ingest in this order: CPSC110 (2), CPSC310 (3), MATH100 (2).
    """
    return {
        "courses/CPSC310": [
            course_section(),
            course_section(
                Avg=81.25, Professor="baniassad, elisa", Pass=120, Fail=2, Audit=1,
                id=1002, Year="2016", Section="102",
            ),
            course_section(
                Avg=79.9, Professor="", Pass=220, Fail=7, Audit=1,
                id=1003, Year="2016", Section="overall",
            ),
        ],
        "courses/CPSC110": [
            course_section(
                Course="110", Avg=72, Professor="kiczales, gregor", Title="comp, progm i",
                Pass=300, Fail=40, Audit=2, id=2001, Year="2014",
            ),
            course_section(
                Course="110", Avg=81.25, Professor="kiczales, gregor", Title="comp, progm i",
                Pass=250, Fail=10, Audit=0, id=2002, Year="2016", Section="102",
            ),
        ],
        "courses/MATH100": [
            course_section(
                Subject="math", Course="100", Avg=65.3, Professor="loewen, philip",
                Title="diff calculus", Pass=400, Fail=60, Audit=3, id=3001,
            ),
            course_section(Subject="math", Course="100", Avg=None, id=3002),
            course_section(
                Subject="math", Course="100", Avg=90, Professor="", Title="diff calculus",
                Pass=2, Fail=0, Audit=0, id=3003, Section="201",
            ),
        ],
        "courses/broken.json": "not json at all",
        "notes/readme.txt": "entries outside courses/ are ignored",
    }


SAMPLE_RECORD_COUNT = 7


def sample_course_archive() -> bytes:
    """Return zip bytes of the shared query test archive."""
    return build_zip(sample_course_entries())

"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def config(tmp_path: Path):
    """Runtime config rooted in a per-test data directory."""
    from core.config import CoursebaseConfig

    return CoursebaseConfig(data_root=tmp_path / "data", max_workers=2)


@pytest.fixture
def client(config):
    """SDK client that is closed after the test."""
    from store.dataset_sdk import CoursebaseClient

    sdk_client = CoursebaseClient(config)
    yield sdk_client
    sdk_client.close()

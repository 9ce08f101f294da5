"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import CoursebaseConfig
from core.errors import ConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("COURSEBASE_DATA_ROOT", "./.tmp-coursebase")

    config = CoursebaseConfig.from_env()

    assert config.data_root.name == ".tmp-coursebase"
    assert config.data_root.is_absolute()


def test_from_env_uses_default_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fall back to the documented result and worker limits."""
    monkeypatch.delenv("COURSEBASE_MAX_RESULT_ROWS", raising=False)
    monkeypatch.delenv("COURSEBASE_MAX_WORKERS", raising=False)

    config = CoursebaseConfig.from_env()

    assert (config.max_result_rows, config.max_workers) == (5000, 4)


def test_from_env_raises_for_invalid_result_cap(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric result caps."""
    monkeypatch.setenv("COURSEBASE_MAX_RESULT_ROWS", "lots")

    with pytest.raises(ConfigError):
        CoursebaseConfig.from_env()

    assert os.getenv("COURSEBASE_MAX_RESULT_ROWS") == "lots"


def test_from_env_raises_for_non_positive_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject a worker pool of size zero."""
    monkeypatch.setenv("COURSEBASE_MAX_WORKERS", "0")

    with pytest.raises(ConfigError, match="positive"):
        CoursebaseConfig.from_env()

"""Unit tests for the public import surface."""

from __future__ import annotations

import pytest

import coursebase
from core.errors import CoursebaseError


def test_public_module_exports_every_declared_name() -> None:
    """Each ``__all__`` entry should resolve on the module."""
    missing = [name for name in coursebase.__all__ if not hasattr(coursebase, name)]

    assert missing == []


def test_config_errors_are_catchable_from_public_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Callers should reach ConfigError without importing internal packages."""
    monkeypatch.setenv("COURSEBASE_MAX_RESULT_ROWS", "not-a-number")

    with pytest.raises(coursebase.ConfigError):
        coursebase.CoursebaseConfig.from_env()
    assert issubclass(coursebase.ConfigError, CoursebaseError)

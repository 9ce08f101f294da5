"""Public SDK surface for Coursebase.

This module provides a stable import path for library users.
It re-exports the client, config, dataset models, and error types.
"""

from __future__ import annotations

from core.config import CoursebaseConfig
from core.errors import (
    ConfigError,
    CoursebaseError,
    DuplicateDatasetError,
    InvalidContentError,
    InvalidDatasetError,
    InvalidIdError,
    InvalidQueryError,
    NotFoundError,
    ResultTooLargeError,
    StoreError,
)
from core.types import Dataset, DatasetKind, DatasetMetadata
from store.dataset_sdk import CoursebaseClient

__all__ = [
    "ConfigError",
    "CoursebaseClient",
    "CoursebaseConfig",
    "CoursebaseError",
    "Dataset",
    "DatasetKind",
    "DatasetMetadata",
    "DuplicateDatasetError",
    "InvalidContentError",
    "InvalidDatasetError",
    "InvalidIdError",
    "InvalidQueryError",
    "NotFoundError",
    "ResultTooLargeError",
    "StoreError",
]

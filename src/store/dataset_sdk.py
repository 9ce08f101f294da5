"""Python SDK for dataset operations.

This module exposes the add, remove, list, and query operations.
Each call runs on a bounded worker pool and returns a future that
resolves to the result or fails with the specific error kind.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from core.config import CoursebaseConfig
from core.errors import DuplicateDatasetError, InvalidContentError
from core.types import DatasetKind, DatasetMetadata
from ingest.dataset_builder import build_dataset_from_content
from query.query_evaluator import Row, evaluate_query
from query.query_validator import validate_query
from store.dataset_store import DatasetStore, validate_dataset_id
from store.snapshot_store import SnapshotStore


class CoursebaseClient:
    """Primary SDK entry point for dataset workflows."""

    def __init__(self, config: CoursebaseConfig | None = None) -> None:
        """Create SDK client and restore persisted datasets.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or CoursebaseConfig.from_env()
        self._store = DatasetStore(SnapshotStore(self._config))
        self._store.restore()
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="coursebase",
        )

    def __enter__(self) -> "CoursebaseClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def add_dataset(
        self,
        dataset_id: Any,
        content: bytes | str | None,
        kind: DatasetKind | str,
    ) -> "Future[list[str]]":
        """Ingest an archive and register it under a dataset id.

        Args:
            dataset_id: Identifier to register.
            content: Zip archive bytes or base64 text.
            kind: Dataset kind.

        Returns:
            Future resolving to all registered ids.

        Raises:
            InvalidIdError: Through the future, if the id is invalid.
            InvalidContentError: Through the future, if the archive is unusable.
            DuplicateDatasetError: Through the future, if the id is taken.
        """
        return self._executor.submit(self._add_dataset, dataset_id, content, kind)

    def remove_dataset(self, dataset_id: Any) -> "Future[str]":
        """Remove a dataset and its snapshot.

        Args:
            dataset_id: Identifier to remove.

        Returns:
            Future resolving to the removed id.

        Raises:
            InvalidIdError: Through the future, if the id is invalid.
            NotFoundError: Through the future, if the id is not added.
        """
        return self._executor.submit(self._store.remove, dataset_id)

    def list_datasets(self) -> "Future[list[DatasetMetadata]]":
        """List metadata for every registered dataset.

        Returns:
            Future resolving to dataset metadata in insertion order.
        """
        return self._executor.submit(self._store.list_datasets)

    def perform_query(self, document: Any) -> "Future[list[Row]]":
        """Validate and evaluate a query document.

        Args:
            document: Raw query document.

        Returns:
            Future resolving to projected, ordered rows.

        Raises:
            InvalidQueryError: Through the future, if the query is invalid.
            NotFoundError: Through the future, if the dataset is not added.
            ResultTooLargeError: Through the future, if too many rows match.
        """
        return self._executor.submit(self._perform_query, document)

    def close(self) -> None:
        """Wait for in-flight operations and stop the worker pool."""
        self._executor.shutdown(wait=True)

    def _add_dataset(
        self,
        dataset_id: Any,
        content: bytes | str | None,
        kind: DatasetKind | str,
    ) -> list[str]:
        validate_dataset_id(dataset_id)
        dataset_kind = _parse_kind(kind)
        if self._store.contains(dataset_id):
            raise DuplicateDatasetError(
                f"Dataset '{dataset_id}' is already added. "
                "Remove it first or choose a new id."
            )
        dataset = build_dataset_from_content(dataset_id, content, dataset_kind)
        return self._store.add(dataset_id, dataset)

    def _perform_query(self, document: Any) -> list[Row]:
        query = validate_query(document, self._store.schema_of)
        dataset = self._store.get(query.dataset_id)
        return evaluate_query(query, dataset, self._config.max_result_rows)


def _parse_kind(kind: DatasetKind | str) -> DatasetKind:
    """Resolve a dataset kind from an enum member or its value.

    Raises:
        InvalidContentError: If the kind is not supported.
    """
    try:
        return DatasetKind(kind)
    except ValueError as error:
        supported = ", ".join(member.value for member in DatasetKind)
        raise InvalidContentError(
            f"Unsupported dataset kind {kind!r}. Supported kinds: {supported}."
        ) from error

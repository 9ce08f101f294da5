"""Registry of loaded datasets.

This module keeps the in-memory dataset index that serves queries and
reconciles it with persisted snapshots on startup, add, and remove.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from core.constants import FIELD_KEY_SEPARATOR
from core.errors import DuplicateDatasetError, InvalidIdError, NotFoundError
from core.logging_config import get_logger
from core.types import Dataset, DatasetMetadata
from ingest.record_schema import RecordSchema, schema_for
from store.snapshot_store import SnapshotStore

_LOGGER = get_logger(__name__)


def validate_dataset_id(dataset_id: Any) -> str:
    """Check the dataset identifier rule shared by add and remove.

    Args:
        dataset_id: Candidate identifier.

    Returns:
        The identifier, unchanged.

    Raises:
        InvalidIdError: If the id is absent, not a string, blank, or has an underscore.
    """
    if dataset_id is None:
        raise InvalidIdError("Dataset id is missing. Provide a non-empty string id.")
    if not isinstance(dataset_id, str):
        raise InvalidIdError(
            f"Dataset id must be a string, got {type(dataset_id).__name__}."
        )
    if not dataset_id.strip():
        raise InvalidIdError(
            f"Dataset id {dataset_id!r} is empty or whitespace. Provide a non-blank id."
        )
    if FIELD_KEY_SEPARATOR in dataset_id:
        raise InvalidIdError(
            f"Dataset id {dataset_id!r} contains '{FIELD_KEY_SEPARATOR}'. "
            "Underscores separate dataset ids from field names in queries."
        )
    return dataset_id


class DatasetStore:
    """Process-wide dataset index backed by durable snapshots.

    Mutations on one id hold that id's lock for the whole
    check, persist, and register sequence. Reads copy the index
    under the registry lock and never wait on in-flight mutations.
    """

    def __init__(self, snapshots: SnapshotStore) -> None:
        self._snapshots = snapshots
        self._registry_lock = threading.Lock()
        self._id_locks: dict[str, _IdLock] = {}
        self._datasets: dict[str, Dataset] = {}

    def restore(self) -> list[str]:
        """Rebuild the index from persisted snapshots.

        Returns:
            Registered dataset ids after restore.
        """
        restored = self._snapshots.read_all()
        with self._registry_lock:
            self._datasets = {dataset.dataset_id: dataset for _, dataset in restored}
            dataset_ids = list(self._datasets)
        _LOGGER.info("datasets_restored", dataset_count=len(dataset_ids))
        return dataset_ids

    def add(self, dataset_id: str, dataset: Dataset) -> list[str]:
        """Persist and register a dataset.

        Args:
            dataset_id: Identifier to register under.
            dataset: Dataset built for that identifier.

        Returns:
            All registered ids in insertion order.

        Raises:
            InvalidIdError: If the id is invalid.
            DuplicateDatasetError: If the id is already registered.
            StoreError: If persisting the snapshot fails.
        """
        validate_dataset_id(dataset_id)
        if dataset.dataset_id != dataset_id:
            raise InvalidIdError(
                f"Dataset was built for id '{dataset.dataset_id}', not '{dataset_id}'."
            )
        with self._id_lock(dataset_id):
            if self.contains(dataset_id):
                raise DuplicateDatasetError(
                    f"Dataset '{dataset_id}' is already added. "
                    "Remove it first or choose a new id."
                )
            self._snapshots.write(dataset)
            with self._registry_lock:
                self._datasets[dataset_id] = dataset
                dataset_ids = list(self._datasets)
        _LOGGER.info(
            "dataset_added",
            dataset_id=dataset_id,
            kind=dataset.kind.value,
            record_count=dataset.record_count,
        )
        return dataset_ids

    def remove(self, dataset_id: str) -> str:
        """Delete a dataset snapshot and unregister it.

        Args:
            dataset_id: Identifier to remove.

        Returns:
            The removed id.

        Raises:
            InvalidIdError: If the id is invalid.
            NotFoundError: If the id is not registered.
            StoreError: If deleting the snapshot fails.
        """
        validate_dataset_id(dataset_id)
        with self._id_lock(dataset_id):
            if not self.contains(dataset_id):
                raise NotFoundError(f"Dataset '{dataset_id}' is not added.")
            self._snapshots.delete(dataset_id)
            with self._registry_lock:
                del self._datasets[dataset_id]
        _LOGGER.info("dataset_removed", dataset_id=dataset_id)
        return dataset_id

    def list_datasets(self) -> list[DatasetMetadata]:
        """Return metadata for every registered dataset."""
        with self._registry_lock:
            datasets = list(self._datasets.values())
        return [dataset.metadata() for dataset in datasets]

    def contains(self, dataset_id: str) -> bool:
        """Return whether a dataset id is registered."""
        with self._registry_lock:
            return dataset_id in self._datasets

    def get(self, dataset_id: str) -> Dataset:
        """Return a registered dataset.

        Raises:
            NotFoundError: If the id is not registered.
        """
        with self._registry_lock:
            dataset = self._datasets.get(dataset_id)
        if dataset is None:
            raise NotFoundError(
                f"Dataset '{dataset_id}' is not added. Add it before querying."
            )
        return dataset

    def schema_of(self, dataset_id: str) -> RecordSchema:
        """Return the record schema of a registered dataset.

        Raises:
            NotFoundError: If the id is not registered.
        """
        return schema_for(self.get(dataset_id).kind)

    @contextmanager
    def _id_lock(self, dataset_id: str) -> Iterator[None]:
        # Entries live only while some caller holds or waits on the id.
        with self._registry_lock:
            entry = self._id_locks.get(dataset_id)
            if entry is None:
                entry = _IdLock()
                self._id_locks[dataset_id] = entry
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._id_locks[dataset_id]


class _IdLock:
    """Per-id mutex with a count of callers holding or awaiting it."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0

"""Durable dataset snapshots.

This module owns the on-disk snapshot directory. It writes one
snapshot per dataset id, deletes snapshots, and reads them back at startup.
"""

from __future__ import annotations

import json
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from core.config import CoursebaseConfig
from core.constants import (
    DATASETS_DIR_NAME,
    MANIFEST_FILE_NAME,
    QUARANTINE_DIR_PREFIX,
    STAGING_DIR_PREFIX,
)
from core.errors import StoreError
from core.logging_config import get_logger
from core.types import Dataset, DatasetKind, SnapshotManifest
from ingest.record_schema import schema_for
from store.lance_dataset import read_snapshot_payload, write_snapshot_payload

_LOGGER = get_logger(__name__)


class SnapshotStore:
    """Filesystem snapshot store keyed by dataset id.

    Each snapshot is staged in a hidden sibling directory and renamed
    into place, so readers never observe a partially written snapshot.
    """

    def __init__(self, config: CoursebaseConfig) -> None:
        """Initialize snapshot store from config.

        Args:
            config: Runtime configuration.
        """
        self._datasets_root = config.data_root / DATASETS_DIR_NAME
        self._datasets_root.mkdir(parents=True, exist_ok=True)

    def write(self, dataset: Dataset) -> SnapshotManifest:
        """Persist a dataset snapshot.

        Args:
            dataset: Dataset to persist.

        Returns:
            Persisted snapshot manifest.

        Raises:
            StoreError: If persistence fails or a snapshot already exists.
        """
        target_dir = self._snapshot_dir(dataset.dataset_id)
        if target_dir.exists():
            raise StoreError(
                f"Snapshot directory already exists at {target_dir}. "
                "Remove the dataset before writing it again."
            )
        manifest = SnapshotManifest(
            dataset_id=dataset.dataset_id,
            kind=dataset.kind,
            record_count=dataset.record_count,
            created_at=datetime.now(timezone.utc),
        )
        staging_dir = self._datasets_root / f"{STAGING_DIR_PREFIX}{uuid.uuid4().hex}"
        try:
            staging_dir.mkdir(parents=True)
            lance_written = write_snapshot_payload(
                staging_dir, dataset.records, schema_for(dataset.kind)
            )
            _write_manifest_file(staging_dir, manifest, lance_written)
            staging_dir.rename(target_dir)
        except OSError as error:
            _remove_tree(staging_dir)
            raise StoreError(
                f"Failed to persist snapshot for dataset '{dataset.dataset_id}' "
                f"at {target_dir}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        except StoreError:
            _remove_tree(staging_dir)
            raise
        _LOGGER.info(
            "snapshot_written",
            dataset_id=dataset.dataset_id,
            kind=dataset.kind.value,
            record_count=manifest.record_count,
            lance_written=lance_written,
        )
        return manifest

    def delete(self, dataset_id: str) -> None:
        """Delete a dataset snapshot.

        Args:
            dataset_id: Dataset identifier.

        Raises:
            StoreError: If the snapshot cannot be removed.
        """
        target_dir = self._snapshot_dir(dataset_id)
        if not target_dir.exists():
            return
        # Rename first so a failed tree removal leaves no half-deleted snapshot.
        doomed_dir = self._datasets_root / f"{STAGING_DIR_PREFIX}{uuid.uuid4().hex}"
        try:
            target_dir.rename(doomed_dir)
        except OSError as error:
            raise StoreError(
                f"Failed to delete snapshot for dataset '{dataset_id}' at {target_dir}: "
                f"{error}. Check write permissions and retry."
            ) from error
        _remove_tree(doomed_dir)
        _LOGGER.info("snapshot_deleted", dataset_id=dataset_id)

    def read_all(self) -> list[tuple[SnapshotManifest, Dataset]]:
        """Read every persisted snapshot.

        Snapshots that fail to parse are logged and moved aside under a
        quarantine name, so their dataset ids can be added again.

        Returns:
            Manifest and dataset pairs ordered by creation time.
        """
        loaded: list[tuple[SnapshotManifest, Dataset]] = []
        for snapshot_dir in sorted(self._datasets_root.iterdir()):
            if not snapshot_dir.is_dir():
                continue
            if snapshot_dir.name.startswith(QUARANTINE_DIR_PREFIX):
                continue
            if snapshot_dir.name.startswith(STAGING_DIR_PREFIX):
                _remove_tree(snapshot_dir)
                continue
            try:
                loaded.append(_read_snapshot(snapshot_dir))
            except StoreError as error:
                _LOGGER.warning(
                    "snapshot_skipped",
                    snapshot_dir=str(snapshot_dir),
                    reason=str(error),
                )
                self._quarantine(snapshot_dir)
        return sorted(loaded, key=lambda item: item[0].created_at)

    def _quarantine(self, snapshot_dir: Path) -> None:
        quarantine_dir = self._datasets_root / (
            f"{QUARANTINE_DIR_PREFIX}{snapshot_dir.name}-{uuid.uuid4().hex}"
        )
        try:
            snapshot_dir.rename(quarantine_dir)
        except OSError as error:
            _LOGGER.warning(
                "snapshot_quarantine_failed",
                snapshot_dir=str(snapshot_dir),
                reason=str(error),
            )
            return
        _LOGGER.warning(
            "snapshot_quarantined",
            snapshot_dir=str(snapshot_dir),
            quarantine_dir=str(quarantine_dir),
        )

    def _snapshot_dir(self, dataset_id: str) -> Path:
        return self._datasets_root / dataset_id


def _read_snapshot(snapshot_dir: Path) -> tuple[SnapshotManifest, Dataset]:
    """Load one snapshot directory.

    Args:
        snapshot_dir: Snapshot directory.

    Returns:
        Manifest and reconstructed dataset.

    Raises:
        StoreError: If manifest or records are missing or invalid.
    """
    manifest = _manifest_from_dict(_read_manifest_file(snapshot_dir))
    if manifest.dataset_id != snapshot_dir.name:
        raise StoreError(
            f"Snapshot manifest at {snapshot_dir} names dataset "
            f"'{manifest.dataset_id}'. Remove the directory and add the dataset again."
        )
    records = read_snapshot_payload(snapshot_dir, schema_for(manifest.kind))
    if len(records) != manifest.record_count:
        raise StoreError(
            f"Snapshot at {snapshot_dir} holds {len(records)} records but its manifest "
            f"declares {manifest.record_count}. Remove the dataset and add it again."
        )
    dataset = Dataset(dataset_id=manifest.dataset_id, kind=manifest.kind, records=tuple(records))
    return manifest, dataset


def _write_manifest_file(
    snapshot_dir: Path,
    manifest: SnapshotManifest,
    lance_written: bool,
) -> None:
    """Write snapshot manifest file.

    Args:
        snapshot_dir: Snapshot directory.
        manifest: Manifest payload.
        lance_written: Whether Lance dataset was created.
    """
    manifest_dict = {
        "dataset_id": manifest.dataset_id,
        "kind": manifest.kind.value,
        "record_count": manifest.record_count,
        "created_at": manifest.created_at.isoformat(),
        "lance_written": lance_written,
    }
    manifest_path = snapshot_dir / MANIFEST_FILE_NAME
    manifest_path.write_text(json.dumps(manifest_dict, indent=2) + "\n", encoding="utf-8")


def _read_manifest_file(snapshot_dir: Path) -> dict[str, Any]:
    """Read and validate a snapshot manifest payload.

    Raises:
        StoreError: If manifest is missing or invalid.
    """
    manifest_path = snapshot_dir / MANIFEST_FILE_NAME
    if not manifest_path.exists():
        raise StoreError(
            f"Snapshot manifest not found at {manifest_path}. "
            "Remove the directory and add the dataset again."
        )
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise StoreError(
            f"Failed to parse snapshot manifest at {manifest_path}: {error.msg}. "
            "Remove the directory and add the dataset again."
        ) from error
    if not isinstance(payload, dict):
        raise StoreError(
            f"Failed to parse snapshot manifest at {manifest_path}: "
            "expected JSON object at top level."
        )
    return payload


def _manifest_from_dict(payload: dict[str, Any]) -> SnapshotManifest:
    """Deserialize manifest payload from dictionary.

    Raises:
        StoreError: If a manifest field is missing or malformed.
    """
    try:
        return SnapshotManifest(
            dataset_id=str(payload["dataset_id"]),
            kind=DatasetKind(payload["kind"]),
            record_count=int(payload["record_count"]),
            created_at=datetime.fromisoformat(str(payload["created_at"])),
        )
    except (KeyError, TypeError, ValueError) as error:
        raise StoreError(f"Malformed snapshot manifest field: {error}.") from error


def _remove_tree(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)

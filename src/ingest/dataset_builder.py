"""Dataset construction from decoded archive entries.

This module checks the kind-specific archive layout, validates each
raw entry against the record schema, and assembles an immutable dataset.
"""

from __future__ import annotations

from typing import Mapping

from core.errors import InvalidDatasetError
from core.logging_config import get_logger
from core.types import Dataset, DatasetKind, Record
from ingest.archive_reader import read_archive_entries
from ingest.record_schema import KindProfile, profile_for

_LOGGER = get_logger(__name__)


def build_dataset(
    dataset_id: str,
    entries: Mapping[str, str],
    kind: DatasetKind,
) -> Dataset:
    """Build a dataset from archive entries.

    Entries outside the kind root directory are ignored. Raw entries that
    fail schema validation are skipped without aborting the build.

    Args:
        dataset_id: Identifier the dataset will be registered under.
        entries: Mapping from archive path to entry text.
        kind: Dataset kind selecting layout rule and schema.

    Returns:
        Immutable dataset with records in entry-then-intra-entry order.

    Raises:
        InvalidDatasetError: If the layout is violated or no record is valid.
    """
    profile = profile_for(kind)
    data_paths = _data_entry_paths(entries, profile)
    records: list[Record] = []
    raw_count = 0
    for entry_path in data_paths:
        for raw_entry in profile.split_entry(entries[entry_path]):
            raw_count += 1
            record = profile.schema.validate(raw_entry)
            if record is not None:
                records.append(record)
    if not records:
        raise InvalidDatasetError(
            f"Dataset '{dataset_id}' has no valid {kind.value} records "
            f"across {len(data_paths)} entries under '{profile.root_dir}/'. "
            "Check that entries match the expected record format."
        )
    _LOGGER.info(
        "dataset_built",
        dataset_id=dataset_id,
        kind=kind.value,
        entry_count=len(data_paths),
        raw_count=raw_count,
        record_count=len(records),
        skipped_count=raw_count - len(records),
    )
    return Dataset(dataset_id=dataset_id, kind=kind, records=tuple(records))


def build_dataset_from_content(
    dataset_id: str,
    content: bytes | str | None,
    kind: DatasetKind,
) -> Dataset:
    """Decode archive content and build a dataset from it.

    Args:
        dataset_id: Identifier the dataset will be registered under.
        content: Zip bytes or their base64 text.
        kind: Dataset kind.

    Returns:
        Immutable dataset.

    Raises:
        InvalidContentError: If content cannot be decoded as an archive.
        InvalidDatasetError: If decoded entries do not form a valid dataset.
    """
    return build_dataset(dataset_id, read_archive_entries(content), kind)


def _data_entry_paths(entries: Mapping[str, str], profile: KindProfile) -> list[str]:
    """Return sorted data entry paths under the kind root directory.

    Raises:
        InvalidDatasetError: If the archive holds no entry under the root.
    """
    data_paths = sorted(path for path in entries if profile.owns_path(path))
    if not data_paths:
        raise InvalidDatasetError(
            f"Archive has no entries under the '{profile.root_dir}/' directory "
            f"required for {profile.kind.value} datasets. "
            "Repackage the archive with data files inside that directory."
        )
    return data_paths

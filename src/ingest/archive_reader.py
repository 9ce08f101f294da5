"""Archive decoding for dataset ingestion.

This module turns raw zip bytes, or their base64 text form, into a
mapping of entry path to text content for the dataset builder.
"""

from __future__ import annotations

import base64
import binascii
import io
import zipfile
import zlib

from core.errors import InvalidContentError

# Corrupt deflate data, encrypted entries, unsupported compression and
# truncated streams surface from ZipFile.read as these types.
_ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    zlib.error,
    RuntimeError,
    NotImplementedError,
    EOFError,
)


def read_archive_entries(content: bytes | str | None) -> dict[str, str]:
    """Decode archive content into text entries.

    Args:
        content: Zip archive bytes, or base64 text of those bytes.

    Returns:
        Mapping from entry path to UTF-8 text, sorted by path.

    Raises:
        InvalidContentError: If content is missing, not base64, or not a zip.
    """
    archive_bytes = _archive_bytes(content)
    try:
        with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
            return _read_text_entries(archive)
    except _ARCHIVE_ERRORS as error:
        raise InvalidContentError(
            f"Failed to read dataset archive: {error}. "
            "Provide the bytes of a valid, unencrypted zip file."
        ) from error


def _archive_bytes(content: bytes | str | None) -> bytes:
    """Normalize supported content forms into raw bytes.

    Args:
        content: Raw bytes or base64 text.

    Returns:
        Raw archive bytes.

    Raises:
        InvalidContentError: If content is missing or not decodable.
    """
    if content is None:
        raise InvalidContentError(
            "Dataset content is missing. Provide zip archive bytes or base64 text."
        )
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    if not isinstance(content, str):
        raise InvalidContentError(
            f"Unsupported dataset content type {type(content).__name__}. "
            "Provide zip archive bytes or base64 text."
        )
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as error:
        raise InvalidContentError(
            f"Failed to decode base64 dataset content: {error}. "
            "Encode the zip archive bytes with standard base64."
        ) from error


def _read_text_entries(archive: zipfile.ZipFile) -> dict[str, str]:
    """Read all file entries that decode as UTF-8 text.

    Args:
        archive: Open zip archive.

    Returns:
        Path-sorted mapping of entry text. Undecodable entries are omitted.
    """
    entries: dict[str, str] = {}
    for info in sorted(archive.infolist(), key=lambda item: item.filename):
        if info.is_dir():
            continue
        try:
            entries[info.filename] = archive.read(info).decode("utf-8")
        except UnicodeDecodeError:
            continue
    return entries

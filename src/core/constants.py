"""Core constants used across Coursebase modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".coursebase")
DEFAULT_MAX_RESULT_ROWS = 5000
DEFAULT_MAX_WORKERS = 4
DATASETS_DIR_NAME = "datasets"
STAGING_DIR_PREFIX = ".staging-"
QUARANTINE_DIR_PREFIX = ".corrupt-"
MANIFEST_FILE_NAME = "manifest.json"
RECORDS_FILE_NAME = "records.jsonl"
LANCE_DIR_NAME = "data.lance"
FIELD_KEY_SEPARATOR = "_"
WILDCARD = "*"
OVERALL_SECTION_NAME = "overall"
OVERALL_SECTION_YEAR = 1900

"""Runtime configuration model for Coursebase.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT, DEFAULT_MAX_RESULT_ROWS, DEFAULT_MAX_WORKERS
from core.errors import ConfigError


@dataclass(frozen=True)
class CoursebaseConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for persisted dataset snapshots.
        max_result_rows: Largest number of rows one query may return.
        max_workers: Size of the worker pool behind client operations.
    """

    data_root: Path
    max_result_rows: int = DEFAULT_MAX_RESULT_ROWS
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_env(cls) -> "CoursebaseConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("COURSEBASE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        max_result_rows = _parse_positive_int(
            "COURSEBASE_MAX_RESULT_ROWS",
            os.getenv("COURSEBASE_MAX_RESULT_ROWS", str(DEFAULT_MAX_RESULT_ROWS)),
        )
        max_workers = _parse_positive_int(
            "COURSEBASE_MAX_WORKERS",
            os.getenv("COURSEBASE_MAX_WORKERS", str(DEFAULT_MAX_WORKERS)),
        )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            max_result_rows=max_result_rows,
            max_workers=max_workers,
        )


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a strictly positive integer environment value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        ConfigError: If value is not a positive integer.
    """
    try:
        parsed_value = int(raw_value)
    except ValueError as error:
        raise ConfigError(
            f"Invalid {variable_name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a numeric value."
        ) from error
    if parsed_value <= 0:
        raise ConfigError(
            f"Invalid {variable_name} value: expected a positive integer, "
            f"got {parsed_value}. Set {variable_name} to 1 or more."
        )
    return parsed_value

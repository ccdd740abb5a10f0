"""Runtime configuration model for fb2shelf.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DATABASE_FILE_NAME,
    DEFAULT_DATA_ROOT,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_WORKER_COUNT,
)
from core.errors import ShelfConfigError


@dataclass(frozen=True)
class ShelfConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local directory holding the SQLite library database.
        workers: Worker thread count for archive ingest.
        queue_size: Work queue capacity; zero means unbounded.
        s3_region: Optional default AWS region for site publishing.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    data_root: Path
    workers: int
    queue_size: int
    s3_region: str | None
    s3_profile: str | None

    @property
    def database_path(self) -> Path:
        """Return the SQLite database file under the data root."""
        return self.data_root / DATABASE_FILE_NAME

    @classmethod
    def from_env(cls) -> "ShelfConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ShelfConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("SHELF_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        workers = _parse_int_env("SHELF_WORKERS", DEFAULT_WORKER_COUNT, minimum=1)
        queue_size = _parse_int_env("SHELF_QUEUE_SIZE", DEFAULT_QUEUE_SIZE, minimum=0)
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            workers=workers,
            queue_size=queue_size,
            s3_region=os.getenv("SHELF_S3_REGION"),
            s3_profile=os.getenv("SHELF_S3_PROFILE"),
        )


def _parse_int_env(name: str, default: int, minimum: int) -> int:
    """Parse a bounded integer environment value.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.
        minimum: Smallest accepted value.

    Returns:
        Parsed integer.

    Raises:
        ShelfConfigError: If value is not an integer or below minimum.
    """
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ShelfConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value < minimum:
        raise ShelfConfigError(
            f"Invalid {name} value: expected integer >= {minimum}, got {value}."
        )
    return value

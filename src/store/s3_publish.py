"""S3 publishing for exported Hugo sites.

This module uploads an exported site tree to an ``s3://`` prefix.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.config import ShelfConfig
from core.errors import ShelfDependencyError, ShelfExportError
from core.logging_config import get_logger
from core.s3_uri import parse_s3_uri

_LOGGER = get_logger(__name__)


def publish_site_to_s3(
    site_root: Path,
    output_uri: str,
    config: ShelfConfig,
    s3_client: Any = None,
) -> int:
    """Upload every file under an exported site to S3.

    Args:
        site_root: Exported Hugo site root.
        output_uri: Destination ``s3://bucket/prefix``.
        config: Runtime config with optional session settings.
        s3_client: Optional pre-built client.

    Returns:
        Number of uploaded files.

    Raises:
        ShelfExportError: If the URI is invalid or an upload fails.
        ShelfDependencyError: If boto3 is missing.
    """
    location = parse_s3_uri(output_uri)
    client = s3_client or _create_s3_client(config)
    uploaded = 0
    for local_file in sorted(site_root.rglob("*")):
        if not local_file.is_file():
            continue
        object_key = f"{location.prefix}/{local_file.relative_to(site_root).as_posix()}"
        try:
            client.upload_file(str(local_file), location.bucket, object_key)
        except Exception as error:
            raise ShelfExportError(
                f"Failed to publish {local_file} to s3://{location.bucket}/{object_key}: "
                f"{error}. Check AWS credentials and retry export."
            ) from error
        uploaded += 1
    _LOGGER.info("site_published", output_uri=output_uri, file_count=uploaded)
    return uploaded


def _create_s3_client(config: ShelfConfig) -> Any:
    """Create boto3 S3 client for publishing.

    Raises:
        ShelfDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise ShelfDependencyError(
            "S3 publishing requires boto3, but it is not installed. "
            "Install boto3 to publish sites to s3:// destinations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")

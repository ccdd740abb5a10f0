"""Python SDK for library operations.

This module exposes high-level APIs for archive import, book listing,
and Hugo export, all backed by one SQLite book store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import ShelfConfig
from core.types import BookRecord, ExportResult, IngestSummary, PipelineOptions
from ingest.pipeline import IngestPipeline
from store.book_store import BookStore
from store.hugo_export import export_hugo_site
from store.s3_publish import publish_site_to_s3


class ShelfClient:
    """Primary SDK entry point for import and export workflows."""

    def __init__(self, config: ShelfConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or ShelfConfig.from_env()
        self._store = BookStore(self._config.database_path)

    @property
    def config(self) -> ShelfConfig:
        return self._config

    def import_archive(
        self,
        archive_path: str,
        options: PipelineOptions | None = None,
    ) -> IngestSummary:
        """Ingest one archive into the book store.

        Args:
            archive_path: Path to the archive.
            options: Optional pipeline options; defaults come from config.

        Returns:
            Per-entry outcome summary.

        Raises:
            ShelfArchiveError: If the archive cannot be opened.
        """
        pipeline_options = options or PipelineOptions(
            workers=self._config.workers,
            queue_size=self._config.queue_size,
        )
        return IngestPipeline(self._store, pipeline_options).run(archive_path)

    def books(self) -> list[BookRecord]:
        """Return every stored book ordered by id."""
        return self._store.list_all()

    def export(self, output_dir: str, output_uri: str | None = None) -> ExportResult:
        """Export all stored books as a Hugo content tree.

        Args:
            output_dir: Local Hugo site root.
            output_uri: Optional ``s3://`` destination for the exported tree.

        Returns:
            Export summary.
        """
        result = export_hugo_site(self._store.list_all(), output_dir)
        if output_uri:
            publish_site_to_s3(result.output_dir, output_uri, self._config)
        return result

    def with_data_root(self, data_root: str) -> "ShelfClient":
        """Move the client to a different local data root.

        The current store connection is closed; use the returned client.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        moved = ShelfClient(replace(self._config, data_root=resolved_root))
        self.close()
        return moved

    def close(self) -> None:
        self._store.close()

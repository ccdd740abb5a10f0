"""Public SDK surface for fb2shelf.

This module provides a stable import path for library users.
It re-exports the client, the pipeline, and typed models.
"""

from __future__ import annotations

from core.config import ShelfConfig
from core.types import (
    ArchiveEntry,
    BookRecord,
    EntryOutcome,
    EntryStatus,
    ExportResult,
    IngestSummary,
    PipelineOptions,
)
from ingest.fb2_extractor import extract_book
from ingest.pipeline import IngestPipeline, ingest_archive
from store.book_store import BookStore
from store.hugo_export import export_hugo_site
from store.library_sdk import ShelfClient

__all__ = [
    "ArchiveEntry",
    "BookRecord",
    "BookStore",
    "EntryOutcome",
    "EntryStatus",
    "ExportResult",
    "IngestPipeline",
    "IngestSummary",
    "PipelineOptions",
    "ShelfClient",
    "ShelfConfig",
    "export_hugo_site",
    "extract_book",
    "ingest_archive",
]

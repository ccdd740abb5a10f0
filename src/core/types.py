"""Shared typed models.

This module defines immutable data models used by the archive,
ingest, store, and export layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from core.constants import DEFAULT_QUEUE_SIZE, DEFAULT_WORKER_COUNT, RECOGNIZED_SUFFIXES


@dataclass(frozen=True)
class BookRecord:
    """Bibliographic metadata for one FictionBook document.

    Attributes:
        title: Book title, never blank.
        authors: Author display names in document order.
        genres: Genre labels in document order.
        language: Language code, e.g. ``en`` or ``ru``.
        annotation: Plain-text annotation, paragraphs split by blank lines.
        cover_data: Raw cover image bytes when the document embeds one.
        cover_content_type: MIME type of the cover image.
        file_name: Originating archive entry name; the upsert key.
        tags: Keyword tags in document order.
        series: Series name when the book belongs to one.
        series_number: Position within the series.
        size: Entry size in bytes.
        archive_path: Location of the source archive.
        date_added: ISO-8601 UTC ingestion timestamp.
        book_id: Store-assigned identifier, ``None`` until persisted.
    """

    title: str
    authors: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()
    language: str = ""
    annotation: str = ""
    cover_data: bytes | None = None
    cover_content_type: str | None = None
    file_name: str = ""
    tags: tuple[str, ...] = ()
    series: str | None = None
    series_number: int | None = None
    size: int = 0
    archive_path: str = ""
    date_added: str = ""
    book_id: int | None = None


@dataclass(frozen=True)
class ArchiveEntry:
    """One named file inside a source archive.

    Attributes:
        name: Path of the entry within the container.
        size: Uncompressed size in bytes.
    """

    name: str
    size: int


class EntryStatus(str, Enum):
    """Terminal state of one archive entry within a batch."""

    STORED = "stored"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class EntryOutcome:
    """Per-entry result reported by the ingest pipeline.

    Attributes:
        entry_name: Archive entry name.
        status: Terminal entry state.
        stage: Failing step (``open``, ``extract`` or ``store``) for failures.
        detail: Human-readable failure cause.
        book_id: Store identifier for stored entries.
    """

    entry_name: str
    status: EntryStatus
    stage: str | None = None
    detail: str | None = None
    book_id: int | None = None


@dataclass(frozen=True)
class IngestSummary:
    """Outcome report for one archive batch."""

    archive_path: str
    outcomes: tuple[EntryOutcome, ...]

    @property
    def stored(self) -> int:
        return self._count(EntryStatus.STORED)

    @property
    def skipped(self) -> int:
        return self._count(EntryStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(EntryStatus.FAILED)

    def failed_entries(self) -> tuple[EntryOutcome, ...]:
        """Return outcomes for entries that failed."""
        return tuple(item for item in self.outcomes if item.status is EntryStatus.FAILED)

    def _count(self, status: EntryStatus) -> int:
        return sum(1 for item in self.outcomes if item.status is status)


@dataclass(frozen=True)
class PipelineOptions:
    """Ingest pipeline tuning options.

    Attributes:
        workers: Fixed worker thread count, at least one.
        queue_size: Work queue capacity; zero means unbounded.
        suffixes: Recognized entry name suffixes, compared case-insensitively.
    """

    workers: int = DEFAULT_WORKER_COUNT
    queue_size: int = DEFAULT_QUEUE_SIZE
    suffixes: tuple[str, ...] = RECOGNIZED_SUFFIXES


@dataclass(frozen=True)
class ExportResult:
    """Summary of a Hugo site export.

    Attributes:
        output_dir: Export root directory.
        page_paths: Written ``index.md`` paths in record order.
        cover_paths: Written cover image paths.
    """

    output_dir: Path
    page_paths: tuple[Path, ...]
    cover_paths: tuple[Path, ...] = field(default_factory=tuple)

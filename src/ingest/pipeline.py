"""Concurrent archive ingest pipeline.

One producer enumerates archive entries and feeds a bounded work queue.
A fixed pool of worker threads reads, extracts, and upserts each entry.
Entry failures are logged and counted without stopping the batch; only
an archive that cannot be opened fails the batch itself.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

from core.errors import ShelfConfigError
from core.logging_config import get_logger
from core.types import (
    ArchiveEntry,
    BookRecord,
    EntryOutcome,
    EntryStatus,
    IngestSummary,
    PipelineOptions,
)
from ingest.archive_source import ArchiveSource, open_archive
from ingest.fb2_extractor import extract_book

_LOGGER = get_logger(__name__)
_STOP = object()


class BookSink(Protocol):
    """Store operations required by the pipeline."""

    def upsert(self, record: BookRecord) -> BookRecord: ...


class IngestPipeline:
    """Fan archive entries out to a fixed worker pool.

    The pipeline itself is stateless between runs; every run owns its
    queue, threads, and outcome collector.
    """

    def __init__(
        self,
        store: BookSink,
        options: PipelineOptions | None = None,
        logger: Any = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Create a pipeline bound to a store.

        Args:
            store: Book store; must tolerate concurrent upserts.
            options: Worker count, queue capacity, and recognized suffixes.
            logger: Structured logger; defaults to the module logger.
            clock: Timestamp source for ``date_added``.

        Raises:
            ShelfConfigError: If options are out of range.
        """
        self._options = options or PipelineOptions()
        _validate_options(self._options)
        self._store = store
        self._logger = logger or _LOGGER
        self._clock = clock or _utc_now
        self._suffixes = tuple(suffix.lower() for suffix in self._options.suffixes)

    def run(self, archive_path: str | Path) -> IngestSummary:
        """Ingest every recognized entry of one archive.

        Args:
            archive_path: Archive file path.

        Returns:
            Per-entry outcomes ordered by archive position.

        Raises:
            ShelfArchiveError: If the archive cannot be opened or listed.
        """
        date_added = self._clock().isoformat(timespec="seconds")
        outcomes: queue.SimpleQueue[tuple[int, EntryOutcome]] = queue.SimpleQueue()
        with open_archive(archive_path) as source:
            self._logger.info(
                "ingest_started",
                archive_path=source.path,
                workers=self._options.workers,
                queue_size=self._options.queue_size,
            )
            work_queue: queue.Queue[Any] = queue.Queue(maxsize=self._options.queue_size)
            workers = [
                threading.Thread(
                    target=self._work,
                    args=(source, work_queue, outcomes, date_added, worker_id),
                    name=f"fb2shelf-ingest-{worker_id}",
                    daemon=True,
                )
                for worker_id in range(self._options.workers)
            ]
            for worker in workers:
                worker.start()
            try:
                self._produce(source, work_queue, outcomes)
            finally:
                for _ in workers:
                    work_queue.put(_STOP)
                for worker in workers:
                    worker.join()
            summary = _build_summary(source.path, outcomes)
        self._logger.info(
            "ingest_completed",
            archive_path=summary.archive_path,
            stored=summary.stored,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary

    def _produce(
        self,
        source: ArchiveSource,
        work_queue: queue.Queue[Any],
        outcomes: queue.SimpleQueue[tuple[int, EntryOutcome]],
    ) -> None:
        """Enqueue recognized entries; record the rest as skipped."""
        for position, entry in enumerate(source.list_entries()):
            if not entry.name.lower().endswith(self._suffixes):
                self._logger.debug("entry_skipped", entry_name=entry.name)
                outcomes.put(
                    (position, EntryOutcome(entry_name=entry.name, status=EntryStatus.SKIPPED))
                )
                continue
            work_queue.put((position, entry))

    def _work(
        self,
        source: ArchiveSource,
        work_queue: queue.Queue[Any],
        outcomes: queue.SimpleQueue[tuple[int, EntryOutcome]],
        date_added: str,
        worker_id: int,
    ) -> None:
        """Worker loop: process entries until the stop sentinel arrives."""
        while True:
            item = work_queue.get()
            if item is _STOP:
                return
            position, entry = item
            outcomes.put((position, self._process_entry(source, entry, date_added, worker_id)))

    def _process_entry(
        self,
        source: ArchiveSource,
        entry: ArchiveEntry,
        date_added: str,
        worker_id: int,
    ) -> EntryOutcome:
        """Run open, extract, and store for one entry."""
        stage = "open"
        try:
            data = source.read(entry)
            stage = "extract"
            book = extract_book(data)
            stage = "store"
            stored = self._store.upsert(
                replace(
                    book,
                    file_name=entry.name,
                    size=len(data),
                    archive_path=source.path,
                    date_added=date_added,
                )
            )
            self._logger.info(
                "entry_stored",
                entry_name=entry.name,
                book_id=stored.book_id,
                title=stored.title,
                worker_id=worker_id,
            )
        # Failures stay confined to their entry; siblings and the producer continue.
        except Exception as error:
            self._logger.warning(
                "entry_failed",
                entry_name=entry.name,
                stage=stage,
                error=str(error),
                error_type=type(error).__name__,
                worker_id=worker_id,
            )
            return EntryOutcome(
                entry_name=entry.name,
                status=EntryStatus.FAILED,
                stage=stage,
                detail=str(error),
            )
        return EntryOutcome(
            entry_name=entry.name,
            status=EntryStatus.STORED,
            book_id=stored.book_id,
        )


def ingest_archive(
    archive_path: str | Path,
    store: BookSink,
    options: PipelineOptions | None = None,
    logger: Any = None,
) -> IngestSummary:
    """Run one ingest batch over an archive.

    Args:
        archive_path: Archive file path.
        store: Target book store.
        options: Optional pipeline options.
        logger: Optional structured logger.

    Returns:
        Batch outcome summary.

    Raises:
        ShelfArchiveError: If the archive cannot be opened.
        ShelfConfigError: If options are invalid.
    """
    return IngestPipeline(store, options, logger).run(archive_path)


def _validate_options(options: PipelineOptions) -> None:
    if options.workers < 1:
        raise ShelfConfigError(
            f"Invalid worker count {options.workers}: expected value >= 1."
        )
    if options.queue_size < 0:
        raise ShelfConfigError(
            f"Invalid queue size {options.queue_size}: expected value >= 0 (0 is unbounded)."
        )
    if not options.suffixes:
        raise ShelfConfigError("No recognized suffixes configured: provide at least one.")


def _build_summary(
    archive_path: str,
    outcomes: queue.SimpleQueue[tuple[int, EntryOutcome]],
) -> IngestSummary:
    """Drain collected outcomes once all workers have joined."""
    collected: list[tuple[int, EntryOutcome]] = []
    while not outcomes.empty():
        collected.append(outcomes.get())
    collected.sort(key=lambda item: item[0])
    return IngestSummary(
        archive_path=archive_path,
        outcomes=tuple(outcome for _, outcome in collected),
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)

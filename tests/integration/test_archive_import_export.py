"""Integration tests for archive import and Hugo export."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from core.types import BookRecord, EntryStatus, PipelineOptions
from ingest.archive_source import open_archive
from ingest.fb2_extractor import extract_book
from ingest.pipeline import IngestPipeline
from store.book_store import BookStore
from store.hugo_export import export_hugo_site
from tests.fb2_samples import RecordingLogger, build_zip, fb2_document

_FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _pipeline(store: BookStore, **options: object) -> IngestPipeline:
    return IngestPipeline(
        store,
        PipelineOptions(**options),  # type: ignore[arg-type]
        logger=RecordingLogger(),
        clock=lambda: _FIXED_TIME,
    )


def _without_ids(books: list[BookRecord]) -> list[BookRecord]:
    return sorted((replace(book, book_id=None) for book in books), key=lambda book: book.file_name)


def _scenario_archive(tmp_path: Path) -> Path:
    return build_zip(
        tmp_path / "scenario.zip",
        {
            "a.doc": fb2_document(title="Foo"),
            "b.doc": fb2_document(title=None),
            "c.txt": b"not a document",
        },
    )


def test_scenario_archive_stores_one_book(tmp_path: Path) -> None:
    """Well-formed, untitled, and foreign entries should store, fail, and skip."""
    with BookStore(tmp_path / "library.db") as store:
        summary = _pipeline(store, suffixes=(".doc",)).run(_scenario_archive(tmp_path))
        books = store.list_all()

    statuses = {item.entry_name: item.status for item in summary.outcomes}
    assert statuses == {
        "a.doc": EntryStatus.STORED,
        "b.doc": EntryStatus.FAILED,
        "c.txt": EntryStatus.SKIPPED,
    }
    assert [(book.file_name, book.title) for book in books] == [("a.doc", "Foo")]


def test_rerunning_scenario_keeps_single_row(tmp_path: Path) -> None:
    """A second batch over the same archive should not add rows."""
    archive_path = _scenario_archive(tmp_path)
    with BookStore(tmp_path / "library.db") as store:
        _pipeline(store, suffixes=(".doc",)).run(archive_path)
        first_run = store.list_all()
        _pipeline(store, suffixes=(".doc",)).run(archive_path)
        second_run = store.list_all()

    assert first_run == second_run
    assert [book.file_name for book in second_run] == ["a.doc"]


def test_changed_entry_updates_row_in_place(tmp_path: Path) -> None:
    """New bytes under an existing entry name should update that row."""
    first_archive = build_zip(
        tmp_path / "v1.zip",
        {"a.fb2": fb2_document(title="Draft"), "b.fb2": fb2_document(title="Other")},
    )
    second_archive = build_zip(tmp_path / "v2.zip", {"a.fb2": fb2_document(title="Final")})
    with BookStore(tmp_path / "library.db") as store:
        _pipeline(store).run(first_archive)
        before = {book.file_name: book.book_id for book in store.list_all()}
        _pipeline(store).run(second_archive)
        after = store.list_all()

    assert len(after) == 2
    updated = next(book for book in after if book.file_name == "a.fb2")
    assert (updated.book_id, updated.title) == (before["a.fb2"], "Final")


def test_pipeline_end_state_matches_direct_upserts(tmp_path: Path) -> None:
    """Concurrent ingest should equal extracting and upserting each entry directly."""
    entries = {
        f"book-{index:02d}.fb2": fb2_document(title=f"Title {index}", genres=("sf", f"g{index}"))
        for index in range(25)
    }
    entries["broken.fb2"] = b"<FictionBook>"
    archive_path = build_zip(tmp_path / "books.zip", entries)

    with BookStore(tmp_path / "pipeline.db") as pipeline_store:
        _pipeline(pipeline_store, workers=4, queue_size=3).run(archive_path)
        pipeline_books = pipeline_store.list_all()

    with BookStore(tmp_path / "direct.db") as direct_store, open_archive(archive_path) as source:
        for entry in reversed(source.list_entries()):
            data = source.read(entry)
            if entry.name == "broken.fb2":
                continue
            direct_store.upsert(
                replace(
                    extract_book(data),
                    file_name=entry.name,
                    size=len(data),
                    archive_path=source.path,
                    date_added=_FIXED_TIME.isoformat(timespec="seconds"),
                )
            )
        direct_books = direct_store.list_all()

    assert len(pipeline_books) == 25
    assert _without_ids(pipeline_books) == _without_ids(direct_books)


def test_import_then_export_renders_every_book(tmp_path: Path) -> None:
    """Exported site should hold one bundle per stored book."""
    archive_path = build_zip(
        tmp_path / "books.zip",
        {
            "one.fb2": fb2_document(title="Same Title"),
            "two.fb2": fb2_document(title="Same Title", cover=b"\xff\xd8cover"),
        },
    )
    with BookStore(tmp_path / "library.db") as store:
        _pipeline(store, workers=2).run(archive_path)
        result = export_hugo_site(store.list_all(), tmp_path / "site")

    assert len({path.parent for path in result.page_paths}) == 2
    assert len(result.cover_paths) == 1

"""Unit tests for FictionBook metadata extraction."""

from __future__ import annotations

import pytest

from core.errors import ShelfExtractionError
from ingest.fb2_extractor import extract_book
from tests.fb2_samples import fb2_document


def test_extract_book_reads_title_info_fields() -> None:
    """Extractor should map title-info children onto the record."""
    data = fb2_document(
        title="  Foo  ",
        authors=(("Ada", "Lovelace"), ("Charles", "Babbage")),
        genres=("sf", "history"),
        lang="en",
        annotation=("First paragraph.", "Second paragraph."),
    )

    book = extract_book(data)

    assert book.title == "Foo"
    assert book.authors == ("Ada Lovelace", "Charles Babbage")
    assert book.genres == ("sf", "history")
    assert book.language == "en"
    assert book.annotation == "First paragraph.\n\nSecond paragraph."


def test_extract_book_leaves_archive_fields_unset() -> None:
    """Archive-level fields belong to the pipeline, not the extractor."""
    book = extract_book(fb2_document())

    assert (book.file_name, book.book_id, book.archive_path) == ("", None, "")


def test_extract_book_reads_series_tags_and_cover() -> None:
    """Extractor should resolve sequence, keywords, and the embedded cover."""
    data = fb2_document(
        keywords="space, robots ,",
        sequence=("Foundation", "2"),
        cover=b"\xff\xd8jpeg-bytes",
    )

    book = extract_book(data)

    assert book.tags == ("space", "robots")
    assert (book.series, book.series_number) == ("Foundation", 2)
    assert book.cover_data == b"\xff\xd8jpeg-bytes"
    assert book.cover_content_type == "image/jpeg"


def test_extract_book_ignores_invalid_sequence_number() -> None:
    """Non-numeric sequence positions should become None."""
    book = extract_book(fb2_document(sequence=("Saga", "first")))

    assert (book.series, book.series_number) == ("Saga", None)


def test_extract_book_handles_documents_without_namespace() -> None:
    """Plain FictionBook markup without a namespace should still parse."""
    data = (
        b"<FictionBook><description><title-info>"
        b"<author><nickname>anon</nickname></author>"
        b"<book-title>Plain</book-title>"
        b"</title-info></description></FictionBook>"
    )

    book = extract_book(data)

    assert (book.title, book.authors) == ("Plain", ("anon",))


def test_extract_book_decodes_declared_encoding() -> None:
    """Documents declaring windows-1251 should decode Cyrillic titles."""
    data = fb2_document(title="Война и мир", encoding="windows-1251")

    book = extract_book(data)

    assert book.title == "Война и мир"


@pytest.mark.parametrize("title", [None, "", "   \n\t "])
def test_extract_book_rejects_missing_or_blank_title(title: str | None) -> None:
    """A missing or whitespace-only title should fail extraction."""
    with pytest.raises(ShelfExtractionError) as error_info:
        extract_book(fb2_document(title=title))

    assert error_info.value.reason == "missing_title"


def test_extract_book_rejects_malformed_xml() -> None:
    """Unparseable bytes should fail as malformed."""
    with pytest.raises(ShelfExtractionError) as error_info:
        extract_book(b"<FictionBook><description>")

    assert error_info.value.reason == "malformed"


def test_extract_book_rejects_foreign_root_element() -> None:
    """Well-formed XML with a non-FictionBook root should fail as malformed."""
    with pytest.raises(ShelfExtractionError) as error_info:
        extract_book(b"<html><body>not a book</body></html>")

    assert error_info.value.reason == "malformed"


def test_extract_book_drops_undecodable_cover() -> None:
    """Broken base64 cover payloads should yield a record without a cover."""
    data = fb2_document(cover=b"img").replace(b"aW1n", b"!!!!")

    book = extract_book(data)

    assert book.cover_data is None

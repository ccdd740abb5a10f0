"""Unit tests for the public SDK client."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from core.errors import ShelfStoreError
from fb2shelf import PipelineOptions, ShelfClient, ShelfConfig
from tests.fb2_samples import build_zip, fb2_document


def _client(tmp_path: Path) -> ShelfClient:
    config = replace(ShelfConfig.from_env(), data_root=tmp_path / "data")
    return ShelfClient(config)


def test_client_import_then_books(tmp_path: Path) -> None:
    """Imported books should be readable through the client."""
    archive_path = build_zip(tmp_path / "books.zip", {"a.fb2": fb2_document(title="Foo")})
    client = _client(tmp_path)

    summary = client.import_archive(str(archive_path), PipelineOptions(workers=2))
    titles = [book.title for book in client.books()]
    client.close()

    assert (summary.stored, titles) == (1, ["Foo"])


def test_client_export_writes_site(tmp_path: Path) -> None:
    """Client export should render stored books into the site directory."""
    archive_path = build_zip(tmp_path / "books.zip", {"a.fb2": fb2_document(title="Foo")})
    client = _client(tmp_path)
    client.import_archive(str(archive_path))

    result = client.export(str(tmp_path / "site"))
    client.close()

    assert [path.parent.name for path in result.page_paths] == ["foo_1"]


def test_with_data_root_uses_separate_store(tmp_path: Path) -> None:
    """Moving to a new data root should point at an empty library."""
    archive_path = build_zip(tmp_path / "books.zip", {"a.fb2": fb2_document()})
    client = _client(tmp_path)
    client.import_archive(str(archive_path))

    other = client.with_data_root(str(tmp_path / "other"))
    books = other.books()
    other.close()

    assert books == []


def test_with_data_root_closes_previous_store(tmp_path: Path) -> None:
    """The original client's store connection should be released."""
    client = _client(tmp_path)

    other = client.with_data_root(str(tmp_path / "other"))
    other.close()

    with pytest.raises(ShelfStoreError):
        client.books()

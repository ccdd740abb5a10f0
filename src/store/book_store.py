"""SQLite-backed book store.

Rows are keyed by store-assigned ``book_id`` and unique by ``file_name``,
the originating archive entry name. Re-ingesting an entry name updates the
existing row in place, so rerunning a batch never duplicates books.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import sqlite_utils

from core.constants import BOOKS_TABLE_NAME
from core.errors import ShelfStoreError
from core.logging_config import get_logger
from core.types import BookRecord

_LOGGER = get_logger(__name__)

_COLUMNS: dict[str, Any] = {
    "book_id": int,
    "title": str,
    "authors": str,
    "genres": str,
    "language": str,
    "annotation": str,
    "cover_data": bytes,
    "cover_content_type": str,
    "file_name": str,
    "tags": str,
    "series": str,
    "series_number": int,
    "size": int,
    "archive_path": str,
    "date_added": str,
}
_UPDATABLE_COLUMNS = tuple(name for name in _COLUMNS if name not in ("book_id", "file_name"))
_INSERT_COLUMNS = tuple(name for name in _COLUMNS if name != "book_id")
_UPSERT_SQL = (
    f"INSERT INTO {BOOKS_TABLE_NAME} ({', '.join(_INSERT_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _INSERT_COLUMNS)}) "
    "ON CONFLICT(file_name) DO UPDATE SET "
    + ", ".join(f"{name} = excluded.{name}" for name in _UPDATABLE_COLUMNS)
)


class BookStore:
    """Book persistence with upsert-by-entry-name semantics.

    One SQLite connection is shared by all callers and guarded by a lock,
    so ingest workers may upsert concurrently without coordinating.
    """

    def __init__(self, db_path: Path | str, logger: Any = None) -> None:
        """Open or create the library database.

        Args:
            db_path: SQLite file path; parent directories are created.
            logger: Structured logger; defaults to the module logger.

        Raises:
            ShelfStoreError: If the database cannot be opened or migrated.
        """
        self._path = Path(db_path)
        self._logger = logger or _LOGGER
        self._lock = threading.Lock()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(self._path), check_same_thread=False)
            self._db = sqlite_utils.Database(connection)
            _create_schema(self._db)
        except (sqlite3.Error, OSError) as error:
            raise ShelfStoreError(
                f"Failed to open book store at {self._path}: {error}. "
                "Check the data root path and file permissions."
            ) from error

    @property
    def path(self) -> Path:
        return self._path

    def upsert(self, record: BookRecord) -> BookRecord:
        """Insert a book or overwrite the row with the same file name.

        Args:
            record: Book record with ``file_name`` set.

        Returns:
            The record with its store-assigned ``book_id``.

        Raises:
            ShelfStoreError: If the record has no key, has a blank title,
                or the write fails.
        """
        if not record.file_name:
            raise ShelfStoreError(
                f"Cannot store book '{record.title}' without a file name key."
            )
        if not record.title.strip():
            raise ShelfStoreError(
                f"Cannot store book '{record.file_name}' with a blank title."
            )
        with self._lock:
            try:
                with self._db.conn:
                    previous_archive = self._archive_path_for(record.file_name)
                    self._db.execute(_UPSERT_SQL, _record_to_params(record))
                book_id = self._book_id_for(record.file_name)
            except sqlite3.Error as error:
                raise ShelfStoreError(
                    f"Failed to upsert book '{record.file_name}' into {self._path}: {error}."
                ) from error
        if previous_archive is not None and previous_archive != record.archive_path:
            self._logger.warning(
                "book_replaced",
                file_name=record.file_name,
                book_id=book_id,
                previous_archive=previous_archive,
                archive_path=record.archive_path,
            )
        return replace(record, book_id=book_id)

    def list_all(self) -> list[BookRecord]:
        """Return every stored book ordered by ``book_id``.

        Raises:
            ShelfStoreError: If the read fails or a row cannot be decoded.
        """
        with self._lock:
            try:
                rows = list(self._db[BOOKS_TABLE_NAME].rows_where(order_by="book_id"))
            except sqlite3.Error as error:
                raise ShelfStoreError(
                    f"Failed to read books from {self._path}: {error}."
                ) from error
        return [_record_from_row(row) for row in rows]

    def count(self) -> int:
        """Return the number of stored books.

        Raises:
            ShelfStoreError: If the read fails.
        """
        with self._lock:
            try:
                return self._db[BOOKS_TABLE_NAME].count
            except sqlite3.Error as error:
                raise ShelfStoreError(
                    f"Failed to count books in {self._path}: {error}."
                ) from error

    def close(self) -> None:
        with self._lock:
            self._db.conn.close()

    def __enter__(self) -> "BookStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _archive_path_for(self, file_name: str) -> str | None:
        rows = list(
            self._db.query(
                f"SELECT archive_path FROM {BOOKS_TABLE_NAME} WHERE file_name = ?",
                [file_name],
            )
        )
        return str(rows[0]["archive_path"] or "") if rows else None

    def _book_id_for(self, file_name: str) -> int:
        rows = list(
            self._db.query(
                f"SELECT book_id FROM {BOOKS_TABLE_NAME} WHERE file_name = ?",
                [file_name],
            )
        )
        return int(rows[0]["book_id"])


def _create_schema(db: sqlite_utils.Database) -> None:
    """Create the books table and its unique file-name index."""
    table = db[BOOKS_TABLE_NAME]
    table.create(_COLUMNS, pk="book_id", not_null={"title", "file_name"}, if_not_exists=True)
    table.create_index(["file_name"], unique=True, if_not_exists=True)


def _record_to_params(record: BookRecord) -> list[object]:
    """Serialize a record into positional upsert parameters."""
    payload: dict[str, object] = {
        "title": record.title,
        "authors": _dump_list(record.authors),
        "genres": _dump_list(record.genres),
        "language": record.language,
        "annotation": record.annotation,
        "cover_data": record.cover_data,
        "cover_content_type": record.cover_content_type,
        "file_name": record.file_name,
        "tags": _dump_list(record.tags),
        "series": record.series,
        "series_number": record.series_number,
        "size": record.size,
        "archive_path": record.archive_path,
        "date_added": record.date_added,
    }
    return [payload[name] for name in _INSERT_COLUMNS]


def _record_from_row(row: Mapping[str, Any]) -> BookRecord:
    """Deserialize one database row.

    Raises:
        ShelfStoreError: If a list column holds invalid JSON.
    """
    return BookRecord(
        book_id=int(row["book_id"]),
        title=str(row["title"]),
        authors=_load_list(row, "authors"),
        genres=_load_list(row, "genres"),
        language=str(row["language"] or ""),
        annotation=str(row["annotation"] or ""),
        cover_data=bytes(row["cover_data"]) if row["cover_data"] is not None else None,
        cover_content_type=row["cover_content_type"],
        file_name=str(row["file_name"]),
        tags=_load_list(row, "tags"),
        series=row["series"],
        series_number=int(row["series_number"]) if row["series_number"] is not None else None,
        size=int(row["size"] or 0),
        archive_path=str(row["archive_path"] or ""),
        date_added=str(row["date_added"] or ""),
    )


def _dump_list(values: tuple[str, ...]) -> str:
    return json.dumps(list(values), ensure_ascii=False)


def _load_list(row: Mapping[str, Any], column: str) -> tuple[str, ...]:
    raw_value = row[column]
    if not raw_value:
        return ()
    try:
        values = json.loads(raw_value)
    except json.JSONDecodeError as error:
        raise ShelfStoreError(
            f"Failed to decode column '{column}' for book {row['book_id']}: {error.msg}. "
            "Re-import the archive to rewrite the row."
        ) from error
    return tuple(str(value) for value in values)

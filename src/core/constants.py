"""Core constants used across fb2shelf modules.

This module centralizes defaults and literal names.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".fb2shelf")
DATABASE_FILE_NAME = "library.db"
BOOKS_TABLE_NAME = "books"
DEFAULT_WORKER_COUNT = 4
DEFAULT_QUEUE_SIZE = 8
RECOGNIZED_SUFFIXES = (".fb2",)
ZIP_ARCHIVE_SUFFIX = ".zip"
FICTION_BOOK_ROOT = "FictionBook"
HUGO_CONTENT_DIR_NAME = "content"
HUGO_SECTION_NAME = "books"
HUGO_INDEX_FILE_NAME = "index.md"
COVER_FILE_STEM = "cover"
DEFAULT_COVER_EXTENSION = ".bin"
DEFAULT_SLUG = "book"

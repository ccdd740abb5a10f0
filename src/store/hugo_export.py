"""Hugo site export for stored books.

This module renders each book as a Hugo page bundle:
``content/books/<slug>_<book_id>/index.md`` with YAML front matter,
plus the cover image when the book embeds one.
"""

from __future__ import annotations

import mimetypes
import re
from pathlib import Path
from typing import Iterable

import yaml

from core.constants import (
    COVER_FILE_STEM,
    DEFAULT_COVER_EXTENSION,
    DEFAULT_SLUG,
    HUGO_CONTENT_DIR_NAME,
    HUGO_INDEX_FILE_NAME,
    HUGO_SECTION_NAME,
)
from core.errors import ShelfExportError
from core.logging_config import get_logger
from core.types import BookRecord, ExportResult

_LOGGER = get_logger(__name__)
_WHITESPACE = re.compile(r"\s+")
_UNSAFE_CHARS = re.compile(r"[^\w-]")
_COVER_EXTENSIONS = {"image/jpeg": ".jpg", "image/jpg": ".jpg", "image/png": ".png"}


def export_hugo_site(records: Iterable[BookRecord], output_dir: str | Path) -> ExportResult:
    """Write one Hugo page bundle per stored book.

    Args:
        records: Stored books; each must carry a ``book_id``.
        output_dir: Hugo site root; ``content/books`` is created under it.

    Returns:
        Paths of written pages and covers.

    Raises:
        ShelfExportError: If a record is unpersisted or a file write fails.
    """
    site_root = Path(output_dir).expanduser().resolve()
    section_dir = site_root / HUGO_CONTENT_DIR_NAME / HUGO_SECTION_NAME
    page_paths: list[Path] = []
    cover_paths: list[Path] = []
    try:
        section_dir.mkdir(parents=True, exist_ok=True)
        for record in records:
            bundle_dir = section_dir / bundle_name(record)
            bundle_dir.mkdir(parents=True, exist_ok=True)
            cover_name = _write_cover(bundle_dir, record, cover_paths)
            page_path = bundle_dir / HUGO_INDEX_FILE_NAME
            page_path.write_text(render_page(record, cover_name), encoding="utf-8")
            page_paths.append(page_path)
    except OSError as error:
        raise ShelfExportError(
            f"Failed to write Hugo content under {section_dir}: {error}. "
            "Check the output directory path and permissions."
        ) from error
    _LOGGER.info(
        "site_exported",
        output_dir=str(site_root),
        page_count=len(page_paths),
        cover_count=len(cover_paths),
    )
    return ExportResult(
        output_dir=site_root,
        page_paths=tuple(page_paths),
        cover_paths=tuple(cover_paths),
    )


def bundle_name(record: BookRecord) -> str:
    """Return ``<slug>_<book_id>``, unique even for identical titles.

    Raises:
        ShelfExportError: If the record has not been stored yet.
    """
    if record.book_id is None:
        raise ShelfExportError(
            f"Cannot export book '{record.title}' without a store id. "
            "Export records read back from the book store."
        )
    return f"{safe_file_name(record.title)}_{record.book_id}"


def safe_file_name(title: str) -> str:
    """Render a title as a lowercase, filesystem-safe slug."""
    slug = _WHITESPACE.sub("-", title.strip().lower())
    slug = _UNSAFE_CHARS.sub("", slug).strip("-")
    return slug or DEFAULT_SLUG


def render_page(record: BookRecord, cover_name: str | None = None) -> str:
    """Render front matter followed by the cover reference and annotation."""
    front_matter = {
        "title": record.title,
        "authors": list(record.authors),
        "genres": list(record.genres),
        "language": record.language,
        "annotation": record.annotation,
        "cover": cover_name or "",
        "file_name": record.file_name,
        "tags": list(record.tags),
        "series": record.series or "",
        "series_number": record.series_number,
        "draft": False,
    }
    header = yaml.safe_dump(front_matter, allow_unicode=True, sort_keys=False)
    sections = [f"---\n{header}---\n"]
    if cover_name:
        sections.append(f"![Cover image]({cover_name})\n")
    if record.annotation:
        sections.append(f"{record.annotation}\n")
    return "\n".join(sections)


def _write_cover(
    bundle_dir: Path,
    record: BookRecord,
    cover_paths: list[Path],
) -> str | None:
    if not record.cover_data:
        return None
    cover_path = bundle_dir / f"{COVER_FILE_STEM}{_cover_extension(record.cover_content_type)}"
    cover_path.write_bytes(record.cover_data)
    cover_paths.append(cover_path)
    return cover_path.name


def _cover_extension(content_type: str | None) -> str:
    if not content_type:
        return DEFAULT_COVER_EXTENSION
    normalized = content_type.strip().lower()
    if normalized in _COVER_EXTENSIONS:
        return _COVER_EXTENSIONS[normalized]
    return mimetypes.guess_extension(normalized) or DEFAULT_COVER_EXTENSION

"""FictionBook 2 metadata extraction.

This module turns raw ``.fb2`` bytes into a typed book record.
Extraction is pure: no I/O and no shared state, so worker threads
call it concurrently without locking.
"""

from __future__ import annotations

import base64
import binascii

from lxml import etree

from core.constants import FICTION_BOOK_ROOT
from core.errors import ShelfExtractionError
from core.types import BookRecord

_Element = etree._Element


def extract_book(data: bytes) -> BookRecord:
    """Parse FictionBook bytes into a book record.

    Args:
        data: Raw document bytes, in any encoding the XML prolog declares.

    Returns:
        Book record without archive-level fields.

    Raises:
        ShelfExtractionError: If the document is malformed or has no title.
    """
    root = _parse_document(data)
    title_info = _find_path(root, ("description", "title-info"))
    title = _child_text(title_info, "book-title")
    if not title:
        raise ShelfExtractionError(
            "Missing book title: description/title-info/book-title is absent or blank.",
            reason="missing_title",
        )
    cover_data, cover_type = _extract_cover(root, title_info)
    series, series_number = _extract_sequence(title_info)
    return BookRecord(
        title=title,
        authors=_extract_authors(title_info),
        genres=_child_texts(title_info, "genre"),
        language=_child_text(title_info, "lang"),
        annotation=_extract_annotation(title_info),
        cover_data=cover_data,
        cover_content_type=cover_type,
        tags=_extract_tags(title_info),
        series=series,
        series_number=series_number,
    )


def _parse_document(data: bytes) -> _Element:
    """Parse XML with a hardened parser and check the root element."""
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(data, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as error:
        raise ShelfExtractionError(
            f"Malformed FictionBook XML: {error}", reason="malformed"
        ) from error
    if root is None or _local_name(root) != FICTION_BOOK_ROOT:
        found = _local_name(root) if root is not None else "nothing"
        raise ShelfExtractionError(
            f"Malformed FictionBook XML: expected <{FICTION_BOOK_ROOT}> root, found <{found}>.",
            reason="malformed",
        )
    return root


def _local_name(element: _Element) -> str:
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def _children(element: _Element | None, name: str) -> list[_Element]:
    """Return direct children matching a local name, ignoring namespaces."""
    if element is None:
        return []
    return [child for child in element if _local_name(child) == name]


def _find_child(element: _Element | None, name: str) -> _Element | None:
    matches = _children(element, name)
    return matches[0] if matches else None


def _find_path(element: _Element | None, names: tuple[str, ...]) -> _Element | None:
    for name in names:
        element = _find_child(element, name)
    return element


def _text_of(element: _Element | None) -> str:
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def _child_text(element: _Element | None, name: str) -> str:
    return _text_of(_find_child(element, name))


def _child_texts(element: _Element | None, name: str) -> tuple[str, ...]:
    texts = (_text_of(child) for child in _children(element, name))
    return tuple(text for text in texts if text)


def _extract_authors(title_info: _Element | None) -> tuple[str, ...]:
    """Compose author display names from name parts or nickname."""
    authors: list[str] = []
    for author in _children(title_info, "author"):
        parts = [
            _child_text(author, part)
            for part in ("first-name", "middle-name", "last-name")
        ]
        full_name = " ".join(part for part in parts if part)
        if not full_name:
            full_name = _child_text(author, "nickname")
        if full_name:
            authors.append(full_name)
    return tuple(authors)


def _extract_annotation(title_info: _Element | None) -> str:
    """Flatten annotation paragraphs into blank-line separated text."""
    annotation = _find_child(title_info, "annotation")
    if annotation is None:
        return ""
    paragraphs = [_text_of(child) for child in annotation if isinstance(child.tag, str)]
    paragraphs = [paragraph for paragraph in paragraphs if paragraph]
    if not paragraphs:
        return _text_of(annotation)
    return "\n\n".join(paragraphs)


def _extract_tags(title_info: _Element | None) -> tuple[str, ...]:
    keywords = _child_text(title_info, "keywords")
    return tuple(tag.strip() for tag in keywords.split(",") if tag.strip())


def _extract_sequence(title_info: _Element | None) -> tuple[str | None, int | None]:
    sequence = _find_child(title_info, "sequence")
    if sequence is None:
        return None, None
    name = (sequence.get("name") or "").strip() or None
    try:
        number = int((sequence.get("number") or "").strip())
    except ValueError:
        number = None
    return name, number


def _extract_cover(
    root: _Element,
    title_info: _Element | None,
) -> tuple[bytes | None, str | None]:
    """Resolve the coverpage image reference against embedded binaries.

    Returns:
        Pair of decoded image bytes and content type, or ``(None, None)``
        when no cover is referenced or its payload cannot be decoded.
    """
    image = _find_path(title_info, ("coverpage", "image"))
    if image is None:
        return None, None
    href = _href_of(image).lstrip("#")
    if not href:
        return None, None
    for binary in _children(root, "binary"):
        if binary.get("id") != href:
            continue
        payload = "".join((binary.text or "").split())
        try:
            return base64.b64decode(payload, validate=True), binary.get("content-type")
        except (binascii.Error, ValueError):
            return None, None
    return None, None


def _href_of(element: _Element) -> str:
    """Return the ``href`` attribute under any namespace prefix."""
    for key, value in element.attrib.items():
        if etree.QName(key).localname == "href":
            return str(value)
    return ""

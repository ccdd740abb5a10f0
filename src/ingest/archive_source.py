"""Archive sources for batch ingest.

This module enumerates files inside a compressed container and reads
them on demand. Zip files use ``zipfile``; 7z, tar, and every other
format libarchive understands go through ``libarchive-c``.
"""

from __future__ import annotations

import io
import threading
import zipfile
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Protocol

from core.constants import ZIP_ARCHIVE_SUFFIX
from core.errors import ShelfArchiveError, ShelfDependencyError, ShelfEntryError
from core.types import ArchiveEntry

_ZIP_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    OSError,
    RuntimeError,
    NotImplementedError,
)


class ArchiveSource(Protocol):
    """Read-only view over one open archive."""

    @property
    def path(self) -> str: ...

    def list_entries(self) -> list[ArchiveEntry]: ...

    def open(self, entry: ArchiveEntry) -> BinaryIO: ...

    def read(self, entry: ArchiveEntry) -> bytes: ...


@contextmanager
def open_archive(archive_path: str | Path) -> Iterator[ArchiveSource]:
    """Open an archive for the duration of a batch.

    Args:
        archive_path: Path to a zip, 7z, tar, or other supported archive.

    Yields:
        Archive source bound to the open container.

    Raises:
        ShelfArchiveError: If the container cannot be opened or listed.
    """
    path = Path(archive_path).expanduser()
    if not path.is_file():
        raise ShelfArchiveError(
            f"Failed to open archive at {path}: file does not exist. "
            "Provide the path of an existing archive."
        )
    if path.suffix.lower() == ZIP_ARCHIVE_SUFFIX:
        source: ZipArchiveSource | LibarchiveSource = ZipArchiveSource(path)
    else:
        source = LibarchiveSource(path)
    try:
        yield source
    finally:
        source.close()


class ZipArchiveSource:
    """Zip archive source sharing one ``ZipFile`` handle across readers.

    The lock only covers opening and closing member streams. Decompression
    runs in parallel because ``zipfile`` positions the shared file under its
    own lock for every chunk it reads.
    """

    def __init__(self, archive_path: Path) -> None:
        self._path = archive_path
        self._lock = threading.Lock()
        try:
            self._zip = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as error:
            raise ShelfArchiveError(
                f"Failed to open zip archive at {archive_path}: {error}. "
                "Check that the file is a complete, valid zip archive."
            ) from error

    @property
    def path(self) -> str:
        return str(self._path)

    def list_entries(self) -> list[ArchiveEntry]:
        """Return regular file entries in archive order."""
        return [
            ArchiveEntry(name=info.filename, size=info.file_size)
            for info in self._zip.infolist()
            if not info.is_dir()
        ]

    def open(self, entry: ArchiveEntry) -> BinaryIO:
        """Open one entry as a binary stream.

        Raises:
            ShelfEntryError: If the entry is missing or cannot be opened.
        """
        with self._lock:
            try:
                return self._zip.open(entry.name)
            except KeyError as error:
                raise ShelfEntryError(
                    f"Entry '{entry.name}' not found in {self._path}."
                ) from error
            except _ZIP_READ_ERRORS as error:
                raise ShelfEntryError(
                    f"Failed to open entry '{entry.name}' in {self._path}: {error}."
                ) from error

    def read(self, entry: ArchiveEntry) -> bytes:
        """Read one entry's full contents.

        Raises:
            ShelfEntryError: If the entry is corrupt or unreadable.
        """
        stream = self.open(entry)
        try:
            return stream.read()
        except _ZIP_READ_ERRORS as error:
            raise ShelfEntryError(
                f"Failed to read entry '{entry.name}' in {self._path}: {error}."
            ) from error
        finally:
            # Closing updates the shared handle's reference count.
            with self._lock:
                stream.close()

    def close(self) -> None:
        self._zip.close()


class LibarchiveSource:
    """Archive source for formats handled by libarchive.

    libarchive only streams entries sequentially, so every read walks
    the container with its own private reader. Concurrent reads never
    share decoder state.
    """

    def __init__(self, archive_path: Path) -> None:
        self._path = archive_path
        self._libarchive = _import_libarchive()
        self._entries = self._scan_entries()

    @property
    def path(self) -> str:
        return str(self._path)

    def list_entries(self) -> list[ArchiveEntry]:
        """Return regular file entries in archive order."""
        return list(self._entries)

    def open(self, entry: ArchiveEntry) -> BinaryIO:
        """Open one entry as an in-memory binary stream."""
        return io.BytesIO(self.read(entry))

    def read(self, entry: ArchiveEntry) -> bytes:
        """Read one entry's full contents.

        Raises:
            ShelfEntryError: If the entry is missing, corrupt, or unreadable.
        """
        try:
            with self._libarchive.file_reader(str(self._path)) as archive:
                for item in archive:
                    if item.pathname == entry.name and item.isfile:
                        return b"".join(item.get_blocks())
        except self._libarchive.ArchiveError as error:
            raise ShelfEntryError(
                f"Failed to read entry '{entry.name}' in {self._path}: {error}."
            ) from error
        raise ShelfEntryError(f"Entry '{entry.name}' not found in {self._path}.")

    def close(self) -> None:
        """Nothing to release; readers are scoped to each call."""

    def _scan_entries(self) -> list[ArchiveEntry]:
        """List regular files with one header-only pass."""
        try:
            with self._libarchive.file_reader(str(self._path)) as archive:
                return [
                    ArchiveEntry(name=item.pathname, size=int(item.size or 0))
                    for item in archive
                    if item.isfile
                ]
        except self._libarchive.ArchiveError as error:
            raise ShelfArchiveError(
                f"Failed to open archive at {self._path}: {error}. "
                "Check that the file is a complete archive in a supported format."
            ) from error


def _import_libarchive() -> Any:
    """Import libarchive-c lazily.

    Raises:
        ShelfDependencyError: If libarchive-c or the native library is missing.
    """
    try:
        import libarchive
    except (ImportError, OSError) as error:
        raise ShelfDependencyError(
            "Reading non-zip archives requires libarchive-c and the libarchive "
            "system library. Install both to ingest 7z or tar archives."
        ) from error
    return libarchive

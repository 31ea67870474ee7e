"""Archive access abstraction.

Provides a narrow interface over an EPUB container:
- Entry listing (archive order, names as stored)
- Read-by-name

ZipArchive wraps a real zip file and applies the archive safety gate when it
is opened. FakeArchive keeps entries in memory for tests.
"""

import io
import os
import threading
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO

from epubkit.config import get_settings
from epubkit.errors import ArchiveIoError, EpubErrorCode, FormatError
from epubkit.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ArchiveSafetyLimits:
    max_entries: int
    max_total_uncompressed_bytes: int
    max_single_entry_uncompressed_bytes: int
    max_compression_ratio: int

    @classmethod
    def from_settings(cls) -> "ArchiveSafetyLimits":
        settings = get_settings()
        return cls(
            max_entries=settings.max_archive_entries,
            max_total_uncompressed_bytes=settings.max_archive_total_uncompressed_bytes,
            max_single_entry_uncompressed_bytes=settings.max_archive_single_entry_uncompressed_bytes,
            max_compression_ratio=settings.max_archive_compression_ratio,
        )


class ArchiveBase(ABC):
    """Abstract base class for archive implementations."""

    name: str = "<archive>"

    @abstractmethod
    def list_entries(self) -> list[str]:
        """List entry names in archive order.

        Returns:
            Entry names exactly as stored (case preserved).
        """
        ...

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read an entry's bytes.

        Args:
            path: Entry name exactly as listed.

        Returns:
            Entry content.

        Raises:
            ArchiveIoError: If the entry is missing or cannot be read.
        """
        ...

    def close(self) -> None:
        """Release underlying resources (no-op by default)."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ZipArchive(ArchiveBase):
    """Zip-backed archive.

    Reads are serialized through a lock so one archive can serve concurrent
    document requests.
    """

    def __init__(
        self,
        source: str | os.PathLike | bytes | BinaryIO,
        *,
        limits: ArchiveSafetyLimits | None = None,
    ):
        """Open the archive and run the safety gate.

        Args:
            source: Filesystem path, raw bytes, or a binary file object.
            limits: Safety limits (defaults to the configured settings).

        Raises:
            ArchiveIoError: If the file is missing or not a zip archive.
            FormatError: If the archive fails the safety gate.
        """
        if isinstance(source, bytes):
            self.name = "<bytes>"
            fileobj: str | os.PathLike | BinaryIO = io.BytesIO(source)
        elif isinstance(source, (str, os.PathLike)):
            self.name = os.fspath(source)
            fileobj = source
        else:
            self.name = getattr(source, "name", "<stream>")
            fileobj = source

        try:
            self._zf = zipfile.ZipFile(fileobj)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveIoError(message=f"Invalid/missing file: {exc}") from exc

        self._lock = threading.Lock()
        self._closed = False
        self._names = [info.filename for info in self._zf.infolist() if not info.is_dir()]

        try:
            check_archive_safety(self._zf.infolist(), limits or ArchiveSafetyLimits.from_settings())
        except FormatError:
            self._zf.close()
            raise

    def list_entries(self) -> list[str]:
        return list(self._names)

    def read(self, path: str) -> bytes:
        with self._lock:
            if self._closed:
                raise ArchiveIoError(message=f"Archive is closed: {self.name}")
            try:
                return self._zf.read(path)
            except KeyError as exc:
                raise ArchiveIoError(message=f"Entry not in archive: {path}") from exc
            except (OSError, ValueError, zipfile.BadZipFile, RuntimeError) as exc:
                raise ArchiveIoError(message=f"Reading archive failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._zf.close()


class FakeArchive(ArchiveBase):
    """In-memory archive for testing without zip files.

    Stores entries in insertion order and provides deterministic behavior for
    unit tests.
    """

    def __init__(self, entries: dict[str, bytes | str] | None = None, name: str = "<fake>"):
        self.name = name
        self._entries: dict[str, bytes] = {}
        self._broken: set[str] = set()
        self.reads: list[str] = []
        for path, content in (entries or {}).items():
            self.put_entry(path, content)

    def list_entries(self) -> list[str]:
        return list(self._entries)

    def read(self, path: str) -> bytes:
        self.reads.append(path)
        if path in self._broken:
            raise ArchiveIoError(message=f"Reading archive failed: {path}")
        if path not in self._entries:
            raise ArchiveIoError(message=f"Entry not in archive: {path}")
        return self._entries[path]

    # Test helper methods

    def put_entry(self, path: str, content: bytes | str) -> None:
        """Store an entry directly (test helper)."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._entries[path] = content

    def break_entry(self, path: str) -> None:
        """Make reads of ``path`` fail with ArchiveIoError (test helper)."""
        self._broken.add(path)


def check_archive_safety(infos: list[zipfile.ZipInfo], limits: ArchiveSafetyLimits) -> None:
    """Reject archives that are too large, too compressed, or escape their root.

    Raises:
        FormatError: With code E_ARCHIVE_UNSAFE on the first violation.
    """
    if len(infos) > limits.max_entries:
        raise FormatError(
            EpubErrorCode.E_ARCHIVE_UNSAFE,
            f"Archive has {len(infos)} entries (limit {limits.max_entries})",
        )

    total_uncompressed = 0
    for info in infos:
        # path safety: reject absolute, traversal, drive-qualified
        name = info.filename
        if name.startswith("/") or name.startswith("\\"):
            raise FormatError(EpubErrorCode.E_ARCHIVE_UNSAFE, f"Absolute path in archive: {name}")
        if ".." in name.replace("\\", "/").split("/"):
            raise FormatError(EpubErrorCode.E_ARCHIVE_UNSAFE, f"Path traversal in archive: {name}")
        if len(name) > 1 and name[1] == ":":
            raise FormatError(
                EpubErrorCode.E_ARCHIVE_UNSAFE, f"Drive-qualified path in archive: {name}"
            )

        uncompressed = info.file_size
        compressed = info.compress_size

        if uncompressed > limits.max_single_entry_uncompressed_bytes:
            raise FormatError(
                EpubErrorCode.E_ARCHIVE_UNSAFE,
                f"Entry '{name}' uncompressed size {uncompressed} "
                f"exceeds limit {limits.max_single_entry_uncompressed_bytes}",
            )

        total_uncompressed += uncompressed

        if compressed > 0 and uncompressed / compressed > limits.max_compression_ratio:
            raise FormatError(
                EpubErrorCode.E_ARCHIVE_UNSAFE,
                f"Entry '{name}' compression ratio {uncompressed / compressed:.1f} "
                f"exceeds limit {limits.max_compression_ratio}",
            )

    if total_uncompressed > limits.max_total_uncompressed_bytes:
        logger.warning("epub_archive_too_large", total_uncompressed=total_uncompressed)
        raise FormatError(
            EpubErrorCode.E_ARCHIVE_UNSAFE,
            f"Total uncompressed {total_uncompressed} "
            f"exceeds limit {limits.max_total_uncompressed_bytes}",
        )

"""EPUB document model and parse pipeline.

open_epub() runs the stages strictly in order, each one consuming the output
of the previous one:

    container -> package -> navigation (only when the spine names an NCX)

Any failure aborts the parse; there is no partially built document. Once
built, an EpubDocument is read-only and its retrieval methods can be called
concurrently.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from types import MappingProxyType

from epubkit.archive.client import ArchiveBase, ZipArchive
from epubkit.archive.paths import find_entry
from epubkit.config import DEFAULT_IMAGE_ROOT, DEFAULT_LINK_ROOT, get_settings, normalize_root
from epubkit.errors import (
    ArgumentError,
    EpubErrorCode,
    EpubLookupError,
    MediaTypeError,
)
from epubkit.logging import (
    get_logger,
    reset_archive_context,
    reset_manifest_id,
    set_archive_context,
    set_manifest_id,
)
from epubkit.models import ManifestItem, Metadata, Spine, TocNode
from epubkit.services.container import locate_package_document
from epubkit.services.navigation import resolve_navigation
from epubkit.services.package import build_package
from epubkit.services.rewrite import rewrite_document

logger = get_logger(__name__)


class EpubDocument:
    """Parsed EPUB: metadata, manifest, spine and table of contents.

    Image and link URL format used by get_document() is:

        root + manifest_id + "/" + archive_path

    so an image "logo.jpg" stored at "OEBPS/logo.jpg" and listed with id
    "logo_img" becomes "/images/logo_img/OEBPS/logo.jpg".
    """

    def __init__(
        self,
        archive: ArchiveBase,
        *,
        package_path: str,
        version: str,
        metadata: Metadata,
        manifest: dict[str, ManifestItem],
        spine: Spine,
        toc: list[TocNode],
        image_root: str = DEFAULT_IMAGE_ROOT,
        link_root: str = DEFAULT_LINK_ROOT,
    ):
        self.archive = archive
        self.package_path = package_path
        self.version = version
        self.metadata = metadata
        self._manifest = manifest
        self.spine = spine
        self.toc = toc
        self.image_root = normalize_root(image_root, DEFAULT_IMAGE_ROOT)
        self.link_root = normalize_root(link_root, DEFAULT_LINK_ROOT)

    @property
    def manifest(self) -> Mapping[str, ManifestItem]:
        return MappingProxyType(self._manifest)

    @property
    def flow(self) -> list[ManifestItem]:
        """Reading order; same list as spine.contents."""
        return self.spine.contents

    def close(self) -> None:
        self.archive.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def _item(self, manifest_id: str) -> ManifestItem:
        item = self._manifest.get(manifest_id)
        if item is None:
            raise EpubLookupError(EpubErrorCode.E_UNKNOWN_ID, f"File not found: {manifest_id}")
        return item

    def get_raw(self, manifest_id: str) -> tuple[bytes, str]:
        """Bytes and stored media type for any manifest item.

        Raises:
            EpubLookupError: Unknown manifest id.
            ArchiveIoError: The entry cannot be read.
        """
        item = self._item(manifest_id)
        return self.archive.read(item.href), item.media_type

    def get_image(self, manifest_id: str) -> tuple[bytes, str]:
        """Like get_raw(), restricted to image/* media types."""
        item = self._item(manifest_id)
        if not item.media_type.strip().lower().startswith("image/"):
            raise MediaTypeError(message=f"Invalid mime type for image: {item.media_type}")
        return self.get_raw(manifest_id)

    def get_document_raw(self, manifest_id: str) -> str:
        """Decoded but unrewritten text of an XHTML or SVG document."""
        item = self._item(manifest_id)
        if not item.is_document:
            raise MediaTypeError(message=f"Invalid mime type for chapter: {item.media_type}")
        return self.archive.read(item.href).decode("utf-8", errors="replace")

    def get_document(self, manifest_id: str) -> str:
        """Body markup of a document with scripts removed and references rewritten."""
        token = set_manifest_id(manifest_id)
        try:
            text = self.get_document_raw(manifest_id)
            return rewrite_document(
                text,
                self._manifest[manifest_id].href,
                self._manifest,
                image_root=self.image_root,
                link_root=self.link_root,
            )
        finally:
            reset_manifest_id(token)

    def read_file(self, name: str, encoding: str | None = None) -> bytes | str:
        """Read an archive entry by name (case-insensitive).

        Args:
            name: Entry name.
            encoding: None for bytes, or a codec name to decode with.

        Raises:
            ArgumentError: If name or encoding have the wrong type.
            EpubLookupError: If no entry matches name.
        """
        if not isinstance(name, str) or not name:
            raise ArgumentError(message="name must be a non-empty string")
        if encoding is not None and not isinstance(encoding, str):
            raise ArgumentError(message="encoding must be a codec name or None")

        entry = find_entry(self.archive.list_entries(), name)
        if entry is None:
            raise EpubLookupError(EpubErrorCode.E_FILE_NOT_FOUND, f"File not found: {name}")

        data = self.archive.read(entry)
        if encoding is None:
            return data
        try:
            return data.decode(encoding)
        except LookupError as exc:
            raise ArgumentError(message=f"Unknown encoding: {encoding}") from exc


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def open_epub(
    source: ArchiveBase | str | os.PathLike | bytes,
    *,
    image_root: str | None = None,
    link_root: str | None = None,
) -> EpubDocument:
    """Parse an EPUB into an EpubDocument.

    Args:
        source: An archive, or a path / raw bytes to open as a zip archive.
        image_root: URL prefix for images (defaults to settings).
        link_root: URL prefix for links (defaults to settings).

    Raises:
        ArchiveIoError: The archive or one of its entries cannot be read.
        FormatError: Any structural problem in container, package or NCX.
    """
    archive = source if isinstance(source, ArchiveBase) else ZipArchive(source)
    settings = get_settings()
    token = set_archive_context(archive.name)
    try:
        package_path = locate_package_document(archive)
        package = build_package(archive, package_path)

        toc: list[TocNode] = []
        if package.spine.toc_item is not None:
            toc = resolve_navigation(archive, package.spine.toc_item, package.manifest)

        document = EpubDocument(
            archive,
            package_path=package.path,
            version=package.version,
            metadata=package.metadata,
            manifest=package.manifest,
            spine=package.spine,
            toc=toc,
            image_root=image_root if image_root is not None else settings.image_root,
            link_root=link_root if link_root is not None else settings.link_root,
        )
    except Exception:
        logger.warning("epub_parse_failed", exc_info=True)
        if archive is not source:
            archive.close()
        raise
    finally:
        reset_archive_context(token)

    logger.info(
        "epub_parse_completed",
        archive=archive.name,
        manifest_items=len(package.manifest),
        spine_items=len(package.spine.contents),
        toc_entries=len(toc),
    )
    return document


async def open_epub_async(
    source: ArchiveBase | str | os.PathLike | bytes,
    *,
    image_root: str | None = None,
    link_root: str | None = None,
) -> EpubDocument:
    """Run open_epub() in a worker thread and await the finished document."""
    return await asyncio.to_thread(
        open_epub, source, image_root=image_root, link_root=link_root
    )

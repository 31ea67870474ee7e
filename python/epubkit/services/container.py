"""Container location: mimetype check and package document discovery."""

from __future__ import annotations

from epubkit.archive.client import ArchiveBase
from epubkit.archive.paths import find_entry
from epubkit.errors import EpubErrorCode, FormatError
from epubkit.logging import get_logger
from epubkit.xml import XmlDecodeError, decode_xml

logger = get_logger(__name__)

EPUB_MIMETYPE = "application/epub+zip"
PACKAGE_MEDIA_TYPE = "application/oebps-package+xml"

_MIMETYPE_ENTRY = "mimetype"
_CONTAINER_ENTRY = "meta-inf/container.xml"


def locate_package_document(archive: ArchiveBase) -> str:
    """Resolve the package document's entry name.

    Checks the mimetype marker, reads META-INF/container.xml and picks the
    first rootfile declared as a package document.

    Returns:
        Entry name of the package document, spelled as in the archive.

    Raises:
        FormatError: On a missing/unsupported mimetype, a missing or malformed
            container, or an unusable rootfile declaration.
        ArchiveIoError: If an entry cannot be read.
    """
    names = archive.list_entries()
    if not names:
        raise FormatError(EpubErrorCode.E_EMPTY_ARCHIVE, "No files in archive")

    check_mimetype(archive, names)

    container_name = find_entry(names, _CONTAINER_ENTRY)
    if container_name is None:
        raise FormatError(EpubErrorCode.E_MISSING_CONTAINER, "No container file in archive")

    try:
        container = decode_xml(archive.read(container_name))
    except XmlDecodeError as exc:
        raise FormatError(
            EpubErrorCode.E_MALFORMED_CONTAINER, f"Parsing container XML failed: {exc}"
        ) from exc

    full_path = None
    for rootfile in container.iter("rootfile"):
        media_type = (rootfile.attr("media-type") or "").strip().lower()
        candidate = (rootfile.attr("full-path") or "").strip()
        if media_type == PACKAGE_MEDIA_TYPE and candidate:
            full_path = candidate
            break

    if full_path is None:
        raise FormatError(EpubErrorCode.E_NO_ROOTFILE, "No usable rootfile in container")

    package_path = find_entry(names, full_path)
    if package_path is None:
        raise FormatError(
            EpubErrorCode.E_ROOTFILE_NOT_FOUND, f"Rootfile not found from archive: {full_path}"
        )

    logger.info("epub_container_resolved", package_path=package_path)
    return package_path


def check_mimetype(archive: ArchiveBase, names: list[str]) -> None:
    """Verify the mimetype marker reads application/epub+zip."""
    mime_name = find_entry(names, _MIMETYPE_ENTRY)
    if mime_name is None:
        raise FormatError(EpubErrorCode.E_MISSING_MIMETYPE, "No mimetype file in archive")

    content = archive.read(mime_name).decode("utf-8", errors="replace").strip().lower()
    if content != EPUB_MIMETYPE:
        raise FormatError(
            EpubErrorCode.E_UNSUPPORTED_MIMETYPE, f"Unsupported mime type: {content[:64]!r}"
        )

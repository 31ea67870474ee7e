"""In-memory structural model of EPUB publications.

Usage:
    from epubkit import open_epub

    with open_epub("book.epub") as book:
        for item in book.spine.contents:
            html = book.get_document(item.id)
"""

from epubkit.archive import ArchiveBase, FakeArchive, ZipArchive
from epubkit.errors import (
    ArchiveIoError,
    ArgumentError,
    EpubError,
    EpubErrorCode,
    EpubLookupError,
    FormatError,
    MediaTypeError,
)
from epubkit.models import ManifestItem, Metadata, Spine, TocEntry, TocNode
from epubkit.services import EpubDocument, open_epub, open_epub_async

__all__ = [
    "ArchiveBase",
    "FakeArchive",
    "ZipArchive",
    "ArchiveIoError",
    "ArgumentError",
    "EpubError",
    "EpubErrorCode",
    "EpubLookupError",
    "FormatError",
    "MediaTypeError",
    "ManifestItem",
    "Metadata",
    "Spine",
    "TocEntry",
    "TocNode",
    "EpubDocument",
    "open_epub",
    "open_epub_async",
]

"""Parse pipeline and document services.

Stages run in order: container location, package parsing, navigation
resolution. Content rewriting is invoked per document on demand.
"""

from epubkit.services.container import locate_package_document
from epubkit.services.document import EpubDocument, open_epub, open_epub_async
from epubkit.services.navigation import MAX_TOC_DEPTH, build_toc, resolve_navigation
from epubkit.services.package import PackageDocument, build_package, parse_package
from epubkit.services.rewrite import rewrite_document

__all__ = [
    "locate_package_document",
    "EpubDocument",
    "open_epub",
    "open_epub_async",
    "MAX_TOC_DEPTH",
    "build_toc",
    "resolve_navigation",
    "PackageDocument",
    "build_package",
    "parse_package",
    "rewrite_document",
]

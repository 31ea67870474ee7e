"""Archive module for reading EPUB containers.

Provides:
- ArchiveBase interface (list entries, read by name)
- ZipArchive for real zip files, FakeArchive for tests
- Path utilities for resolving references to entry names
"""

from epubkit.archive.client import (
    ArchiveBase,
    ArchiveSafetyLimits,
    FakeArchive,
    ZipArchive,
    check_archive_safety,
)
from epubkit.archive.paths import (
    find_entry,
    normalize_manifest_href,
    parent_dir,
    resolve_href,
    resolve_path,
    split_fragment,
)

__all__ = [
    "ArchiveBase",
    "ArchiveSafetyLimits",
    "FakeArchive",
    "ZipArchive",
    "check_archive_safety",
    "find_entry",
    "normalize_manifest_href",
    "parent_dir",
    "resolve_href",
    "resolve_path",
    "split_fragment",
]

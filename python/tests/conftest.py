"""Pytest configuration and fixtures for epubkit tests.

Test isolation strategy:
- Settings are re-read from a clean environment for every test
- Archives are built in memory (FakeArchive or zip bytes)
"""

from collections.abc import Generator

import pytest

from epubkit.archive.client import FakeArchive
from epubkit.config import clear_settings_cache
from tests.fixtures import make_epub, make_fake_archive, sample_book_files

_SETTINGS_ENV_VARS = (
    "EPUBKIT_IMAGE_ROOT",
    "EPUBKIT_LINK_ROOT",
    "EPUBKIT_LOG_JSON",
    "EPUBKIT_MAX_ARCHIVE_ENTRIES",
    "EPUBKIT_MAX_ARCHIVE_TOTAL_UNCOMPRESSED_BYTES",
    "EPUBKIT_MAX_ARCHIVE_SINGLE_ENTRY_UNCOMPRESSED_BYTES",
    "EPUBKIT_MAX_ARCHIVE_COMPRESSION_RATIO",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch) -> Generator[None, None, None]:
    """Drop settings env vars and the settings cache around each test."""
    for var in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def sample_archive() -> FakeArchive:
    """Fake archive holding the sample book."""
    return make_fake_archive(sample_book_files())


@pytest.fixture
def sample_epub_bytes() -> bytes:
    """Zip bytes of the sample book."""
    return make_epub(sample_book_files())

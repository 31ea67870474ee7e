"""Tests for container location (mimetype check and rootfile discovery)."""

import pytest

from epubkit.archive.client import FakeArchive
from epubkit.errors import ArchiveIoError, EpubErrorCode, FormatError
from epubkit.services.container import locate_package_document
from tests.fixtures import CONTAINER_XML, build_opf

_OPF = build_opf()


def _container(rootfiles: str) -> str:
    return f"""\
<?xml version="1.0"?>
<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container" version="1.0">
  <rootfiles>{rootfiles}</rootfiles>
</container>"""


class TestMimetype:
    """Tests for the mimetype marker."""

    def test_empty_archive_rejected(self):
        """An archive without entries fails before anything is read."""
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(FakeArchive())
        assert exc_info.value.code == EpubErrorCode.E_EMPTY_ARCHIVE

    def test_missing_mimetype(self):
        """No mimetype entry -> E_MISSING_MIMETYPE."""
        archive = FakeArchive({"META-INF/container.xml": CONTAINER_XML.format(opf_path="a.opf")})
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_MISSING_MIMETYPE

    def test_wrong_mimetype(self):
        """Mimetype content other than application/epub+zip is rejected."""
        archive = FakeArchive({"mimetype": "application/zip"})
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_UNSUPPORTED_MIMETYPE

    def test_mimetype_name_and_content_are_case_insensitive(self):
        """'MIMETYPE' with padded upper-case content is accepted."""
        archive = FakeArchive(
            {
                "MimeType": "  APPLICATION/EPUB+ZIP\n",
                "META-INF/container.xml": CONTAINER_XML.format(opf_path="content.opf"),
                "content.opf": _OPF,
            }
        )
        assert locate_package_document(archive) == "content.opf"

    def test_unreadable_mimetype_propagates_io_error(self):
        """A read failure is surfaced as ArchiveIoError, not a format error."""
        archive = FakeArchive({"mimetype": "application/epub+zip"})
        archive.break_entry("mimetype")
        with pytest.raises(ArchiveIoError):
            locate_package_document(archive)


class TestContainer:
    """Tests for META-INF/container.xml handling."""

    def test_missing_container(self):
        archive = FakeArchive({"mimetype": "application/epub+zip"})
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_MISSING_CONTAINER

    def test_malformed_container(self):
        archive = FakeArchive(
            {"mimetype": "application/epub+zip", "META-INF/container.xml": "<container><rootfiles>"}
        )
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_MALFORMED_CONTAINER

    def test_container_name_is_case_insensitive(self):
        """meta-inf/CONTAINER.XML is found."""
        archive = FakeArchive(
            {
                "mimetype": "application/epub+zip",
                "meta-inf/CONTAINER.XML": CONTAINER_XML.format(opf_path="OEBPS/content.opf"),
                "OEBPS/content.opf": _OPF,
            }
        )
        assert locate_package_document(archive) == "OEBPS/content.opf"

    def test_no_rootfiles(self):
        archive = FakeArchive(
            {"mimetype": "application/epub+zip", "META-INF/container.xml": _container("")}
        )
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_NO_ROOTFILE

    def test_single_rootfile_with_wrong_media_type(self):
        """A lone rootfile that is not a package document does not qualify."""
        rootfile = '<rootfile full-path="book.pdf" media-type="application/pdf"/>'
        archive = FakeArchive(
            {
                "mimetype": "application/epub+zip",
                "META-INF/container.xml": _container(rootfile),
                "book.pdf": b"%PDF",
            }
        )
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_NO_ROOTFILE

    def test_empty_full_path(self):
        rootfile = '<rootfile full-path="  " media-type="application/oebps-package+xml"/>'
        archive = FakeArchive(
            {"mimetype": "application/epub+zip", "META-INF/container.xml": _container(rootfile)}
        )
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_NO_ROOTFILE

    def test_first_qualifying_rootfile_among_many(self):
        """With several rootfiles the first package document wins."""
        rootfiles = (
            '<rootfile full-path="book.pdf" media-type="application/pdf"/>'
            '<rootfile full-path="OPS/main.opf" media-type="application/oebps-package+xml"/>'
            '<rootfile full-path="OPS/alt.opf" media-type="application/oebps-package+xml"/>'
        )
        archive = FakeArchive(
            {
                "mimetype": "application/epub+zip",
                "META-INF/container.xml": _container(rootfiles),
                "OPS/main.opf": _OPF,
                "OPS/alt.opf": _OPF,
            }
        )
        assert locate_package_document(archive) == "OPS/main.opf"

    def test_rootfile_resolved_case_insensitively(self):
        """The archive's own spelling of the package path is returned."""
        archive = FakeArchive(
            {
                "mimetype": "application/epub+zip",
                "META-INF/container.xml": CONTAINER_XML.format(opf_path="oebps/CONTENT.opf"),
                "OEBPS/Content.opf": _OPF,
            }
        )
        assert locate_package_document(archive) == "OEBPS/Content.opf"

    def test_rootfile_not_in_archive(self):
        archive = FakeArchive(
            {
                "mimetype": "application/epub+zip",
                "META-INF/container.xml": CONTAINER_XML.format(opf_path="OEBPS/missing.opf"),
            }
        )
        with pytest.raises(FormatError) as exc_info:
            locate_package_document(archive)
        assert exc_info.value.code == EpubErrorCode.E_ROOTFILE_NOT_FOUND

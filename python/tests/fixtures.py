"""In-memory EPUB fixture builders.

All fixtures are built in memory (no files on disk). Builders return plain
strings so tests can tweak them before packing them into an archive.
"""

import io
import zipfile

from epubkit.archive.client import FakeArchive

CONTAINER_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container" version="1.0">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>"""


def build_opf(
    manifest_items: list[tuple[str, str, str]] | None = None,
    spine_ids: list[str] | None = None,
    *,
    toc_id: str | None = None,
    metadata: str = "<dc:title>Test Book</dc:title>",
    version: str | None = "2.0",
    extra: str = "",
) -> str:
    """Build an OPF package document.

    manifest_items: [(manifest_id, href, media_type), ...]
    spine_ids: idrefs in reading order (defaults to every xhtml item)
    """
    if manifest_items is None:
        manifest_items = [("ch1", "ch1.xhtml", "application/xhtml+xml")]
    if spine_ids is None:
        spine_ids = [mid for mid, _href, mtype in manifest_items if mtype == "application/xhtml+xml"]

    manifest_lines = "\n".join(
        f'    <item id="{mid}" href="{href}" media-type="{mtype}"/>'
        for mid, href, mtype in manifest_items
    )
    spine_lines = "\n".join(f'    <itemref idref="{idref}"/>' for idref in spine_ids)
    toc_attr = f' toc="{toc_id}"' if toc_id else ""
    version_attr = f' version="{version}"' if version else ""

    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf"
         xmlns:dc="http://purl.org/dc/elements/1.1/"
         xmlns:opf="http://www.idpf.org/2007/opf"{version_attr}>
  <metadata>
    {metadata}
  </metadata>
  <manifest>
{manifest_lines}
  </manifest>
  <spine{toc_attr}>
{spine_lines}
  </spine>
{extra}
</package>"""


def nav_point(
    nav_id: str,
    label: str | None,
    src: str | None,
    play_order: str | int | None = None,
    children: str = "",
) -> str:
    """Build one NCX navPoint (label=None omits navLabel, src=None omits content)."""
    order_attr = f' playOrder="{play_order}"' if play_order is not None else ""
    label_el = f"<navLabel><text>{label}</text></navLabel>" if label is not None else ""
    content_el = f'<content src="{src}"/>' if src is not None else ""
    return f'<navPoint id="{nav_id}"{order_attr}>{label_el}{content_el}{children}</navPoint>'


def build_ncx(nav_points: str) -> str:
    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head/>
  <docTitle><text>Test Book</text></docTitle>
  <navMap>
{nav_points}
  </navMap>
</ncx>"""


def build_chapter_xhtml(body_content: str, head_extra: str = "") -> str:
    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>Chapter</title>{head_extra}</head>
<body class="chapter">
{body_content}
</body>
</html>"""


def epub_entries(
    files: dict[str, str | bytes],
    opf_path: str = "OEBPS/content.opf",
    mimetype: str = "application/epub+zip",
) -> dict[str, str | bytes]:
    """Entries of a minimal EPUB: mimetype, container, plus ``files``."""
    entries: dict[str, str | bytes] = {
        "mimetype": mimetype,
        "META-INF/container.xml": CONTAINER_XML.format(opf_path=opf_path),
    }
    entries.update(files)
    return entries


def make_epub(files: dict[str, str | bytes], opf_path: str = "OEBPS/content.opf") -> bytes:
    """Build an EPUB ZIP in memory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for path, content in epub_entries(files, opf_path).items():
            zf.writestr(path, content)
    return buf.getvalue()


def make_fake_archive(files: dict[str, str | bytes], opf_path: str = "OEBPS/content.opf"):
    return FakeArchive(epub_entries(files, opf_path), name="test.epub")


def sample_book_files() -> dict[str, str]:
    """A small book: NCX TOC, two chapters, one image, one stylesheet."""
    opf = build_opf(
        [
            ("ncx", "toc.ncx", "application/x-dtbncx+xml"),
            ("ch1", "ch1.xhtml", "application/xhtml+xml"),
            ("ch2", "other.xhtml", "application/xhtml+xml"),
            ("logo_img", "logo.jpg", "image/jpeg"),
            ("css", "style.css", "text/css"),
        ],
        ["ch1", "ch2"],
        toc_id="ncx",
        metadata=(
            "<dc:title>Sample Book</dc:title>"
            '<dc:creator opf:file-as="Doe, Jane">Jane Doe</dc:creator>'
            "<dc:language>en</dc:language>"
        ),
    )
    ncx = build_ncx(
        nav_point("np1", "Chapter 1", "ch1.xhtml", 1)
        + nav_point("np2", "Chapter 2", "other.xhtml", 2)
    )
    ch1 = build_chapter_xhtml(
        '<h1 onclick="alert(1)">One</h1>\n'
        '<p><img src="logo.jpg" alt="logo"/></p>\n'
        '<p><a href="other.xhtml#sec2">next</a></p>\n'
        "<script>alert('x')</script>"
    )
    ch2 = build_chapter_xhtml('<h1 id="sec2">Two</h1>')
    return {
        "OEBPS/content.opf": opf,
        "OEBPS/toc.ncx": ncx,
        "OEBPS/ch1.xhtml": ch1,
        "OEBPS/other.xhtml": ch2,
        "OEBPS/logo.jpg": "\xff\xd8fake-jpeg",
        "OEBPS/style.css": "body { color: black; }",
    }

"""NCX navigation parsing into a flat, level-tagged table of contents.

Nav-points whose target matches a manifest href are not copied: the manifest
item itself is decorated with title/order/level and placed in the TOC.
"""

from __future__ import annotations

from epubkit.archive.client import ArchiveBase
from epubkit.archive.paths import parent_dir, resolve_href
from epubkit.errors import EpubErrorCode, FormatError
from epubkit.logging import get_logger
from epubkit.models import ManifestItem, TocEntry, TocNode
from epubkit.xml import XmlDecodeError, XmlNode, decode_xml

logger = get_logger(__name__)

# nav-points nested deeper than this contribute nothing
MAX_TOC_DEPTH = 7


def resolve_navigation(
    archive: ArchiveBase,
    toc_item: ManifestItem,
    manifest: dict[str, ManifestItem],
) -> list[TocNode]:
    """Read the NCX referenced by the spine and build the TOC.

    Raises:
        FormatError: E_MALFORMED_NAV if the NCX is not well-formed XML.
        ArchiveIoError: If the entry cannot be read.
    """
    try:
        root = decode_xml(archive.read(toc_item.href))
    except XmlDecodeError as exc:
        raise FormatError(EpubErrorCode.E_MALFORMED_NAV, f"Parsing NCX failed: {exc}") from exc

    toc = build_toc(root, parent_dir(toc_item.href), manifest)
    logger.info("epub_toc_parsed", ncx_path=toc_item.href, toc_entries=len(toc))
    return toc


def build_toc(root: XmlNode, ncx_dir: str, manifest: dict[str, ManifestItem]) -> list[TocNode]:
    """Walk navMap/navPoint elements of a decoded NCX."""
    nav_map = root.first("navMap")
    if nav_map is None:
        return []

    href_index = {item.href: item_id for item_id, item in manifest.items()}
    return _walk_nav_points(nav_map.children_named("navPoint"), ncx_dir, href_index, manifest)


def _walk_nav_points(
    branch: list[XmlNode],
    ncx_dir: str,
    href_index: dict[str, str],
    manifest: dict[str, ManifestItem],
    level: int = 0,
) -> list[TocNode]:
    if level > MAX_TOC_DEPTH:
        return []

    output: list[TocNode] = []
    for nav_point in branch:
        label = nav_point.first("navLabel")
        if label is not None:
            node = _toc_node(nav_point, label, ncx_dir, href_index, manifest, level)
            if node is not None:
                output.append(node)

        children = nav_point.children_named("navPoint")
        if children:
            output.extend(_walk_nav_points(children, ncx_dir, href_index, manifest, level + 1))
    return output


def _toc_node(
    nav_point: XmlNode,
    label: XmlNode,
    ncx_dir: str,
    href_index: dict[str, str],
    manifest: dict[str, ManifestItem],
    level: int,
) -> TocNode | None:
    text = label.first("text")
    title = text.text.strip() if text is not None else ""
    order = parse_play_order(nav_point.attributes.get("playOrder"))

    content = nav_point.first("content")
    src = (content.attributes.get("src") or "").strip() if content is not None else ""
    if not src:
        return None

    href = resolve_href(ncx_dir, src)
    item_id = href_index.get(href)
    if item_id is not None:
        item = manifest[item_id]
        item.title = title
        item.order = order
        item.level = level
        return item

    return TocEntry(
        level=level,
        order=order,
        title=title,
        href=href,
        id=(nav_point.attributes.get("id") or "").strip(),
    )


def parse_play_order(raw: str | None) -> int:
    """Integer playOrder, 0 when absent or not a number."""
    if raw is None:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        return 0

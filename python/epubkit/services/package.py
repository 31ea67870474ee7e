"""Package document parsing: metadata, manifest and spine.

The package document (OPF) is decoded once and its top-level sections are
dispatched by local name. Parsing is permissive: unknown sections are
ignored, duplicate manifest ids overwrite, unresolved spine references are
dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from epubkit.archive.client import ArchiveBase
from epubkit.archive.paths import normalize_manifest_href, parent_dir
from epubkit.errors import EpubErrorCode, FormatError
from epubkit.logging import get_logger
from epubkit.models import METADATA_FIELDS, ManifestItem, Metadata, Spine
from epubkit.xml import XmlDecodeError, XmlNode, decode_xml

logger = get_logger(__name__)

DEFAULT_VERSION = "2.0"

_UUID_ID_RE = re.compile(r"uuid", re.IGNORECASE)
_UUID_PREFIX = "urn:uuid:"

# Manifest attributes stored on dedicated fields
_ITEM_FIELDS = frozenset({"id", "href", "media-type"})


@dataclass
class PackageDocument:
    path: str
    version: str
    metadata: Metadata
    manifest: dict[str, ManifestItem]
    spine: Spine

    @property
    def directory(self) -> str:
        return parent_dir(self.path)


def build_package(archive: ArchiveBase, package_path: str) -> PackageDocument:
    """Read and parse the package document.

    Raises:
        FormatError: E_MALFORMED_PACKAGE if the document is not well-formed XML.
        ArchiveIoError: If the entry cannot be read.
    """
    try:
        root = decode_xml(archive.read(package_path))
    except XmlDecodeError as exc:
        raise FormatError(
            EpubErrorCode.E_MALFORMED_PACKAGE, f"Parsing package XML failed: {exc}"
        ) from exc

    return parse_package(root, package_path)


def parse_package(root: XmlNode, package_path: str) -> PackageDocument:
    """Build metadata, manifest and spine from a decoded package document."""
    package_dir = parent_dir(package_path)
    version = (root.attr("version") or "").strip() or DEFAULT_VERSION

    metadata = Metadata()
    manifest: dict[str, ManifestItem] = {}
    spine = Spine()

    # manifest first: the spine resolves against it regardless of element order
    sections: dict[str, XmlNode] = {}
    for child in root.children:
        sections.setdefault(child.local, child)

    if "metadata" in sections:
        metadata = parse_metadata(sections["metadata"])
    if "manifest" in sections:
        manifest = parse_manifest(sections["manifest"], package_dir)
    if "spine" in sections:
        spine = parse_spine(sections["spine"], manifest)
    # guide is not parsed

    logger.info(
        "epub_package_parsed",
        package_path=package_path,
        version=version,
        manifest_items=len(manifest),
        spine_items=len(spine.contents),
        has_toc=spine.toc_item is not None,
    )
    return PackageDocument(
        path=package_path,
        version=version,
        metadata=metadata,
        manifest=manifest,
        spine=spine,
    )


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def parse_metadata(node: XmlNode) -> Metadata:
    """Extract descriptive fields, identifiers and meta declarations."""
    values: dict[str, str] = {}
    extra: dict[str, str] = {}

    for child in node.children:
        name = child.local
        if name in METADATA_FIELDS:
            if name in values:
                continue
            values[name] = child.text.strip()
            if name == "creator":
                file_as = (child.attr("file-as") or "").strip()
                values["creator_file_as"] = file_as or values["creator"]
        elif name == "identifier":
            _apply_identifier(child, values)
        elif name == "meta":
            _apply_meta(child, extra)

    return Metadata(**values, extra=extra)


def _apply_identifier(node: XmlNode, values: dict[str, str]) -> None:
    scheme = (node.attr("scheme") or "").strip()
    element_id = node.attributes.get("id", "")
    if scheme.upper() == "ISBN":
        values["isbn"] = node.text.strip()
    elif _UUID_ID_RE.search(element_id):
        value = node.text.strip()
        if value.lower().startswith(_UUID_PREFIX):
            value = value[len(_UUID_PREFIX) :]
        values["uuid"] = value.strip().upper()


def _apply_meta(node: XmlNode, extra: dict[str, str]) -> None:
    name = node.attributes.get("name")
    if name:
        extra[name] = node.attributes.get("content", "")
    prop = node.attributes.get("property")
    text = node.text.strip()
    if prop and text:
        extra[prop] = text


# ---------------------------------------------------------------------------
# Manifest / Spine
# ---------------------------------------------------------------------------


def parse_manifest(node: XmlNode, package_dir: str) -> dict[str, ManifestItem]:
    """Return {manifest_id: ManifestItem} with archive-root-relative hrefs."""
    manifest: dict[str, ManifestItem] = {}
    for item in node.children_named("item"):
        item_id = item.attributes.get("id", "")
        href = item.attributes.get("href", "")
        if not item_id or not href:
            continue
        if item_id in manifest:
            logger.debug("epub_manifest_id_overwritten", manifest_id=item_id)
        manifest[item_id] = ManifestItem(
            id=item_id,
            href=normalize_manifest_href(href, package_dir),
            media_type=item.attributes.get("media-type", ""),
            properties={k: v for k, v in item.attributes.items() if k not in _ITEM_FIELDS},
        )
    return manifest


def parse_spine(node: XmlNode, manifest: dict[str, ManifestItem]) -> Spine:
    """Resolve the toc reference and itemrefs against the manifest."""
    spine = Spine()

    toc_id = node.attributes.get("toc")
    if toc_id:
        spine.toc_item = manifest.get(toc_id)

    for itemref in node.children_named("itemref"):
        idref = itemref.attributes.get("idref", "")
        item = manifest.get(idref)
        if item is None:
            logger.debug("epub_spine_idref_unresolved", idref=idref)
            continue
        spine.contents.append(item)

    return spine

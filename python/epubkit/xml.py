"""XML decoding into a small, prefix-preserving element tree.

Package, container and NCX documents are decoded with lxml and converted into
XmlNode trees. Names keep their namespace prefix as written ("dc:title",
"opf:file-as"); lookups go through local names so callers never care whether
a prefix was used. Children are always lists, so an element that appears once
and an element that appears many times are handled the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lxml import etree

_XML_NS = "http://www.w3.org/XML/1998/namespace"

# No DTD loading, no entity expansion, no network access
_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    remove_comments=True,
    remove_pis=True,
    huge_tree=False,
)


class XmlDecodeError(ValueError):
    """Raised when bytes cannot be decoded as XML."""


def local_name(name: str) -> str:
    """Strip a namespace prefix and lowercase ("dc:Title" -> "title")."""
    return name.rsplit(":", 1)[-1].strip().lower()


@dataclass
class XmlNode:
    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: list[XmlNode] = field(default_factory=list)

    @property
    def local(self) -> str:
        return local_name(self.name)

    def attr(self, name: str, default: str | None = None) -> str | None:
        """Attribute value by exact name, falling back to a local-name match.

        ``node.attr("file-as")`` finds "opf:file-as" as well as "file-as".
        """
        if name in self.attributes:
            return self.attributes[name]
        wanted = local_name(name)
        for key, value in self.attributes.items():
            if local_name(key) == wanted:
                return value
        return default

    def children_named(self, name: str) -> list[XmlNode]:
        wanted = local_name(name)
        return [child for child in self.children if child.local == wanted]

    def first(self, name: str) -> XmlNode | None:
        wanted = local_name(name)
        for child in self.children:
            if child.local == wanted:
                return child
        return None

    def iter(self, name: str):
        """Depth-first iteration over descendants (and self) with a local name."""
        wanted = local_name(name)
        if self.local == wanted:
            yield self
        for child in self.children:
            yield from child.iter(wanted)


def decode_xml(data: bytes) -> XmlNode:
    """Decode XML bytes into an XmlNode tree.

    Raises:
        XmlDecodeError: If the bytes are not well-formed XML.
    """
    if not data or not data.strip():
        raise XmlDecodeError("Empty document")
    try:
        root = etree.fromstring(data, parser=_PARSER)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise XmlDecodeError(f"Failed to parse XML: {exc}") from exc
    return _convert(root)


def _convert(el: etree._Element) -> XmlNode:
    node = XmlNode(
        name=_qualify(el, el.tag),
        attributes={_qualify(el, key): value for key, value in el.attrib.items()},
    )
    parts = [el.text or ""]
    for child in el:
        if not isinstance(child.tag, str):
            parts.append(child.tail or "")
            continue
        node.children.append(_convert(child))
        parts.append(child.tail or "")
    node.text = "".join(parts)
    return node


def _qualify(el: etree._Element, clark: str) -> str:
    """Turn "{uri}local" into "prefix:local" using the element's namespace map."""
    if not clark.startswith("{"):
        return clark
    uri, _, local = clark[1:].partition("}")
    if uri == _XML_NS:
        return f"xml:{local}"
    for prefix, ns in el.nsmap.items():
        if ns == uri and prefix:
            # default namespace wins for element names
            if clark == el.tag and el.nsmap.get(None) == uri:
                return local
            return f"{prefix}:{local}"
    return local

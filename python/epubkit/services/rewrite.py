"""Content document rewriting.

Rewrites a single XHTML/SVG document so it can be embedded and served through
an external resolver:
- Only <body> content is kept
- <script> and <style> blocks are removed
- Event handler attributes (on*) are disarmed by renaming to skip-on*
- src values pointing at manifest items -> {image_root}{id}/{path}, others emptied
- href values pointing at manifest items -> {link_root}{id}/{path}[#fragment],
  others left untouched

Works on the raw markup with regular expressions; the input is assumed to be
well-formed XHTML and is never parsed into a DOM.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from epubkit.archive.paths import parent_dir, resolve_path, split_fragment
from epubkit.models import ManifestItem

# Line breaks are folded into this sentinel so every pattern works on one line
_SENTINEL = "\x00"
_LINEBREAK_RE = re.compile(r"\r?\n")

_BODY_RE = re.compile(r"<body\b[^>]*>(.*)</body[^>]*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_RE = re.compile(
    r"<script\b[^>]*?/>|<script\b[^>]*>.*?</script[^>]*>", re.IGNORECASE | re.DOTALL
)
_STYLE_RE = re.compile(
    r"<style\b[^>]*?/>|<style\b[^>]*>.*?</style[^>]*>", re.IGNORECASE | re.DOTALL
)

# quoted attribute values may contain ">"
_TAG_RE = re.compile(r"<[A-Za-z](?:[^>\"']|\"[^\"]*\"|'[^']*')*>")
_EVENT_ATTR_RE = re.compile(r"([\s\x00])(on\w+\s*=)", re.IGNORECASE)

_ATTR_TEMPLATE = (
    r"(?P<lead>[\s\x00])(?P<name>{name})\s*=\s*"
    r"(?:(?P<quote>[\"'])(?P<quoted>.*?)(?P=quote)|(?P<bare>(?:[^\"'\s\x00>/]|/(?!>))+))"
)
_SRC_RE = re.compile(_ATTR_TEMPLATE.format(name="src"), re.IGNORECASE | re.DOTALL)
_HREF_RE = re.compile(_ATTR_TEMPLATE.format(name="href"), re.IGNORECASE | re.DOTALL)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")

DISARM_PREFIX = "skip-"


def rewrite_document(
    text: str,
    document_href: str,
    manifest: dict[str, ManifestItem],
    *,
    image_root: str,
    link_root: str,
) -> str:
    """Rewrite one content document.

    Args:
        text: Raw document markup.
        document_href: Archive path of the document, used to resolve relative refs.
        manifest: Manifest of the publication.
        image_root: URL prefix for rewritten src values (ends with "/").
        link_root: URL prefix for rewritten href values (ends with "/").

    Returns:
        Rewritten body markup.
    """
    document_dir = parent_dir(document_href)

    text = _LINEBREAK_RE.sub(_SENTINEL, text)
    text = extract_body(text)
    text = _SCRIPT_RE.sub("", text)
    text = _STYLE_RE.sub("", text)
    text = disarm_event_handlers(text)
    text = _rewrite_sources(text, document_dir, manifest, image_root)
    text = _rewrite_links(text, document_dir, manifest, link_root)

    return text.replace(_SENTINEL, "\n").strip()


def extract_body(text: str) -> str:
    """Inner markup of <body>, or the full text when there is no body."""
    match = _BODY_RE.search(text)
    if match is None:
        return text
    return match.group(1).strip(_SENTINEL + " \t\r")


def disarm_event_handlers(text: str) -> str:
    """Rename on* attributes inside tags to skip-on*."""

    def _disarm_tag(match: re.Match) -> str:
        return _EVENT_ATTR_RE.sub(rf"\1{DISARM_PREFIX}\2", match.group(0))

    return _TAG_RE.sub(_disarm_tag, text)


def _url_path(path: str) -> str:
    """Percent-encode a decoded archive path for use in a URL."""
    return quote(path, safe="/")


def _attr_value(match: re.Match) -> tuple[str, str]:
    """Return (value, quote char to write back) for an attribute match."""
    quote = match.group("quote")
    if quote:
        return match.group("quoted"), quote
    return match.group("bare"), '"'


def _rewrite_sources(
    text: str,
    document_dir: str,
    manifest: dict[str, ManifestItem],
    image_root: str,
) -> str:
    by_href: dict[str, ManifestItem] = {}
    for item in manifest.values():
        by_href.setdefault(item.href, item)

    def _rewrite(match: re.Match) -> str:
        value, quote = _attr_value(match)
        lead, name = match.group("lead"), match.group("name")
        path = value.strip()
        resolved = resolve_path(document_dir, path) if path else ""
        item = by_href.get(resolved) if resolved else None
        if item is None:
            # unknown images are dropped, not passed through
            return f"{lead}{name}={quote}{quote}"
        return f"{lead}{name}={quote}{image_root}{item.id}/{_url_path(resolved)}{quote}"

    return _SRC_RE.sub(_rewrite, text)


def _rewrite_links(
    text: str,
    document_dir: str,
    manifest: dict[str, ManifestItem],
    link_root: str,
) -> str:
    by_path: dict[str, ManifestItem] = {}
    for item in manifest.values():
        by_path.setdefault(split_fragment(item.href)[0], item)

    def _rewrite(match: re.Match) -> str:
        value, quote = _attr_value(match)
        raw = value.strip()
        if not raw or raw.startswith("#") or _SCHEME_RE.match(raw):
            return match.group(0)

        path, fragment = split_fragment(raw)
        resolved = resolve_path(document_dir, path)
        item = by_path.get(resolved)
        if item is None:
            return match.group(0)

        link = f"{link_root}{item.id}/{_url_path(resolved)}"
        if fragment is not None:
            link += f"#{fragment}"
        return f"{match.group('lead')}{match.group('name')}={quote}{link}{quote}"

    return _HREF_RE.sub(_rewrite, text)

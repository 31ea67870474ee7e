"""Archive path utilities.

This module provides the single point of logic for turning references found
inside an EPUB (manifest hrefs, NCX sources, src/href attributes) into archive
entry names.

Path Invariant:
    - Entry names are "/"-separated and relative to the archive root
    - No leading slash, no "." segments, ".." collapsed where possible
    - Fragments ("#...") are never part of a resolved path unless re-attached
"""

import posixpath
from urllib.parse import unquote


def find_entry(names: list[str], target: str) -> str | None:
    """Find an entry whose name case-insensitively equals ``target``.

    Args:
        names: Archive listing.
        target: Name to look for.

    Returns:
        The archive's own spelling of the name, or None.
    """
    wanted = target.strip().lower()
    for name in names:
        if name.lower() == wanted:
            return name
    return None


def parent_dir(path: str) -> str:
    """Directory part of an entry name ("" for entries at the root)."""
    return posixpath.dirname(path)


def split_fragment(href: str) -> tuple[str, str | None]:
    """Split ``href`` into its path and fragment (None when absent).

    Example:
        >>> split_fragment("text/ch1.xhtml#sec2")
        ('text/ch1.xhtml', 'sec2')
    """
    path, sep, fragment = href.partition("#")
    return path, (fragment if sep else None)


def resolve_path(base_dir: str, href: str) -> str:
    """Resolve ``href`` relative to ``base_dir``.

    ``href`` must not carry a fragment; use split_fragment() first. Percent
    escapes are decoded, since archive entry names are stored unescaped.

    Example:
        >>> resolve_path("OEBPS/text", "../chapter%201.xhtml")
        'OEBPS/chapter 1.xhtml'
    """
    href = unquote(href)
    joined = posixpath.join(base_dir, href) if base_dir else href
    if not joined:
        return ""
    resolved = posixpath.normpath(joined)
    return "" if resolved == "." else resolved


def resolve_href(base_dir: str, href: str) -> str:
    """Resolve a reference that may carry a fragment, keeping the fragment."""
    path, fragment = split_fragment(href)
    resolved = resolve_path(base_dir, path) if path else base_dir
    if fragment is not None:
        return f"{resolved}#{fragment}"
    return resolved


def normalize_manifest_href(href: str, package_dir: str) -> str:
    """Make a manifest href relative to the archive root.

    The package document's directory is prepended unless the href already
    starts with it. Idempotent for every href that resolves inside the
    package directory.

    Example:
        >>> normalize_manifest_href("text/ch1.xhtml", "OEBPS")
        'OEBPS/text/ch1.xhtml'
        >>> normalize_manifest_href("OEBPS/text/ch1.xhtml", "OEBPS")
        'OEBPS/text/ch1.xhtml'
    """
    if package_dir and not href.startswith(f"{package_dir}/"):
        return resolve_href(package_dir, href)
    return resolve_href("", href)

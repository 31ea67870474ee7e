"""Structural model of a parsed EPUB.

ManifestItem objects are the single owned record for every packaged resource.
The spine and the table of contents hold references to the same objects, so a
title set while resolving the TOC is visible through the spine as well.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

DOCUMENT_MEDIA_TYPES = frozenset({"application/xhtml+xml", "image/svg+xml"})

METADATA_FIELDS = (
    "publisher",
    "language",
    "title",
    "subject",
    "description",
    "date",
    "creator",
)


@dataclass(eq=False)
class ManifestItem:
    id: str
    href: str
    media_type: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    # set when a TOC nav-point links to this item
    title: str | None = None
    order: int | None = None
    level: int | None = None

    @property
    def is_document(self) -> bool:
        return self.media_type in DOCUMENT_MEDIA_TYPES


@dataclass
class TocEntry:
    """TOC node that does not correspond to a manifest item."""

    level: int
    order: int
    title: str
    href: str | None = None
    id: str = ""


TocNode = ManifestItem | TocEntry


@dataclass
class Spine:
    toc_item: ManifestItem | None = None
    contents: list[ManifestItem] = field(default_factory=list)


class Metadata(BaseModel):
    """Book-level metadata from the package document.

    Fixed descriptive fields plus `extra` for arbitrary `meta` declarations.
    """

    title: str | None = None
    creator: str | None = None
    creator_file_as: str | None = None
    publisher: str | None = None
    language: str | None = None
    subject: str | None = None
    description: str | None = None
    date: str | None = None
    isbn: str | None = None
    uuid: str | None = None
    extra: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Map-style lookup over fixed fields first, then `extra`."""
        if key in Metadata.model_fields and key != "extra":
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)

    def as_dict(self) -> dict[str, str]:
        """Flatten into a single mapping; fixed fields win over `extra`."""
        result = dict(self.extra)
        for name in Metadata.model_fields:
            if name == "extra":
                continue
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result

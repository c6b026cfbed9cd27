"""Dataclasses describing Markdown documents kept on disk."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class DocumentMetadata:
    """Metadata persisted in the frontmatter of a local Markdown file."""

    title: Optional[str] = None
    space_key: Optional[str] = None
    page_id: Optional[str] = None
    parent_id: Optional[str] = None
    version: Optional[int] = None

    def to_frontmatter(self) -> dict[str, object]:
        values = {
            "title": self.title,
            "space_key": self.space_key,
            "page_id": self.page_id,
            "parent_id": self.parent_id,
            "version": self.version,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(slots=True)
class MarkdownDocument:
    """A Markdown file together with its frontmatter metadata.

    ``content`` is the full file text, frontmatter included; the encoder
    strips the frontmatter itself.
    """

    path: Path
    content: str
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

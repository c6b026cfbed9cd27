"""Content conversion between wiki storage format and local Markdown."""

from __future__ import annotations

from .decoder import decode
from .encoder import encode
from .frontmatter import strip_frontmatter


class ContentConverter:
    """Translate between the wiki's storage representation and Markdown."""

    def storage_to_markdown(self, storage: str) -> str:
        return decode(storage)

    def markdown_to_storage(self, markdown: str) -> str:
        return encode(markdown)


__all__ = ["ContentConverter", "decode", "encode", "strip_frontmatter"]

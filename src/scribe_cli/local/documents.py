"""Reading and writing Markdown documents with YAML frontmatter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import frontmatter
import yaml

from ..errors import DocumentError
from .models import DocumentMetadata, MarkdownDocument

logger = logging.getLogger(__name__)


def validate_path(path: Path) -> Path:
    """Reject paths that climb out of the working tree."""

    if ".." in path.parts:
        raise DocumentError(path, "invalid file path")
    return path


def load_document(path: Path) -> MarkdownDocument:
    """Read ``path`` and extract the metadata stored in its frontmatter."""

    validate_path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentError(path, f"failed to read file: {exc}") from exc

    try:
        metadata = frontmatter.loads(content).metadata
    except yaml.YAMLError as exc:
        # The body is still publishable; the encoder keeps unconfirmed frontmatter as text.
        logger.warning("Ignoring unreadable frontmatter in %s: %s", path, exc)
        metadata = {}

    return MarkdownDocument(
        path=path,
        content=content,
        metadata=DocumentMetadata(
            title=_as_optional_str(metadata.get("title")),
            space_key=_as_optional_str(metadata.get("space_key")),
            page_id=_as_optional_str(metadata.get("page_id")),
            parent_id=_as_optional_str(metadata.get("parent_id")),
            version=_as_optional_int(metadata.get("version")),
        ),
    )


def save_document(path: Path, markdown: str, metadata: DocumentMetadata) -> MarkdownDocument:
    """Write ``markdown`` to ``path`` with ``metadata`` as frontmatter."""

    validate_path(path)
    values = metadata.to_frontmatter()
    if values:
        post = frontmatter.Post(markdown)
        post.metadata.update(values)
        text = frontmatter.dumps(post)
    else:
        text = markdown
    if not text.endswith("\n"):
        text += "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise DocumentError(path, f"failed to write file: {exc}") from exc
    return MarkdownDocument(path=path, content=text, metadata=metadata)


def _as_optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _as_optional_int(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

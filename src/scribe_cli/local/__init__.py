"""Local Markdown documents."""

from __future__ import annotations

from .documents import load_document, save_document, validate_path
from .models import DocumentMetadata, MarkdownDocument

__all__ = ["DocumentMetadata", "MarkdownDocument", "load_document", "save_document", "validate_path"]

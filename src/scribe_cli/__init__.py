"""Publish Markdown documents to Confluence-style wikis and pull them back."""

from __future__ import annotations

from .convert import ContentConverter, decode, encode

__all__ = ["ContentConverter", "decode", "encode"]
__version__ = "0.1.0"

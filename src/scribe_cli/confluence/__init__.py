"""REST client for Confluence-compatible wiki services."""

from __future__ import annotations

from .client import ChalkClient, ConfluenceClient, ScribeClient
from .factory import create_client
from .models import ListOptions, Page, PageBody, Space

__all__ = [
    "ChalkClient",
    "ConfluenceClient",
    "ListOptions",
    "Page",
    "PageBody",
    "ScribeClient",
    "Space",
    "create_client",
]

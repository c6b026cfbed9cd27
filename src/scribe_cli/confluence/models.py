"""Typed models for wiki content interactions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class ListOptions:
    """Paging and filtering parameters for list and search requests."""

    limit: int = 50
    offset: int = 0
    query: Optional[str] = None


@dataclass(slots=True)
class Space:
    """A wiki space."""

    id: int
    key: str
    name: str
    type: str

    @classmethod
    def from_api(cls, data: dict) -> "Space":
        return cls(
            id=int(data.get("id") or 0),
            key=data.get("key", ""),
            name=data.get("name", ""),
            type=data.get("type", ""),
        )

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "key": self.key, "name": self.name, "type": self.type}


@dataclass(slots=True)
class PageBody:
    """Representation of page content in different formats."""

    storage: str
    representation: str = "storage"


@dataclass(slots=True)
class Page:
    """Page payload as returned by the content API."""

    id: str
    title: str
    version: int
    body: PageBody
    type: str = "page"
    status: str = "current"
    space: Optional[Space] = None
    web_ui: Optional[str] = None

    @property
    def space_key(self) -> Optional[str]:
        return self.space.key if self.space else None

    @classmethod
    def from_api(cls, data: dict) -> "Page":
        storage = data.get("body", {}).get("storage", {})
        space = data.get("space")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            version=data.get("version", {}).get("number", 0),
            body=PageBody(
                storage=storage.get("value", ""),
                representation=storage.get("representation", "storage"),
            ),
            type=data.get("type", "page"),
            status=data.get("status", "current"),
            space=Space.from_api(space) if space else None,
            web_ui=data.get("_links", {}).get("webui"),
        )

    def to_dict(self) -> dict[str, object]:
        """Return the page in the service's JSON shape."""

        return {
            "id": self.id,
            "type": self.type,
            "status": self.status,
            "title": self.title,
            "space": self.space.to_dict() if self.space else None,
            "version": {"number": self.version},
            "body": {
                "storage": {
                    "value": self.body.storage,
                    "representation": self.body.representation,
                }
            },
            "_links": {"webui": self.web_ui},
        }

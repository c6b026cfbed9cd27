"""HTTP clients for the Confluence-compatible content REST API."""

from __future__ import annotations

import logging
from typing import Optional, Sequence
from urllib.parse import quote

import httpx

from ..errors import APIError, InsecureURLError
from .models import ListOptions, Page, Space

logger = logging.getLogger(__name__)

PAGE_EXPAND_FIELDS = ("body.storage", "version", "space")


def _cql_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class ScribeClient:
    """Thin wrapper above the content REST API shared by all providers."""

    # API roots tried in order; a 404 moves on to the next root.
    api_roots: Sequence[str] = ("rest/api/",)

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        auth: Optional[tuple[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            auth=auth,
            headers={"Accept": "application/json", **(headers or {})},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ScribeClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401 - standard context manager signature
        self.close()

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        failures: list[httpx.Response] = []
        for root in self.api_roots:
            response = self._client.request(method, root + endpoint, **kwargs)
            logger.debug("%s %s%s -> %d", method, root, endpoint, response.status_code)
            if response.status_code < 400:
                try:
                    return response.json()
                except ValueError as exc:
                    raise APIError(response.status_code, f"invalid JSON response: {exc}") from exc
            failures.append(response)
            if response.status_code != 404:
                break
        # The first root's answer is the one worth reporting.
        failure = failures[0]
        raise APIError(failure.status_code, failure.text)

    @staticmethod
    def _page_path(page_id: str) -> str:
        if not page_id:
            raise ValueError("page ID cannot be empty")
        return "content/" + quote(str(page_id), safe="")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_spaces(self, options: Optional[ListOptions] = None) -> list[Space]:
        options = options or ListOptions(limit=10)
        data = self._request("GET", "space", params={"limit": options.limit, "start": options.offset})
        return [Space.from_api(item) for item in data.get("results", [])]

    def get_page(self, page_id: str) -> Page:
        data = self._request(
            "GET",
            self._page_path(page_id),
            params={"expand": ",".join(PAGE_EXPAND_FIELDS)},
        )
        return Page.from_api(data)

    def create_page(
        self,
        *,
        space_key: str,
        title: str,
        storage: str,
        parent_id: Optional[str] = None,
    ) -> Page:
        payload: dict[str, object] = {
            "type": "page",
            "title": title,
            "space": {"key": space_key},
            "body": {"storage": {"value": storage, "representation": "storage"}},
        }
        if parent_id:
            payload["ancestors"] = [{"id": str(parent_id)}]
        data = self._request("POST", "content", json=payload)
        return Page.from_api(data)

    def update_page(self, page_id: str, storage: str) -> Page:
        """Replace the body of a page, keeping its title and bumping its version."""

        current = self.get_page(page_id)
        payload = {
            "type": "page",
            "title": current.title,
            "version": {"number": current.version + 1},
            "body": {"storage": {"value": storage, "representation": "storage"}},
        }
        data = self._request("PUT", self._page_path(page_id), json=payload)
        return Page.from_api(data)

    def search_pages(self, space_key: str, options: Optional[ListOptions] = None) -> list[Page]:
        if not space_key:
            raise ValueError("space key cannot be empty")
        options = options or ListOptions(limit=100)
        cql = f"space = {_cql_string(space_key)} AND type = \"page\""
        if options.query:
            cql += f" AND title ~ {_cql_string(options.query)}"
        cql += " order by title"
        data = self._request(
            "GET",
            "content/search",
            params={"cql": cql, "limit": options.limit, "start": options.offset},
        )
        return [Page.from_api(item) for item in data.get("results", [])]


class ConfluenceClient(ScribeClient):
    """Confluence Cloud client using basic authentication."""

    api_roots = ("wiki/rest/api/",)

    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        api_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            auth=(username, api_token),
            transport=transport,
        )


class ChalkClient(ScribeClient):
    """Chalk server client using a bearer token over HTTPS.

    Chalk serves the API either at the site root or under ``/wiki``
    depending on deployment, so both roots are tried.
    """

    api_roots = ("rest/api/", "wiki/rest/api/")

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not base_url.startswith("https://"):
            raise InsecureURLError(base_url)
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_token}"},
            transport=transport,
        )

"""Exception hierarchy for the scribe CLI.

The converter never raises; these errors cover configuration, HTTP and local
file handling around it.
"""

from __future__ import annotations

from pathlib import Path

MAX_ERROR_BODY = 500


class ScribeError(Exception):
    """Base exception for all application-level errors."""


class ConfigurationError(ScribeError):
    """Raised when credentials or settings cannot be resolved."""


class APIError(ScribeError):
    """Raised when the wiki REST API answers with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        if len(message) > MAX_ERROR_BODY:
            message = message[:MAX_ERROR_BODY] + "..."
        super().__init__(f"API error (status {status_code}): {message}")
        self.status_code = status_code
        self.message = message


class InsecureURLError(ScribeError):
    """Raised when a provider that requires HTTPS is given a plain URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Only HTTPS URLs are allowed for this provider [{url}]")
        self.url = url


class DocumentError(ScribeError):
    """Raised when a local Markdown document cannot be read or written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = Path(path)
        self.reason = reason

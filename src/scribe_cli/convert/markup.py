"""Storage-format dialect constants and helpers shared by both converters."""

from __future__ import annotations

import bisect
import html
import re
from collections import Counter, defaultdict
from typing import Iterable, Iterator, NamedTuple, Optional

# Macro dialect fixed by the wiki service.
STRUCTURED_MACRO = "ac:structured-macro"
MACRO_NAME_ATTR = "ac:name"
CODE_MACRO_NAME = "code"
PARAMETER_TAG = "ac:parameter"
LANGUAGE_PARAMETER = "language"
PLAIN_TEXT_BODY = "ac:plain-text-body"
RICH_TEXT_BODY = "ac:rich-text-body"
IMAGE_MACRO = "ac:image"
IMAGE_ALT_ATTR = "ac:alt"
ATTACHMENT_TAG = "ri:attachment"
FILENAME_ATTR = "ri:filename"
URL_TAG = "ri:url"
URL_VALUE_ATTR = "ri:value"
NO_LANGUAGE = "none"

TAG_RE = re.compile(
    r"<(?P<closing>/)?(?P<name>[A-Za-z][\w:.-]*)"
    r"(?P<attrs>(?:\s+[^\s=/<>\"']+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'=<>`]+))?)*)"
    r"\s*(?P<self_closing>/)?>"
)
VOID_ELEMENTS = frozenset(
    {"br", "hr", "img", "col", "input", "meta", "link", "area", "base", "wbr", "source"}
)
# Markup that is complete once its terminator is found.
ENCLOSED_MARKUP = (("<!--", "-->"), ("<![CDATA[", "]]>"))

_CLOSING_TAG_RE = re.compile(r"</([A-Za-z][\w:.-]*)")
_BARE_AMPERSAND_RE = re.compile(r"&(?!#[0-9]+;|#[xX][0-9a-fA-F]+;|[A-Za-z][A-Za-z0-9]*;)")
_FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")


class TextFinder:
    """``str.find`` over one text, memoized per marker.

    A lookup from ``start`` that landed on ``position`` answers every later
    lookup starting in ``[start, position]``, so a forward scan that keeps
    asking for a marker which is far away, or missing, stays linear.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._found: dict[str, tuple[int, int]] = {}

    def find(self, marker: str, start: int) -> int:
        cached = self._found.get(marker)
        if cached is not None:
            origin, position = cached
            if origin <= start and (position == -1 or start <= position):
                return position
        position = self.text.find(marker, start)
        self._found[marker] = (start, position)
        return position


class MarkupScanner:
    """Recognize raw markup embedded in Markdown text, scanning left to right.

    Only markup that keeps the output well formed is recognized: an opening
    tag needs its closing tag before ``limit``, a closing tag needs an
    opening tag recognized earlier, and comments or CDATA need their
    terminator. Terminator lookups are memoized so a text full of unclosed
    openers is still scanned in linear time.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.finder = TextFinder(text)
        self._open: Counter[str] = Counter()
        self._closings: Optional[defaultdict[str, list[int]]] = None

    def match(self, start: int, limit: Optional[int] = None) -> Optional[tuple[str, int]]:
        """Return the storage form and end offset of the markup at ``start``."""

        text = self.text
        limit = len(text) if limit is None else limit
        for opener, terminator in ENCLOSED_MARKUP:
            if text.startswith(opener, start):
                position = self.finder.find(terminator, start + len(opener))
                end = position + len(terminator)
                if position == -1 or end > limit:
                    return None
                return text[start:end], end

        match = TAG_RE.match(text, start, limit)
        if match is None:
            return None
        key = match.group("name").lower()
        if match.group("closing"):
            if not self._open[key]:
                return None
            self._open[key] -= 1
        elif key in VOID_ELEMENTS and not match.group("self_closing"):
            # XHTML needs void elements self-closed.
            return text[start : match.end() - 1].rstrip() + " />", match.end()
        elif not match.group("self_closing"):
            closing = self._closing_after(key, match.end())
            if closing == -1 or closing >= limit:
                return None
            self._open[key] += 1
        return match.group(0), match.end()

    def _closing_after(self, name: str, start: int) -> int:
        if self._closings is None:
            self._closings = defaultdict(list)
            for match in _CLOSING_TAG_RE.finditer(self.text):
                self._closings[match.group(1).lower()].append(match.start())
        positions = self._closings.get(name, [])
        slot = bisect.bisect_left(positions, start)
        return positions[slot] if slot < len(positions) else -1


def escape_text(text: str) -> str:
    """Escape plain text for storage format, leaving character entities intact."""

    return _BARE_AMPERSAND_RE.sub("&amp;", text).replace("<", "&lt;")


def escape_literal(text: str) -> str:
    """Escape text that must never be read as markup (inline code)."""

    return html.escape(text, quote=False)


def escape_attribute(value: str) -> str:
    return html.escape(value, quote=True)


def unescape_code(body: str) -> str:
    """Undo the entity escaping a renderer may have applied to a code body."""

    return body.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")


def cdata(body: str) -> str:
    """Wrap ``body`` in CDATA, splitting any embedded terminator."""

    return "<![CDATA[" + body.replace("]]>", "]]]]><![CDATA[>") + "]]>"


class Fence(NamedTuple):
    """An open Markdown code fence."""

    marker: str
    info: str

    @property
    def language(self) -> str:
        return self.info.split()[0] if self.info else ""


def open_fence(line: str) -> Optional[Fence]:
    match = _FENCE_OPEN_RE.match(line)
    if match is None:
        return None
    marker, info = match.group(1), match.group(2).strip()
    # A backtick fence cannot carry backticks in its info string.
    if marker[0] == "`" and "`" in info:
        return None
    return Fence(marker=marker, info=info)


def closes_fence(line: str, fence: Fence) -> bool:
    stripped = line.strip()
    return (
        len(stripped) >= len(fence.marker)
        and stripped == fence.marker[0] * len(stripped)
    )


def iter_fence_regions(lines: Iterable[str]) -> Iterator[tuple[str, bool]]:
    """Yield ``(line, literal)`` pairs where ``literal`` marks fenced body lines."""

    fence: Optional[Fence] = None
    for line in lines:
        if fence is None:
            fence = open_fence(line)
            yield line, False
        elif closes_fence(line, fence):
            fence = None
            yield line, False
        else:
            yield line, True

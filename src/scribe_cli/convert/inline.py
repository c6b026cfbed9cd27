"""Single-pass renderer for Markdown inline spans.

Rules are tried at each position in a fixed precedence order: backslash
escapes, code spans, raw markup, images, links, strong emphasis and
strikethrough, then emphasis. Text between recognized spans is escaped for
storage format.

Nested spans are rendered as sub-ranges of the same text, and closer
positions are computed once per marker, so every opener costs a binary
search rather than a rescan of the rest of the block.
"""

from __future__ import annotations

import bisect
import re
from typing import Callable, Optional

from .markup import (
    ATTACHMENT_TAG,
    FILENAME_ATTR,
    IMAGE_ALT_ATTR,
    IMAGE_MACRO,
    URL_TAG,
    URL_VALUE_ATTR,
    MarkupScanner,
    escape_attribute,
    escape_literal,
    escape_text,
)

_ESCAPABLE = frozenset("\\`*_{}[]()#+-.!<>|~")
_BACKTICK_RUN_RE = re.compile(r"`+")

Span = tuple[str, int]


class InlineRenderer:
    """Render one block's inline Markdown into storage-format markup."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.markup = MarkupScanner(text)
        self._closers: dict[str, list[int]] = {}
        self._code_runs: Optional[dict[int, list[int]]] = None
        self._rules: dict[str, Callable[[int, int], Optional[Span]]] = {
            "\\": self._escape,
            "`": self._code,
            "<": self._raw_markup,
            "!": self._image,
            "[": self._link,
            "*": self._emphasis,
            "_": self._emphasis,
            "~": self._strikethrough,
        }

    def render(self, start: int = 0, end: Optional[int] = None) -> str:
        text = self.text
        end = len(text) if end is None else end
        parts: list[str] = []
        plain_start = index = start
        while index < end:
            rule = self._rules.get(text[index])
            span = rule(index, end) if rule else None
            if span is None:
                index += 1
                continue
            markup, span_end = span
            parts.append(escape_text(text[plain_start:index]))
            parts.append(markup)
            index = plain_start = span_end
        parts.append(escape_text(text[plain_start:end]))
        return "".join(parts)

    def _find(self, marker: str, start: int, end: int) -> int:
        """Return the first ``marker`` lying inside ``[start, end)``, or -1."""

        position = self.markup.finder.find(marker, start)
        if position == -1 or position + len(marker) > end:
            return -1
        return position

    def _escape(self, index: int, end: int) -> Optional[Span]:
        following = self.text[index + 1 : min(index + 2, end)]
        if following and following in _ESCAPABLE:
            return escape_literal(following), index + 2
        return None

    def _code(self, index: int, end: int) -> Span:
        text = self.text
        run_end = index
        while run_end < end and text[run_end] == "`":
            run_end += 1
        length = run_end - index
        if self._code_runs is None:
            self._code_runs = {}
            for match in _BACKTICK_RUN_RE.finditer(text):
                self._code_runs.setdefault(len(match.group(0)), []).append(match.start())
        runs = self._code_runs.get(length, [])
        slot = bisect.bisect_left(runs, run_end)
        if slot < len(runs) and runs[slot] + length <= end:
            closing = runs[slot]
            content = text[run_end:closing]
            if len(content) > 1 and content[0] == " " and content[-1] == " " and content.strip():
                content = content[1:-1]
            return f"<code>{escape_literal(content)}</code>", closing + length
        # Unmatched run is literal text.
        return escape_literal(text[index:run_end]), run_end

    def _raw_markup(self, index: int, end: int) -> Optional[Span]:
        return self.markup.match(index, end)

    def _destination(self, index: int, end: int) -> Optional[tuple[int, str, int]]:
        """Parse ``[label](target)`` starting at the opening bracket.

        Returns the label's closing bracket, the target and the end offset.
        """

        close = self._find("]", index + 1, end)
        if close == -1 or self.text[close + 1 : close + 2] != "(":
            return None
        paren = self._find(")", close + 2, end)
        if paren == -1:
            return None
        target = self.text[close + 2 : paren].strip()
        if target:
            # Drop an optional link title.
            target = target.split()[0]
        return close, target, paren + 1

    def _image(self, index: int, end: int) -> Optional[Span]:
        if self.text[index + 1 : index + 2] != "[":
            return None
        parsed = self._destination(index + 1, end)
        if parsed is None or not parsed[1]:
            return None
        close, target, span_end = parsed
        return render_image(target, self.text[index + 2 : close]), span_end

    def _link(self, index: int, end: int) -> Optional[Span]:
        parsed = self._destination(index, end)
        if parsed is None:
            return None
        close, target, span_end = parsed
        inner = self.render(index + 1, close)
        return f'<a href="{escape_attribute(target)}">{inner}</a>', span_end

    def _emphasis(self, index: int, end: int) -> Optional[Span]:
        text = self.text
        char = text[index]
        if char == "_" and index > 0 and text[index - 1].isalnum():
            return None
        if text.startswith(char * 2, index):
            span = self._span(index, end, char * 2, "strong")
            if span is not None:
                return span
        return self._span(index, end, char, "em")

    def _strikethrough(self, index: int, end: int) -> Optional[Span]:
        if not self.text.startswith("~~", index):
            return None
        return self._span(index, end, "~~", "del")

    def _span(self, index: int, end: int, marker: str, tag: str) -> Optional[Span]:
        text = self.text
        start = index + len(marker)
        if start >= end or text[start].isspace():
            return None
        closers = self._closer_positions(marker)
        slot = bisect.bisect_right(closers, start)
        if slot == len(closers) or closers[slot] + len(marker) > end:
            return None
        position = closers[slot]
        return f"<{tag}>{self.render(start, position)}</{tag}>", position + len(marker)

    def _closer_positions(self, marker: str) -> list[int]:
        """Return every offset at which ``marker`` may close a span, ascending."""

        positions = self._closers.get(marker)
        if positions is None:
            positions = []
            position = self.text.find(marker, 1)
            while position != -1:
                if self._closes(position, marker):
                    positions.append(position)
                position = self.text.find(marker, position + 1)
            self._closers[marker] = positions
        return positions

    def _closes(self, position: int, marker: str) -> bool:
        text = self.text
        end = position + len(marker)
        if text[position - 1].isspace():
            return False
        if marker[0] == "_" and end < len(text) and text[end].isalnum():
            return False
        if len(marker) == 1:
            # A single marker never closes on half of a double one.
            if text[position - 1] == marker or text[end : end + 1] == marker:
                return False
        return True


def render_image(target: str, alt: str = "") -> str:
    """Render an image reference as the wiki's image macro."""

    if "://" in target:
        resource = f'<{URL_TAG} {URL_VALUE_ATTR}="{escape_attribute(target)}" />'
    else:
        resource = f'<{ATTACHMENT_TAG} {FILENAME_ATTR}="{escape_attribute(target)}" />'
    alt_attr = f' {IMAGE_ALT_ATTR}="{escape_attribute(alt)}"' if alt else ""
    return f"<{IMAGE_MACRO}{alt_attr}>{resource}</{IMAGE_MACRO}>"


def render_inline(text: str) -> str:
    return InlineRenderer(text).render()

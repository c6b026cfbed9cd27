"""Markdown to wiki storage-format encoder.

Lines are classified one at a time and fed to a forward-only state machine
that groups paragraphs, blockquotes, lists and fenced code into blocks.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import Optional

from .frontmatter import strip_frontmatter
from .inline import render_inline
from .markup import (
    CODE_MACRO_NAME,
    LANGUAGE_PARAMETER,
    MACRO_NAME_ATTR,
    NO_LANGUAGE,
    PARAMETER_TAG,
    PLAIN_TEXT_BODY,
    STRUCTURED_MACRO,
    Fence,
    cdata,
    closes_fence,
    escape_literal,
    escape_text,
    open_fence,
    unescape_code,
)

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*))?$")
_RULE_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_UNORDERED_RE = re.compile(r"^[ \t]*[-*][ \t]+(.*)$")
_ORDERED_RE = re.compile(r"^[ \t]*([0-9]{1,9})\.[ \t]+(.*)$")
_QUOTE_RE = re.compile(r"^ {0,3}>[ ]?(.*)$")
_MARKUP_RE = re.compile(r"^[ \t]*<(?:[A-Za-z]|/[A-Za-z]|!)")


class LineKind(enum.Enum):
    BLANK = "blank"
    FENCE = "fence"
    HEADING = "heading"
    RULE = "rule"
    UNORDERED_ITEM = "unordered_item"
    ORDERED_ITEM = "ordered_item"
    QUOTE = "quote"
    MARKUP = "markup"
    TEXT = "text"


class BlockState(enum.Enum):
    """Block the encoder is currently accumulating."""

    NONE = "none"
    PARAGRAPH = "paragraph"
    BLOCKQUOTE = "blockquote"
    UNORDERED_LIST = "unordered_list"
    ORDERED_LIST = "ordered_list"
    FENCE = "fence"


_STATE_FOR_KIND = {
    LineKind.TEXT: BlockState.PARAGRAPH,
    LineKind.QUOTE: BlockState.BLOCKQUOTE,
    LineKind.UNORDERED_ITEM: BlockState.UNORDERED_LIST,
    LineKind.ORDERED_ITEM: BlockState.ORDERED_LIST,
}


def classify_line(line: str) -> tuple[LineKind, object]:
    """Return the kind of ``line`` and its kind-specific payload."""

    if not line.strip():
        return LineKind.BLANK, None
    fence = open_fence(line)
    if fence is not None:
        return LineKind.FENCE, fence
    match = _HEADING_RE.match(line)
    if match:
        return LineKind.HEADING, (len(match.group(1)), _strip_closing_hashes(match.group(2) or ""))
    if _RULE_RE.match(line):
        return LineKind.RULE, None
    match = _UNORDERED_RE.match(line)
    if match:
        return LineKind.UNORDERED_ITEM, match.group(1)
    match = _ORDERED_RE.match(line)
    if match:
        return LineKind.ORDERED_ITEM, (int(match.group(1)), match.group(2))
    match = _QUOTE_RE.match(line)
    if match:
        return LineKind.QUOTE, match.group(1)
    if _MARKUP_RE.match(line):
        return LineKind.MARKUP, line
    return LineKind.TEXT, line.strip()


def _strip_closing_hashes(content: str) -> str:
    content = content.strip()
    trimmed = content.rstrip("#")
    if trimmed != content and (not trimmed or trimmed[-1] in " \t"):
        return trimmed.rstrip()
    return content


def render_code_macro(language: str, body: str) -> str:
    return (
        f'<{STRUCTURED_MACRO} {MACRO_NAME_ATTR}="{CODE_MACRO_NAME}">'
        f'<{PARAMETER_TAG} {MACRO_NAME_ATTR}="{LANGUAGE_PARAMETER}">'
        f"{escape_literal(language or NO_LANGUAGE)}</{PARAMETER_TAG}>"
        f"<{PLAIN_TEXT_BODY}>{cdata(unescape_code(body))}</{PLAIN_TEXT_BODY}>"
        f"</{STRUCTURED_MACRO}>"
    )


class MarkdownEncoder:
    """Accumulate classified lines into storage-format blocks."""

    def __init__(self) -> None:
        self.output: list[str] = []
        self.state = BlockState.NONE
        self.pending: list[str] = []
        self.fence: Optional[Fence] = None
        # First input line not yet represented in ``output``.
        self.consumed = 0
        self._line_number = 0

    def feed(self, line: str) -> None:
        self._line_number += 1
        if self.state is BlockState.FENCE and self.fence is not None:
            if closes_fence(line, self.fence):
                self._close_block(inclusive=True)
            else:
                self.pending.append(line)
            return

        kind, payload = classify_line(line)
        target = _STATE_FOR_KIND.get(kind, BlockState.NONE)
        if self.state is not BlockState.NONE and self.state is not target:
            self._close_block(inclusive=False)

        if kind is LineKind.BLANK:
            self._commit()
        elif kind is LineKind.FENCE:
            self.fence = payload
            self.state = BlockState.FENCE
        elif kind is LineKind.HEADING:
            level, content = payload
            self.output.append(f"<h{level}>{self._inline(content)}</h{level}>")
            self._commit()
        elif kind is LineKind.RULE:
            self.output.append("<hr />")
            self._commit()
        elif kind is LineKind.MARKUP:
            self.output.append(line)
            self._commit()
        elif kind is LineKind.UNORDERED_ITEM:
            self._list_item(BlockState.UNORDERED_LIST, payload)
        elif kind is LineKind.ORDERED_ITEM:
            number, content = payload
            self._list_item(BlockState.ORDERED_LIST, content, start=number)
        else:
            self.state = target
            self.pending.append(payload)

    def finish(self) -> str:
        if self.fence is not None:
            logger.debug("Unterminated code fence closed at end of document")
        self._close_block(inclusive=True)
        return "\n".join(self.output)

    def partial(self, lines: list[str]) -> str:
        """Return the blocks produced so far followed by the unconverted rest."""

        output = list(self.output)
        if self.state is BlockState.UNORDERED_LIST:
            output.append("</ul>")
        elif self.state is BlockState.ORDERED_LIST:
            output.append("</ol>")
        return "\n".join(output + lines[self.consumed :])

    def _commit(self) -> None:
        self.consumed = self._line_number

    def _list_item(self, state: BlockState, content: str, *, start: int = 1) -> None:
        if self.state is not state:
            if state is BlockState.UNORDERED_LIST:
                self.output.append("<ul>")
            elif start != 1:
                self.output.append(f'<ol start="{start}">')
            else:
                self.output.append("<ol>")
            self.state = state
        self.output.append(f"<li>{self._inline(content)}</li>")
        self._commit()

    def _close_block(self, *, inclusive: bool) -> None:
        state, pending = self.state, self.pending
        if state is BlockState.PARAGRAPH:
            self.output.append(self._paragraph(pending))
        elif state is BlockState.BLOCKQUOTE:
            self.output.append(f"<blockquote>{self._quote_paragraphs(pending)}</blockquote>")
        elif state is BlockState.UNORDERED_LIST:
            self.output.append("</ul>")
        elif state is BlockState.ORDERED_LIST:
            self.output.append("</ol>")
        elif state is BlockState.FENCE:
            language = self.fence.language if self.fence else ""
            self.output.append(render_code_macro(language, "\n".join(pending)))
            self.fence = None
        self.state = BlockState.NONE
        self.pending = []
        self.consumed = self._line_number if inclusive else self._line_number - 1

    def _quote_paragraphs(self, lines: list[str]) -> str:
        paragraphs: list[list[str]] = [[]]
        for line in lines:
            if line.strip():
                paragraphs[-1].append(line.strip())
            elif paragraphs[-1]:
                paragraphs.append([])
        return "".join(self._paragraph(paragraph) for paragraph in paragraphs if paragraph)

    def _paragraph(self, lines: list[str]) -> str:
        return "<p>" + self._inline("\n".join(lines)) + "</p>"

    def _inline(self, text: str) -> str:
        try:
            return render_inline(text)
        except Exception:
            logger.warning("Inline rendering failed; emitting escaped text", exc_info=True)
            return escape_text(text)


def encode(markdown: str) -> str:
    """Convert Markdown into wiki storage format.

    Never raises: if a block cannot be converted, the blocks already produced
    are kept and the remaining Markdown is appended unconverted.
    """

    content = strip_frontmatter(markdown.replace("\r\n", "\n"))
    lines = content.split("\n")
    encoder = MarkdownEncoder()
    try:
        for line in lines:
            encoder.feed(line)
        return encoder.finish()
    except Exception:
        logger.warning(
            "Markdown encoding failed near line %d; returning partial output",
            encoder.consumed + 1,
            exc_info=True,
        )
        return encoder.partial(lines)

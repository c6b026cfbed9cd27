"""Wiki storage-format to Markdown decoder.

Storage markup is tokenized in one pass into a small element tree which is
then rendered back to Markdown. Only the dialect the wiki emits is
understood; unknown elements are dropped and their text kept.
"""

from __future__ import annotations

import html
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterator, NamedTuple, Optional, Union

from .markup import (
    ATTACHMENT_TAG,
    CODE_MACRO_NAME,
    FILENAME_ATTR,
    IMAGE_MACRO,
    LANGUAGE_PARAMETER,
    MACRO_NAME_ATTR,
    NO_LANGUAGE,
    PARAMETER_TAG,
    PLAIN_TEXT_BODY,
    RICH_TEXT_BODY,
    STRUCTURED_MACRO,
    TAG_RE,
    TextFinder,
    URL_TAG,
    URL_VALUE_ATTR,
    VOID_ELEMENTS,
    iter_fence_regions,
)

logger = logging.getLogger(__name__)

_ATTR_RE = re.compile(r"([^\s=/<>\"']+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s\"'=<>`]+)))?")
_INDENTED_NEWLINE_RE = re.compile(r"\n[ \t]+")
_TAG_LIKE_RE = re.compile(r"<(?=[A-Za-z/!?])")
_BACKTICKS_RE = re.compile(r"`+")
# Characters the inline renderer would read as span markers.
_INLINE_MARKER_RE = re.compile(r"[\\`*\[\]~]|(?<![A-Za-z0-9])_|_(?![A-Za-z0-9])")
# Line openers the block classifier would read as headings, quotes or list items.
_LINE_MARKER_RE = re.compile(r"(^|\n)([ \t]*)([#>+-]|[0-9]{1,9}\.(?=\s|$))")

BLOCK_CONTAINERS = frozenset(
    {
        "table", "thead", "tbody", "tfoot", "tr", "caption", "div", "section", "article",
        "header", "footer", "nav", "aside", "figure", "figcaption", "details", "summary",
        "dl", "dt", "dd", "ac:layout", "ac:layout-section", "ac:layout-cell", RICH_TEXT_BODY,
        "ac:task-list", "ac:task",
    }
)
CELL_ELEMENTS = frozenset({"td", "th"})


class CData(str):
    """Literal character data taken from a CDATA section."""


Node = Union["Element", str]


@dataclass
class Element:
    """A storage-format element with its attributes and children."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)

    def iter(self) -> Iterator["Element"]:
        """Yield descendant elements in document order."""

        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if isinstance(node, Element):
                yield node
                stack.extend(reversed(node.children))

    def find(self, tag: str, attrs: Optional[dict[str, str]] = None) -> Optional["Element"]:
        for element in self.iter():
            if element.tag == tag and all(element.attrs.get(k) == v for k, v in (attrs or {}).items()):
                return element
        return None

    def text_content(self) -> str:
        """Return all character data below this element, entities decoded."""

        parts: list[str] = []
        stack: list[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if isinstance(node, Element):
                stack.extend(reversed(node.children))
            elif isinstance(node, CData):
                parts.append(str(node))
            else:
                parts.append(html.unescape(node))
        return "".join(parts)


class Tag(NamedTuple):
    name: str
    attrs: dict[str, str]
    closing: bool
    self_closing: bool


def _parse_attrs(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for match in _ATTR_RE.finditer(raw):
        name = match.group(1).lower()
        value = next((group for group in match.groups()[1:] if group is not None), "")
        attrs[name] = html.unescape(value)
    return attrs


def tokenize(markup: str) -> Iterator[Union[Tag, str]]:
    """Split markup into tags, text and CDATA without backtracking."""

    finder = TextFinder(markup)
    index = 0
    length = len(markup)
    while index < length:
        start = markup.find("<", index)
        if start == -1:
            yield markup[index:]
            return
        if start > index:
            yield markup[index:start]
        if markup.startswith("<![CDATA[", start):
            end = finder.find("]]>", start + 9)
            if end != -1:
                yield CData(markup[start + 9 : end])
                index = end + 3
                continue
        elif markup.startswith("<!--", start):
            end = finder.find("-->", start + 4)
            if end != -1:
                index = end + 3
                continue
        elif markup.startswith(("<!", "<?"), start):
            end = finder.find(">", start)
            if end != -1:
                index = end + 1
                continue
        else:
            match = TAG_RE.match(markup, start)
            if match:
                yield Tag(
                    name=match.group("name").lower(),
                    attrs=_parse_attrs(match.group("attrs")),
                    closing=bool(match.group("closing")),
                    self_closing=bool(match.group("self_closing")),
                )
                index = match.end()
                continue
        # Not markup after all: keep the bracket as text.
        yield "<"
        index = start + 1


def parse_storage(markup: str) -> Element:
    """Build an element tree, tolerating unbalanced tags."""

    root = Element("#document")
    stack = [root]
    # Open elements per tag name; a close tag with none open is stray.
    open_tags: Counter[str] = Counter()
    for token in tokenize(markup):
        if not isinstance(token, Tag):
            stack[-1].children.append(token)
            continue
        if token.closing:
            if not open_tags[token.name]:
                continue
            depth = len(stack) - 1
            while stack[depth].tag != token.name:
                depth -= 1
            for element in stack[depth:]:
                open_tags[element.tag] -= 1
            del stack[depth:]
            continue
        element = Element(token.name, token.attrs)
        stack[-1].children.append(element)
        if not token.self_closing and token.name not in VOID_ELEMENTS:
            stack.append(element)
            open_tags[token.name] += 1
    return root


def _escape_line_marker(match: re.Match) -> str:
    marker = match.group(3)
    if marker.endswith("."):
        escaped = marker[:-1] + "\\."
    else:
        escaped = "\\" + marker
    return match.group(1) + match.group(2) + escaped


def _text(raw: str) -> str:
    """Render character data so the encoder reads it back as the same text."""

    text = _INDENTED_NEWLINE_RE.sub("\n", html.unescape(raw))
    text = _INLINE_MARKER_RE.sub(r"\\\g<0>", text)
    text = _LINE_MARKER_RE.sub(_escape_line_marker, text)
    return _TAG_LIKE_RE.sub("&lt;", text)


def _block(content: str) -> str:
    content = content.strip()
    return f"\n\n{content}\n\n" if content else ""


def _fence(language: str, body: str) -> str:
    longest = max((len(run) for run in _BACKTICKS_RE.findall(body)), default=0)
    marker = "`" * max(3, longest + 1)
    return f"\n\n{marker}{language}\n{body}\n{marker}\n\n"


def _compact(text: str) -> list[str]:
    """Drop blank lines outside fenced code."""

    return [line for line, literal in iter_fence_regions(text.strip().split("\n")) if literal or line.strip()]


class MarkdownRenderer:
    """Render an element tree as Markdown."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[Element], str]] = {
            "p": self._paragraph,
            "strong": self._strong,
            "b": self._strong,
            "em": self._emphasis,
            "i": self._emphasis,
            "del": self._strikethrough,
            "s": self._strikethrough,
            "strike": self._strikethrough,
            "code": self._code,
            "a": self._anchor,
            "br": lambda element: "\n",
            "hr": lambda element: "\n\n---\n\n",
            "ul": self._list,
            "ol": self._list,
            "li": self._orphan_item,
            "blockquote": self._blockquote,
            "pre": self._preformatted,
            STRUCTURED_MACRO: self._macro,
            IMAGE_MACRO: self._image,
            PARAMETER_TAG: lambda element: "",
        }
        for level in range(1, 7):
            self._handlers[f"h{level}"] = self._heading

    def render(self, root: Element) -> str:
        return self._children(root)

    def _node(self, node: Node) -> str:
        if isinstance(node, CData):
            return str(node)
        if isinstance(node, str):
            return _text(node)
        handler = self._handlers.get(node.tag)
        if handler is not None:
            return handler(node)
        if node.tag in BLOCK_CONTAINERS:
            return _block(self._children(node))
        if node.tag in CELL_ELEMENTS:
            return self._children(node).strip() + " "
        return self._children(node)

    def _children(self, element: Element) -> str:
        return "".join(self._node(child) for child in element.children)

    def _heading(self, element: Element) -> str:
        level = int(element.tag[1])
        content = " ".join(self._children(element).split())
        return f"\n\n{'#' * level} {content}\n\n" if content else ""

    def _paragraph(self, element: Element) -> str:
        return _block(self._children(element))

    def _wrap(self, element: Element, marker: str) -> str:
        content = self._children(element)
        stripped = content.strip()
        if not stripped:
            return content
        leading = content[: len(content) - len(content.lstrip())]
        trailing = content[len(content.rstrip()) :]
        return f"{leading}{marker}{stripped}{marker}{trailing}"

    def _strong(self, element: Element) -> str:
        return self._wrap(element, "**")

    def _emphasis(self, element: Element) -> str:
        return self._wrap(element, "*")

    def _strikethrough(self, element: Element) -> str:
        return self._wrap(element, "~~")

    def _code(self, element: Element) -> str:
        content = element.text_content()
        if not content:
            return ""
        longest = max((len(run) for run in _BACKTICKS_RE.findall(content)), default=0)
        marker = "`" * (longest + 1)
        if content.startswith("`") or content.endswith("`"):
            content = f" {content} "
        return f"{marker}{content}{marker}"

    def _anchor(self, element: Element) -> str:
        label = self._children(element).strip()
        href = element.attrs.get("href", "").strip()
        if not href:
            return label
        return f"[{label or href}]({href})"

    def _list(self, element: Element) -> str:
        ordered = element.tag == "ol"
        try:
            number = int(element.attrs.get("start", "1"))
        except ValueError:
            number = 1
        lines: list[str] = []
        for child in element.children:
            if isinstance(child, Element) and child.tag == "li":
                marker = f"{number}. " if ordered else "- "
                lines.extend(self._item_lines(child, marker))
                number += 1
            else:
                lines.extend(_compact(self._node(child)))
        return _block("\n".join(lines))

    def _item_lines(self, item: Element, marker: str) -> list[str]:
        lines = _compact(self._children(item)) or [""]
        indent = " " * len(marker)
        return [marker + lines[0]] + [indent + line for line in lines[1:]]

    def _orphan_item(self, element: Element) -> str:
        return _block("\n".join(self._item_lines(element, "- ")))

    def _blockquote(self, element: Element) -> str:
        content = normalize_markdown(self._children(element))
        if not content:
            return ""
        return _block("\n".join(f"> {line}" if line else ">" for line in content.split("\n")))

    def _preformatted(self, element: Element) -> str:
        language = ""
        code = element.find("code")
        if code is not None:
            for name in code.attrs.get("class", "").split():
                if name.startswith("language-"):
                    language = name[len("language-") :]
                    break
        return _fence(language, element.text_content())

    def _macro(self, element: Element) -> str:
        if element.attrs.get(MACRO_NAME_ATTR) == CODE_MACRO_NAME:
            parameter = element.find(PARAMETER_TAG, {MACRO_NAME_ATTR: LANGUAGE_PARAMETER})
            language = parameter.text_content().strip() if parameter is not None else ""
            if language == NO_LANGUAGE:
                language = ""
            body = element.find(PLAIN_TEXT_BODY)
            return _fence(language, body.text_content() if body is not None else "")
        # Other macros contribute their body text only.
        return self._children(element)

    def _image(self, element: Element) -> str:
        attachment = element.find(ATTACHMENT_TAG)
        if attachment is not None and attachment.attrs.get(FILENAME_ATTR):
            filename = attachment.attrs[FILENAME_ATTR]
            return f"![{filename}]({filename})"
        url = element.find(URL_TAG)
        if url is not None and url.attrs.get(URL_VALUE_ATTR):
            value = url.attrs[URL_VALUE_ATTR]
            return f"![{value}]({value})"
        return ""


def normalize_markdown(text: str) -> str:
    """Collapse runs of blank lines outside code fences and trim the result."""

    lines: list[str] = []
    blank = False
    for line, literal in iter_fence_regions(text.split("\n")):
        if not literal and not line.strip():
            if not blank:
                lines.append("")
            blank = True
            continue
        blank = False
        lines.append(line)
    return "\n".join(lines).strip()


def plain_text(markup: str) -> str:
    """Return the character data of ``markup`` with every tag removed."""

    parts = []
    for token in tokenize(markup):
        if isinstance(token, CData):
            parts.append(str(token))
        elif isinstance(token, str):
            parts.append(html.unescape(token))
    return normalize_markdown("".join(parts))


def decode(storage: str) -> str:
    """Convert wiki storage format into Markdown.

    Never raises: if the element tree cannot be rendered the text content of
    the markup is returned instead.
    """

    try:
        return normalize_markdown(MarkdownRenderer().render(parse_storage(storage)))
    except Exception:
        logger.warning("Storage-format decoding failed; falling back to plain text", exc_info=True)
        return plain_text(storage)

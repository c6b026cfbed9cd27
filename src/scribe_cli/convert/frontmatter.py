"""Removal of leading YAML frontmatter before a document is published."""

from __future__ import annotations

FRONTMATTER_DELIMITER = "---"


def strip_frontmatter(content: str) -> str:
    """Return ``content`` without its leading frontmatter block.

    Only a block opened on the first line and closed by a later delimiter line
    is removed. Anything else, including an opening delimiter that is never
    closed, is returned unchanged.
    """

    lines = content.split("\n")
    if len(lines) < 3 or lines[0] != FRONTMATTER_DELIMITER:
        return content
    for index in range(1, len(lines)):
        if lines[index] == FRONTMATTER_DELIMITER:
            return "\n".join(lines[index + 1 :])
    return content

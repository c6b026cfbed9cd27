"""Unit tests for convert.frontmatter."""

from scribe_cli.convert.frontmatter import strip_frontmatter


class TestStripFrontmatter:
    """Test cases for strip_frontmatter."""

    def test_removes_leading_block(self):
        """Text after the closing delimiter is returned without the delimiters."""
        content = "---\ntitle: Guide\ntags: [a, b]\n---\n# Guide\n\nBody"

        assert strip_frontmatter(content) == "# Guide\n\nBody"

    def test_without_frontmatter_is_unchanged(self):
        content = "# Guide\n\n---\n\nBody"

        assert strip_frontmatter(content) == content

    def test_unclosed_block_is_preserved(self):
        """An opening delimiter that is never closed must not eat content."""
        content = "---\ntitle: Guide\n# Guide\nBody"

        assert strip_frontmatter(content) == content

    def test_fewer_than_three_lines_is_unchanged(self):
        assert strip_frontmatter("---\n---") == "---\n---"
        assert strip_frontmatter("---") == "---"
        assert strip_frontmatter("") == ""

    def test_delimiter_must_be_exact(self):
        """Lines with trailing text are not delimiters."""
        content = "--- \ntitle: x\n---\nBody"

        assert strip_frontmatter(content) == content

    def test_empty_block(self):
        assert strip_frontmatter("---\n---\nBody") == "Body"

    def test_stripping_is_idempotent(self):
        content = "---\ntitle: Guide\n---\n# Guide\n\nSome text.\n"

        once = strip_frontmatter(content)

        assert strip_frontmatter(once) == once

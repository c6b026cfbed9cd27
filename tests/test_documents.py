"""Unit tests for local Markdown documents."""

import logging
from pathlib import Path

import pytest

from scribe_cli.convert import encode
from scribe_cli.errors import DocumentError
from scribe_cli.local import DocumentMetadata, load_document, save_document, validate_path


class TestLoadDocument:
    def test_frontmatter_metadata(self, tmp_path):
        path = tmp_path / "guide.md"
        path.write_text(
            "---\ntitle: Guide\nspace_key: DOC\npage_id: 123\nversion: 3\n---\n# Guide\n",
            encoding="utf-8",
        )

        document = load_document(path)

        assert document.metadata == DocumentMetadata(title="Guide", space_key="DOC", page_id="123", version=3)
        assert document.content.startswith("---\n")

    def test_plain_markdown(self, tmp_path):
        path = tmp_path / "plain.md"
        path.write_text("# Plain\n", encoding="utf-8")

        document = load_document(path)

        assert document.metadata == DocumentMetadata()
        assert document.content == "# Plain\n"

    def test_unreadable_frontmatter_is_ignored(self, tmp_path, caplog):
        path = tmp_path / "broken.md"
        path.write_text("---\ntitle: [unclosed\n---\nbody\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="scribe_cli"):
            document = load_document(path)

        assert document.metadata == DocumentMetadata()
        assert "unreadable frontmatter" in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentError, match="failed to read file"):
            load_document(tmp_path / "absent.md")


class TestSaveDocument:
    def test_round_trip(self, tmp_path):
        metadata = DocumentMetadata(title="Guide", space_key="DOC", page_id="123", version=4)
        path = tmp_path / "out" / "guide.md"

        save_document(path, "# Guide", metadata)

        document = load_document(path)
        assert document.metadata == metadata
        assert document.content.endswith("# Guide\n")
        assert encode(document.content) == "<h1>Guide</h1>"

    def test_without_metadata(self, tmp_path):
        path = tmp_path / "plain.md"

        save_document(path, "text", DocumentMetadata())

        assert path.read_text(encoding="utf-8") == "text\n"


class TestValidatePath:
    def test_parent_traversal_is_rejected(self):
        with pytest.raises(DocumentError, match="invalid file path"):
            validate_path(Path("docs/../../etc/passwd"))

    def test_regular_path_is_returned(self):
        assert validate_path(Path("docs/guide.md")) == Path("docs/guide.md")

"""Markdown survives a trip through storage format and back."""

from scribe_cli.convert import ContentConverter, decode, encode

DOCUMENT = """# Guide

Intro with **bold**, *em* and `code`.

- one
- two

1. first
2. second

> quoted

---

```python
print("hi")
```

![diagram.png](diagram.png)"""


def test_document_round_trip():
    assert decode(encode(DOCUMENT)) == DOCUMENT


def test_storage_is_stable_after_one_round_trip():
    storage = encode(DOCUMENT)

    assert encode(decode(storage)) == storage


def test_code_body_round_trip_is_exact():
    markdown = "```js\nif (a < b && c > d) {\n\n  return `x`;\n}\n```"

    assert decode(encode(markdown)) == markdown


def test_frontmatter_does_not_reach_storage():
    storage = encode("---\ntitle: Guide\nspace_key: DOC\n---\nBody")

    assert storage == "<p>Body</p>"
    assert decode(storage) == "Body"


class TestContentConverter:
    def test_facade_delegates_to_codecs(self):
        converter = ContentConverter()

        assert converter.markdown_to_storage("# T") == "<h1>T</h1>"
        assert converter.storage_to_markdown("<h1>T</h1>") == "# T"


class TestPullPushStability:
    """Pages pulled as Markdown push back unchanged."""

    def test_literal_punctuation_survives(self):
        storage = (
            "<p>2*3*4 and [x](y) literal</p>\n"
            "<p># not a heading</p>\n"
            "<ul>\n<li>a_b and *c*</li>\n</ul>"
        )

        assert encode(decode(storage)) == storage

    def test_strikethrough_survives(self):
        storage = "<p><del>gone</del> and kept</p>"

        assert decode(storage) == "~~gone~~ and kept"
        assert encode(decode(storage)) == storage

    def test_angle_brackets_stay_text(self):
        assert encode(decode("<p>List&lt;String&gt;</p>")) == "<p>List&lt;String></p>"

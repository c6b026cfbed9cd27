"""Unit tests for convert.inline."""

import pytest

from scribe_cli.convert.inline import render_image, render_inline


class TestCodeSpans:
    def test_code_span_is_escaped(self):
        assert render_inline("`a < b`") == "<code>a &lt; b</code>"

    def test_code_span_hides_other_markers(self):
        assert render_inline("`**x**`") == "<code>**x**</code>"

    def test_double_backticks_allow_single_inside(self):
        assert render_inline("``a`b``") == "<code>a`b</code>"

    def test_one_padding_space_is_stripped(self):
        assert render_inline("`` `x` ``") == "<code>`x`</code>"

    def test_unmatched_backtick_is_literal(self):
        assert render_inline("`unclosed") == "`unclosed"


class TestEmphasis:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("**bold**", "<strong>bold</strong>"),
            ("__bold__", "<strong>bold</strong>"),
            ("*em*", "<em>em</em>"),
            ("_em_", "<em>em</em>"),
            ("**a** *b*", "<strong>a</strong> <em>b</em>"),
            ("**bold _it_**", "<strong>bold <em>it</em></strong>"),
        ],
    )
    def test_spans(self, text, expected):
        assert render_inline(text) == expected

    def test_intraword_underscores_are_literal(self):
        assert render_inline("snake_case_name") == "snake_case_name"

    def test_markers_surrounded_by_spaces_are_literal(self):
        assert render_inline("2 * 3 * 4") == "2 * 3 * 4"
        assert render_inline("* not em *") == "* not em *"

    def test_backslash_escapes_marker(self):
        assert render_inline(r"\*not em\*") == "*not em*"

    def test_backslash_before_letter_is_kept(self):
        assert render_inline(r"C:\path") == r"C:\path"


class TestLinksAndImages:
    def test_link(self):
        assert render_inline("[site](https://example.com)") == '<a href="https://example.com">site</a>'

    def test_link_label_renders_spans(self):
        assert render_inline("[a **b**](u)") == '<a href="u">a <strong>b</strong></a>'

    def test_link_title_is_dropped(self):
        assert render_inline('[t](http://x "Title")') == '<a href="http://x">t</a>'

    def test_link_target_is_attribute_escaped(self):
        assert render_inline("[q](x?a=1&b=2)") == '<a href="x?a=1&amp;b=2">q</a>'

    def test_bracket_without_target_is_literal(self):
        assert render_inline("[text] no link") == "[text] no link"

    def test_attachment_image(self):
        assert render_inline("![diagram](diagram.png)") == (
            '<ac:image ac:alt="diagram"><ri:attachment ri:filename="diagram.png" /></ac:image>'
        )

    def test_url_image_without_alt(self):
        assert render_inline("![](https://e.com/a.png)") == (
            '<ac:image><ri:url ri:value="https://e.com/a.png" /></ac:image>'
        )

    def test_render_image_escapes_attributes(self):
        assert render_image('a"b.png', "x<y") == (
            '<ac:image ac:alt="x&lt;y"><ri:attachment ri:filename="a&quot;b.png" /></ac:image>'
        )


class TestTextEscaping:
    def test_bare_ampersand(self):
        assert render_inline("a & b") == "a &amp; b"

    def test_entities_are_preserved(self):
        assert render_inline("&copy; &#169;") == "&copy; &#169;"

    def test_inline_markup_is_preserved(self):
        assert render_inline("<span>x</span>") == "<span>x</span>"

    def test_comparison_is_escaped(self):
        assert render_inline("1 < 2") == "1 &lt; 2"

    def test_less_than_between_words_is_escaped(self):
        assert render_inline("a<b") == "a&lt;b"

    def test_generic_type_is_escaped(self):
        assert render_inline("List<String>") == "List&lt;String>"

    def test_unclosed_tag_is_escaped(self):
        assert render_inline("<b>x") == "&lt;b>x"

    def test_stray_closing_tag_is_escaped(self):
        assert render_inline("a </b> b") == "a &lt;/b> b"

    def test_only_balanced_tags_are_kept(self):
        assert render_inline("<b>x</b> and <i>") == "<b>x</b> and &lt;i>"

    def test_void_element_is_self_closed(self):
        assert render_inline("a<br>b") == "a<br />b"

    def test_markup_attributes_hide_markers(self):
        assert render_inline('<span title="*x*">y</span>') == '<span title="*x*">y</span>'

    def test_comment_is_preserved(self):
        assert render_inline("a <!-- note --> b") == "a <!-- note --> b"

    def test_unterminated_comment_is_escaped(self):
        assert render_inline("a <!-- b") == "a &lt;!-- b"

    def test_tag_crossing_a_span_is_escaped(self):
        assert render_inline("*<b>x*</b>") == "<em>&lt;b>x</em>&lt;/b>"


class TestStrikethrough:
    def test_double_tilde(self):
        assert render_inline("~~gone~~") == "<del>gone</del>"

    def test_nested_spans(self):
        assert render_inline("~~old **bold**~~") == "<del>old <strong>bold</strong></del>"

    def test_single_tilde_is_literal(self):
        assert render_inline("~approx~") == "~approx~"

    def test_spaced_markers_are_literal(self):
        assert render_inline("a ~~ b") == "a ~~ b"

"""
Tests for markup normalization and value cleaning.
"""

import pytest

from harvester.parsing.document import parse_markup
from harvester.pipeline.normalizer import TextCleaner, normalize_markup


class TestNormalizeMarkup:
    """Tests for normalize_markup."""

    def test_indentation_between_tags_collapses(self):
        """Test that line breaks between tags become one space."""
        markup = "<ul>\n  <li>a</li>\n  <li>b</li>\n</ul>"
        assert normalize_markup(markup) == "<ul> <li>a</li> <li>b</li> </ul>"

    def test_line_break_inside_text_becomes_space(self):
        """Test that words split across lines stay separate."""
        assert normalize_markup("<p>Hello\n      world</p>") == "<p>Hello world</p>"

    def test_windows_line_endings(self):
        """Test CRLF handling."""
        markup = "<div>\r\n  <p>one\r\ntwo</p>\r\n</div>"
        assert normalize_markup(markup) == "<div> <p>one two</p> </div>"

    def test_result_is_trimmed(self):
        assert normalize_markup("\n\n   <p>x</p>\n  ") == "<p>x</p>"

    def test_spaces_without_line_break_are_kept(self):
        assert normalize_markup("<p>a   b</p> <b>c</b>") == "<p>a   b</p> <b>c</b>"

    @pytest.mark.parametrize("empty", ["", None])
    def test_empty_input(self, empty):
        assert normalize_markup(empty) == ""

    def test_no_line_breaks_left(self, courses_page):
        result = normalize_markup(courses_page)

        assert "\n" not in result
        assert "\r" not in result
        assert result.startswith("<html>")
        assert result.endswith("</html>")

    @pytest.mark.parametrize("markup", [
        "<p><b>Hello</b>\n  <i>World</i></p>",
        "<p><span>First</span>\r\n<span>Last</span></p>",
        "<p>\n  Intro\n  <a href='#'>link</a>\n  outro\n</p>",
    ])
    def test_text_content_unchanged(self, markup):
        """Test that inline elements on separate lines keep their word break."""
        def text(source):
            return " ".join(parse_markup(source).find_first("p").text_content().split())

        assert text(normalize_markup(markup)) == text(markup)


class TestTextCleaner:
    """Tests for TextCleaner class."""

    def test_clean_whitespace(self):
        """Test whitespace normalization."""
        cleaner = TextCleaner()

        result = cleaner.clean_text("  Hello    World!  ")
        assert result == "Hello World!"

    def test_clean_html_entities(self):
        """Test HTML entity decoding."""
        cleaner = TextCleaner()

        result = cleaner.clean_text("Price: &amp; 10 &lt; 20")
        assert result == "Price: & 10 < 20"

    def test_clean_emojis(self):
        """Test emoji removal."""
        cleaner = TextCleaner(remove_emojis=True)

        result = cleaner.clean_text("Hello \U0001F44B World \U0001F30D!")
        assert "\U0001F44B" not in result
        assert "\U0001F30D" not in result
        assert result == "Hello World !"

    def test_preserve_emojis(self):
        """Test emoji preservation when disabled."""
        cleaner = TextCleaner(remove_emojis=False)

        result = cleaner.clean_text("Hello \U0001F44B World!")
        assert "\U0001F44B" in result

    def test_control_characters_removed(self):
        cleaner = TextCleaner()
        assert cleaner.clean_text("ab\x00c\x07d") == "abcd"

    def test_unicode_normalization(self):
        """Test NFKC folding of compatibility characters."""
        assert TextCleaner().clean_text("ﬁle") == "file"
        assert TextCleaner(normalize_unicode=False).clean_text("ﬁle") == "ﬁle"

    def test_custom_cleaner(self):
        """Test that custom cleaners run after the built-in steps."""
        cleaner = TextCleaner()
        cleaner.add_cleaner(str.upper)

        assert cleaner.clean_text("  quiet   please ") == "QUIET PLEASE"

    def test_clean_record(self):
        """Test record cleaning leaves absent and boolean values alone."""
        cleaner = TextCleaner()

        record = {
            "title": "  Intro &amp; Outro ",
            "instructors": None,
            "featured": False,
            "tags": [" a ", "b  c"],
            "geo": {"lat": " 51.5 ", "lon": None},
        }

        cleaned = cleaner.clean_record(record)

        assert cleaned == {
            "title": "Intro & Outro",
            "instructors": None,
            "featured": False,
            "tags": ["a", "b c"],
            "geo": {"lat": "51.5", "lon": None},
        }
        # The input record is untouched
        assert record["title"] == "  Intro &amp; Outro "

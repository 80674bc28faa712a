"""
Unit tests for answer formatting: to_markdown and format_to_html.
"""

from app.services.formatter import format_to_html, to_markdown


class TestToMarkdown:
    """Tests for to_markdown()."""

    def test_none_and_empty(self) -> None:
        assert to_markdown(None) == ""
        assert to_markdown("") == ""

    def test_label_line_becomes_heading(self) -> None:
        assert to_markdown("Overview: the gist") == "## Overview the gist"

    def test_unicode_bullets_become_list_items(self) -> None:
        assert to_markdown("• one\n● two\n○ three") == "* one\n* two\n* three"

    def test_times_are_not_headings(self) -> None:
        assert to_markdown("at 10:30 sharp") == "at 10:30 sharp\n"

    def test_paragraphs_are_normalized(self) -> None:
        text = "First para.\r\n\r\n\r\nSecond para.\n\n- item"
        assert to_markdown(text) == "First para.\n\n\nSecond para.\n\n\n- item"


class TestFormatToHtml:
    """Tests for format_to_html()."""

    def test_none_renders_empty(self) -> None:
        assert format_to_html(None) == ""

    def test_heading_and_paragraph(self) -> None:
        html = format_to_html("Summary:\nPython is a language.")
        assert "<h2>" in html
        assert "Python is a language." in html

    def test_bullets_render_as_list(self) -> None:
        html = format_to_html("• apples\n• pears")
        assert "<ul>" in html
        assert "<li>apples</li>" in html
        assert "<li>pears</li>" in html

    def test_bold_is_rendered(self) -> None:
        assert "<strong>fast</strong>" in format_to_html("It is **fast** today.")

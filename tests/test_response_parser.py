"""
Unit tests for the button response parser.

Tests the two-state scan, field priority, fallback scanning and the
tolerance for markdown and malformed replies.
"""

import pytest

from bluebutton.geometry.models import ButtonCandidate, Point
from bluebutton.vision.response_parser import (
    ParserState,
    ResponseParser,
    find_coordinates,
    find_quoted,
    parse_buttons,
    reports_no_buttons,
)


class TestHelpers:
    """Tests for the line-level helpers."""

    def test_find_quoted_double_and_single(self):
        assert find_quoted('Text: "Save"') == "Save"
        assert find_quoted("Text: 'Log in'") == "Log in"

    def test_find_quoted_closes_on_matching_quote(self):
        assert find_quoted('Text: "Don\'t save"') == "Don't save"
        assert find_quoted('it\'s the "Next" one') == "Next"

    def test_find_quoted_none(self):
        assert find_quoted("Text: Save") is None

    def test_find_coordinates(self):
        assert find_coordinates("at (120, 45) roughly") == Point(120, 45)
        assert find_coordinates("(7,8)") == Point(7, 8)

    def test_find_coordinates_rejects_negative_and_missing(self):
        assert find_coordinates("(-5, 10)") is None
        assert find_coordinates("no numbers here") is None


class TestResponseParser:
    """Test suite for ResponseParser."""

    @pytest.fixture
    def parser(self):
        return ResponseParser()

    def test_single_button(self, parser):
        """Test the canonical one-record reply."""
        text = 'BUTTON 1:\nText: "Save"\nPosition: (120, 45)\nAppearance: rounded, dark blue'

        result = parser.parse(text)

        assert result == [ButtonCandidate("Save", Point(120, 45), "rounded, dark blue")]

    def test_multiple_buttons_keep_order(self, parser):
        text = (
            'BUTTON 1:\nText: "Cancel"\nPosition: (10, 20)\n'
            'BUTTON 2:\nText: "OK"\nPosition: (30, 40)\n'
        )

        result = parser.parse(text)

        assert [c.text for c in result] == ["Cancel", "OK"]
        assert result[1].position == Point(30, 40)

    def test_two_records_separated_by_blank_line(self, parser):
        text = 'BUTTON 1:\nText: "A"\nPosition: (3, 4)\n\nBUTTON 2:\nText: "B"\nPosition: (5, 6)'

        assert parser.parse(text) == [
            ButtonCandidate("A", Point(3, 4)),
            ButtonCandidate("B", Point(5, 6)),
        ]

    def test_punctuation_inside_quotes(self, parser):
        result = parser.parse('BUTTON 1:\nText: "Cancel, please!"')

        assert result[0].text == "Cancel, please!"

    def test_empty_and_none_input(self, parser):
        assert parser.parse("") == []
        assert parser.parse(None) == []
        assert parser.parse("\n\n   \n") == []

    def test_no_buttons_reply_yields_nothing(self, parser):
        assert parser.parse("No blue buttons detected.") == []

    def test_record_without_label_is_dropped(self, parser):
        """Test that a record with only a position never becomes a candidate."""
        text = 'BUTTON 1:\nPosition: (5, 5)\nBUTTON 2:\nText: "Go"\nPosition: (6, 6)'

        result = parser.parse(text)

        assert [c.text for c in result] == ["Go"]

    def test_record_without_position_is_kept(self, parser):
        result = parser.parse('BUTTON 1:\nText: "Help"\nAppearance: pill')

        assert len(result) == 1
        assert result[0].position is None
        assert not result[0].has_position

    def test_zero_position_is_a_real_position(self, parser):
        result = parser.parse('BUTTON 1:\nText: "Corner"\nPosition: (0, 0)')

        assert result[0].position == Point(0, 0)
        assert result[0].has_position

    def test_text_field_takes_priority_over_coordinates(self, parser):
        """Test that a text line containing a pair sets the label, not the position."""
        result = parser.parse('BUTTON 1:\nText: "Go (2, 3)"\nPosition: (50, 60)')

        assert result[0].text == "Go (2, 3)"
        assert result[0].position == Point(50, 60)

    def test_unquoted_text_uses_value_after_colon(self, parser):
        result = parser.parse('BUTTON 1:\nText: Submit\nPosition: (1, 2)')

        assert result[0].text == "Submit"

    def test_fallback_scan_fills_missing_fields(self, parser):
        """Test that free lines inside an open record supply label and position."""
        text = 'BUTTON 1:\nThe button labelled "Next" sits at (300, 400)'

        result = parser.parse(text)

        assert result == [ButtonCandidate("Next", Point(300, 400))]

    def test_fallback_does_not_override_fields(self, parser):
        text = 'BUTTON 1:\nText: "Real"\nPosition: (1, 1)\nAlso see "Other" at (9, 9)'

        result = parser.parse(text)

        assert result[0].text == "Real"
        assert result[0].position == Point(1, 1)

    def test_free_text_outside_record_is_ignored(self, parser):
        text = 'I looked at "the image" around (5, 5).\nBUTTON 1:\nText: "A"\nPosition: (1, 2)'

        result = parser.parse(text)

        assert [c.text for c in result] == ["A"]

    def test_field_without_marker_opens_record(self, parser):
        result = parser.parse('Text: "Lonely"\nPosition: (3, 4)')

        assert result == [ButtonCandidate("Lonely", Point(3, 4))]

    def test_markdown_decoration(self, parser):
        """Test that headings, bullets and bold markers do not hide fields."""
        text = (
            '### **BUTTON 1:**\n'
            '- **Text:** "Download"\n'
            '- **Position:** (640, 360)\n'
            '* Appearance: blue pill'
        )

        result = parser.parse(text)

        assert len(result) == 1
        assert result[0].text == "Download"
        assert result[0].position == Point(640, 360)
        assert result[0].shape == "blue pill"

    def test_marker_line_alone_yields_nothing(self, parser):
        """Test that a marker-shaped prose line with no fields is discarded."""
        text = 'Button analysis: none found here "x" (1, 2)'

        assert parser.parse(text) == []

    def test_word_ordinals_start_new_records(self, parser):
        text = (
            'Button One:\nText: "Save"\nPosition: (1, 2)\n'
            'Button Two:\nText: "Cancel"\nPosition: (3, 4)'
        )

        assert parser.parse(text) == [
            ButtonCandidate("Save", Point(1, 2)),
            ButtonCandidate("Cancel", Point(3, 4)),
        ]

    def test_marker_with_annotation(self, parser):
        result = parser.parse('**Button #2 (primary):**\nText: "Send"\nPosition: (8, 9)')

        assert result == [ButtonCandidate("Send", Point(8, 9))]

    def test_second_label_without_marker_starts_new_record(self, parser):
        """Test that records missing their marker lines are not merged."""
        text = 'Text: "Yes"\nPosition: (10, 10)\nText: "No"\nPosition: (20, 10)'

        assert parser.parse(text) == [
            ButtonCandidate("Yes", Point(10, 10)),
            ButtonCandidate("No", Point(20, 10)),
        ]

    def test_apostrophe_inside_double_quotes(self, parser):
        result = parser.parse('BUTTON 1:\nText: "Don\'t save"\nPosition: (1, 2)')

        assert result[0].text == "Don't save"

    def test_malformed_position_leaves_position_unset(self, parser):
        result = parser.parse('BUTTON 1:\nText: "Odd"\nPosition: somewhere near the top')

        assert result[0].position is None

    def test_parser_is_reusable(self, parser):
        parser.parse('BUTTON 1:\nText: "One"\nPosition: (1, 1)')
        second = parser.parse('BUTTON 1:\nText: "Two"\nPosition: (2, 2)')

        assert [c.text for c in second] == ["Two"]
        assert parser.state is ParserState.NO_OPEN_RECORD

    def test_parse_buttons_wrapper(self):
        assert parse_buttons('BUTTON 1:\nText: "W"\nPosition: (1, 1)')[0].text == "W"


class TestReportsNoButtons:
    """Tests for the no-buttons heuristic."""

    def test_explicit_phrase(self):
        assert reports_no_buttons("No blue buttons detected")

    def test_reply_never_mentions_button(self):
        assert reports_no_buttons("I see a login form.")

    def test_reply_with_buttons(self):
        assert not reports_no_buttons('BUTTON 1:\nText: "Save"')

    def test_empty(self):
        assert reports_no_buttons("")
        assert reports_no_buttons(None)

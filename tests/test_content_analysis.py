"""
Unit tests for main content parsing.
"""

import pytest

from bluebutton.vision.content_analysis import (
    DEFAULT_CONFIDENCE,
    MainContentAnalysis,
    parse_confidence,
    parse_main_content,
    parse_region,
)


class TestParseConfidence:

    @pytest.mark.parametrize("value,expected", [
        ("high", 0.9),
        ("Medium", 0.6),
        ("  low ", 0.3),
        ("fairly high", 0.9),
        ("unsure", DEFAULT_CONFIDENCE),
        ("", DEFAULT_CONFIDENCE),
    ])
    def test_levels(self, value, expected):
        assert parse_confidence(value) == expected


class TestParseRegion:

    def test_region(self):
        region = parse_region("Region: (10, 20, 300, 400)")

        assert region.as_tuple() == (10, 20, 300, 400)

    def test_missing_or_empty(self):
        assert parse_region("Region: unknown") is None
        assert parse_region("Region: (10, 20, 0, 400)") is None


class TestParseMainContent:
    """Tests for parse_main_content."""

    def test_structured_reply(self):
        text = (
            "Type: Article\n"
            "Main content: A news story about rockets\n"
            "Confidence: high\n"
            "Region: (0, 100, 800, 600)\n"
            "- headline\n"
            "- hero image\n"
        )

        analysis = parse_main_content(text)

        assert analysis.content_type == "Article"
        assert analysis.description == "A news story about rockets"
        assert analysis.confidence == 0.9
        assert analysis.main_region.as_tuple() == (0, 100, 800, 600)
        assert analysis.important_elements == ["headline", "hero image"]

    def test_plain_sentence_becomes_description(self):
        analysis = parse_main_content("  A video player showing a cooking tutorial.  ")

        assert analysis.description == "A video player showing a cooking tutorial."
        assert analysis.content_type == "Unknown"
        assert analysis.confidence == DEFAULT_CONFIDENCE

    def test_empty_reply(self):
        assert parse_main_content("").description == "No valid response"
        assert parse_main_content(None).description == "No valid response"

    def test_str(self):
        analysis = MainContentAnalysis("Form", "Sign-up form", confidence=0.6)

        assert str(analysis) == "Form: Sign-up form (Confidence: 60%)"

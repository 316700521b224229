"""
Unit tests for URL source classification.
"""

import pytest

from app.models.content import SourceType
from app.services.source_classifier import classify_source, coerce_source


class TestClassifySource:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", SourceType.YOUTUBE),
        ("https://youtu.be/dQw4w9WgXcQ", SourceType.YOUTUBE),
        ("https://www.linkedin.com/posts/someone_activity-123", SourceType.LINKEDIN),
        ("https://medium.com/@author/a-story-1a2b3c", SourceType.MEDIUM),
        ("https://newsletter.substack.com/p/weekly", SourceType.SUBSTACK),
        ("document://quarterly-report.pdf", SourceType.DOCUMENT),
        ("https://example.com/blog/post", SourceType.WEB),
    ])
    def test_platforms(self, url, expected):
        assert classify_source(url) == expected

    def test_case_insensitive(self):
        assert classify_source("HTTPS://WWW.YOUTUBE.COM/watch?v=abc") == SourceType.YOUTUBE

    def test_youtube_wins_over_later_patterns(self):
        """A YouTube link that mentions medium.com is still YouTube."""
        assert classify_source("https://youtube.com/watch?v=abc&ref=medium.com") == SourceType.YOUTUBE

    @pytest.mark.parametrize("url", ["", "   ", "not a url", None])
    def test_unrecognised_input_is_web(self, url):
        assert classify_source(url) == SourceType.WEB


class TestCoerceSource:

    def test_known_value(self):
        assert coerce_source(" Medium ") == SourceType.MEDIUM

    def test_enum_passthrough(self):
        assert coerce_source(SourceType.DOCUMENT) == SourceType.DOCUMENT

    def test_unknown_uses_default(self):
        assert coerce_source("podcast", default=SourceType.YOUTUBE) == SourceType.YOUTUBE

    def test_non_string_uses_default(self):
        assert coerce_source(42) == SourceType.WEB

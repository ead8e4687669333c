"""Tests for pi_search.highlight"""
from pi_search.highlight import HighlightSegment, highlight_mask, highlight_segments, search_terms


class TestSearchTerms:
    def test_splits_on_whitespace(self):
        assert search_terms("  new   york ") == ["new", "york"]
        assert search_terms("") == []


class TestHighlightMask:
    def test_exact_marks_every_occurrence(self):
        mask = highlight_mask("banana", ["an"])
        assert mask == [False, True, True, True, True, False]

    def test_exact_case_policy(self):
        assert highlight_mask("Apple", ["app"]) == [True, True, True, False, False]
        assert highlight_mask("Apple", ["app"], case_sensitive=True) == [False] * 5

    def test_fuzzy_uses_match_indices(self):
        mask = highlight_mask("Apple", ["aple"], fuzzy=True)
        assert mask == [True, False, True, True, True]

    def test_empty_terms_ignored(self):
        assert highlight_mask("abc", ["", "b"]) == [False, True, False]


class TestHighlightSegments:
    def test_segments_rejoin_to_text(self):
        text = "New York City"
        segments = highlight_segments(text, search_terms("york ci"))
        assert "".join(s.text for s in segments) == text
        assert segments == [
            HighlightSegment("New ", False),
            HighlightSegment("York", True),
            HighlightSegment(" ", False),
            HighlightSegment("Ci", True),
            HighlightSegment("ty", False),
        ]

    def test_no_terms_single_plain_segment(self):
        assert highlight_segments("Apple", []) == [HighlightSegment("Apple", False)]

    def test_empty_text(self):
        assert highlight_segments("", ["a"]) == []

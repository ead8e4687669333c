"""
Highlight helpers for rendering search results.

Produces plain match masks and segments; styling is left to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .fuzzy import FuzzyMatcher


@dataclass(frozen=True)
class HighlightSegment:
    text: str
    matched: bool


def search_terms(query: str) -> list[str]:
    """Whitespace-separated terms of *query*."""
    return query.split()


def highlight_mask(
    text: str,
    terms: Sequence[str],
    *,
    fuzzy: bool = False,
    case_sensitive: bool = False,
) -> list[bool]:
    """One flag per character of *text*, True where some term matched."""
    mask = [False] * len(text)
    if not text:
        return mask

    if fuzzy:
        for term in terms:
            if not term:
                continue
            result = FuzzyMatcher.match(term, text, case_sensitive)
            if result is None:
                continue
            for idx in result.match_indices:
                if idx < len(text):
                    mask[idx] = True
        return mask

    haystack = text if case_sensitive else text.lower()
    for term in terms:
        if not term:
            continue
        needle = term if case_sensitive else term.lower()
        start = haystack.find(needle)
        while start != -1:
            for i in range(start, min(start + len(needle), len(text))):
                mask[i] = True
            start = haystack.find(needle, start + 1)
    return mask


def highlight_segments(
    text: str,
    terms: Sequence[str],
    *,
    fuzzy: bool = False,
    case_sensitive: bool = False,
) -> list[HighlightSegment]:
    """
    Split *text* into maximal matched / unmatched runs.

    Joining the segment texts gives back *text*.
    """
    if not text:
        return []
    if not terms:
        return [HighlightSegment(text, False)]

    mask = highlight_mask(text, terms, fuzzy=fuzzy, case_sensitive=case_sensitive)
    segments: list[HighlightSegment] = []
    i = 0
    while i < len(text):
        start = i
        matched = mask[i]
        while i < len(text) and mask[i] == matched:
            i += 1
        segments.append(HighlightSegment(text[start:i], matched))
    return segments

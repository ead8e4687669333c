"""
Fuzzy matching — layered string similarity with highlight indices.

Rules are tried in order and the first that applies wins:

1. exact containment      -> score 1.0
2. ordered subsequence    -> score in [0.6, 0.95], tighter runs score higher
3. bounded edit distance  -> score below 0.6, one edit always beats two

Higher score = better match.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

T = TypeVar("T")

MAX_EDIT_DISTANCE = 2

_BOUNDARY_CHARS = " -_.,/()"

_SUBSEQUENCE_FLOOR = 0.6
_SUBSEQUENCE_RANGE = 0.35

# Best possible score for each accepted edit distance.
_EDIT_CEILINGS = {1: 0.59, 2: 0.34}


@dataclass(frozen=True)
class FuzzyMatchResult:
    """Score in (0, 1] plus the indices of *text* that matched, ascending."""

    score: float
    match_indices: tuple[int, ...]

    def __repr__(self) -> str:
        return f"FuzzyMatchResult(score={self.score:.3f}, indices={list(self.match_indices)})"


def _fold(text: str) -> str:
    # Per-character lowering keeps indices aligned with the original text.
    out = []
    for ch in text:
        low = ch.lower()
        out.append(low if len(low) == 1 else ch)
    return "".join(out)


def _is_word_boundary(text: str, index: int) -> bool:
    if index <= 0:
        return True
    return text[index - 1] in _BOUNDARY_CHARS


def _subsequence_indices(q: str, t: str) -> list[int] | None:
    indices: list[int] = []
    pos = 0
    for ch in q:
        idx = t.find(ch, pos)
        if idx == -1:
            return None
        indices.append(idx)
        pos = idx + 1

    # Pull earlier matches forward towards their successor to form runs.
    for i in range(len(q) - 2, -1, -1):
        for j in range(indices[i + 1] - 1, indices[i], -1):
            if t[j] == q[i]:
                indices[i] = j
                break
    return indices


def _subsequence_score(q: str, t: str, indices: list[int]) -> float:
    q_len = len(q)

    consecutive = 0
    for i in range(1, q_len):
        if indices[i] == indices[i - 1] + 1:
            consecutive += 1
            if i == 1 or indices[i - 1] != indices[i - 2] + 1:
                consecutive += 1
    consecutive_ratio = 1.0 if q_len <= 1 else consecutive / q_len

    span = indices[-1] - indices[0] + 1
    density = q_len / span
    position = 1.0 - indices[0] / len(t)
    boundary = 1.0 if _is_word_boundary(t, indices[0]) else 0.0

    raw = consecutive_ratio * 0.50 + density * 0.25 + position * 0.15 + boundary * 0.10
    raw = min(max(raw, 0.0), 1.0)
    return _SUBSEQUENCE_FLOOR + raw * _SUBSEQUENCE_RANGE


def _bounded_levenshtein(a: str, b: str, limit: int) -> int:
    """Levenshtein distance, or ``limit + 1`` once it is known to exceed *limit*."""
    if abs(len(a) - len(b)) > limit:
        return limit + 1

    row = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        prev = row[0]
        row[0] = i
        row_min = row[0]
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current = row[j]
            row[j] = min(row[j] + 1, row[j - 1] + 1, prev + cost)
            prev = current
            if row[j] < row_min:
                row_min = row[j]
        if row_min > limit:
            return limit + 1
    return row[len(b)]


def _edit_distance_match(q: str, t: str) -> FuzzyMatchResult | None:
    q_len = len(q)
    t_len = len(t)

    # Windows shorter than about half the query produce nonsense matches.
    min_win = max(q_len - MAX_EDIT_DISTANCE, q_len // 2 + 1, 1)
    if min_win > t_len:
        return None
    max_win = min(q_len + MAX_EDIT_DISTANCE, t_len)

    best_distance = MAX_EDIT_DISTANCE + 1
    best_start = 0
    best_len = q_len
    for win_len in range(min_win, max_win + 1):
        for start in range(0, t_len - win_len + 1):
            dist = _bounded_levenshtein(q, t[start:start + win_len], MAX_EDIT_DISTANCE)
            if dist < best_distance:
                best_distance = dist
                best_start = start
                best_len = win_len
        if best_distance <= 1:
            break

    if best_distance > MAX_EDIT_DISTANCE or best_distance == 0:
        return None
    # Two edits in a three-character query is not a typo, it is a different word.
    if best_distance * 3 >= q_len * 2:
        return None

    position = 1.0 - best_start / t_len
    penalty = 0.15 * (1.0 - position)
    if not _is_word_boundary(t, best_start):
        penalty += 0.04
    score = _EDIT_CEILINGS[best_distance] - penalty
    return FuzzyMatchResult(
        score=score,
        match_indices=tuple(range(best_start, best_start + best_len)),
    )


class FuzzyMatcher:
    """Stateless matcher; all methods are static."""

    max_edit_distance = MAX_EDIT_DISTANCE

    @staticmethod
    def match(query: str, text: str, case_sensitive: bool = False) -> FuzzyMatchResult | None:
        """
        Match *query* against *text*.

        Returns None for an empty query or text, or when no rule applies.
        Indices always refer to positions in the original *text*.
        """
        if not query or not text:
            return None

        q = query if case_sensitive else _fold(query)
        t = text if case_sensitive else _fold(text)

        if len(q) <= len(t):
            exact = t.find(q)
            if exact != -1:
                return FuzzyMatchResult(
                    score=1.0,
                    match_indices=tuple(range(exact, exact + len(q))),
                )

            indices = _subsequence_indices(q, t)
            if indices is not None:
                return FuzzyMatchResult(
                    score=_subsequence_score(q, t, indices),
                    match_indices=tuple(indices),
                )

        return _edit_distance_match(q, t)

    @staticmethod
    def match_fields(
        query: str,
        fields: Sequence[str],
        case_sensitive: bool = False,
    ) -> FuzzyMatchResult | None:
        """Best-scoring match across *fields*, or None when no field matches."""
        best: FuzzyMatchResult | None = None
        for text in fields:
            result = FuzzyMatcher.match(query, text, case_sensitive)
            if result is not None and (best is None or result.score > best.score):
                best = result
                if best.score == 1.0:
                    break
        return best


class ScoredItem(Generic[T]):
    __slots__ = ("item", "score")

    def __init__(self, item: T, score: float) -> None:
        self.item = item
        self.score = score


def fuzzy_filter(
    items: Sequence[T],
    query: str,
    get_fields: Callable[[T], Sequence[str]],
    threshold: float = 0.0,
    case_sensitive: bool = False,
) -> list[T]:
    """
    Keep items whose best field score reaches *threshold*, best first.
    Equal scores keep their input order.
    """
    scored: list[ScoredItem[T]] = []
    for item in items:
        result = FuzzyMatcher.match_fields(query, get_fields(item), case_sensitive)
        if result is not None and result.score >= threshold:
            scored.append(ScoredItem(item, result.score))

    scored.sort(key=lambda s: s.score, reverse=True)
    return [s.item for s in scored]

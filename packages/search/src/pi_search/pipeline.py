"""
Offline filter / match / sort pipeline.

A pure function of its inputs: filters (AND), then text matching, then the
comparator when one is set. Without a comparator exact matching keeps source
order and fuzzy matching orders by descending score.
"""
from __future__ import annotations

import functools
import logging
from typing import Mapping, Sequence, TypeVar

from .fuzzy import fuzzy_filter
from .types import Comparator, Predicate, SearchableFields

logger = logging.getLogger(__name__)

T = TypeVar("T")


def matches_query(
    query: str,
    fields: Sequence[str],
    case_sensitive: bool = False,
) -> bool:
    """True when any field contains *query* as a substring."""
    needle = query if case_sensitive else query.lower()
    for text in fields:
        haystack = text if case_sensitive else text.lower()
        if needle in haystack:
            return True
    return False


def apply_pipeline(
    items: Sequence[T],
    *,
    filters: Mapping[str, Predicate] | None = None,
    query: str = "",
    searchable_fields: SearchableFields | None = None,
    case_sensitive: bool = False,
    fuzzy: bool = False,
    fuzzy_threshold: float = 0.0,
    comparator: Comparator | None = None,
) -> list[T]:
    result = list(items)

    for predicate in (filters or {}).values():
        result = [item for item in result if predicate(item)]

    if query:
        if searchable_fields is None:
            logger.debug("Query %r ignored: no searchable_fields projection configured", query)
        elif fuzzy:
            result = fuzzy_filter(
                result,
                query,
                searchable_fields,
                threshold=fuzzy_threshold,
                case_sensitive=case_sensitive,
            )
        else:
            result = [
                item for item in result
                if matches_query(query, searchable_fields(item), case_sensitive)
            ]

    if comparator is not None:
        result.sort(key=functools.cmp_to_key(comparator))

    return result

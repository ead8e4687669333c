"""
pi_search — reactive search, filter, sort, pagination and selection controller
with a layered fuzzy matcher.
"""

from .cache import ResultCache
from .controller import SearchController
from .debounce import Debouncer
from .fuzzy import MAX_EDIT_DISTANCE, FuzzyMatcher, FuzzyMatchResult, fuzzy_filter
from .highlight import HighlightSegment, highlight_mask, highlight_segments, search_terms
from .pipeline import apply_pipeline, matches_query
from .scheduler import RequestScheduler
from .selection import SelectionSet
from .types import (
    AsyncLoader,
    Comparator,
    Listener,
    Predicate,
    SearchableFields,
    SearchConfig,
)

__all__ = [
    # Controller
    "SearchController",
    "SearchConfig",
    # Building blocks
    "Debouncer",
    "RequestScheduler",
    "ResultCache",
    "SelectionSet",
    "apply_pipeline",
    "matches_query",
    # Fuzzy matching
    "MAX_EDIT_DISTANCE",
    "FuzzyMatcher",
    "FuzzyMatchResult",
    "fuzzy_filter",
    # Highlighting
    "HighlightSegment",
    "highlight_mask",
    "highlight_segments",
    "search_terms",
    # Types
    "AsyncLoader",
    "Comparator",
    "Listener",
    "Predicate",
    "SearchableFields",
]

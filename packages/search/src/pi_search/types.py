"""
Search controller types and configuration.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence, Union

from pydantic import BaseModel, Field

# ─── Callables supplied by the caller ─────────────────────────────────────────

# Returns True to keep the item.
Predicate = Callable[[Any], bool]

# cmp-style total order: negative, zero or positive.
Comparator = Callable[[Any, Any], int]

# Strings an item is matched against.
SearchableFields = Callable[[Any], Sequence[str]]

# loader(query, page, page_size) -> items, or an awaitable of items
AsyncLoader = Callable[[str, int, int], Union[Sequence[Any], Awaitable[Sequence[Any]]]]

# Called with no arguments after every observable change.
Listener = Callable[[], None]

# ─── SearchConfig ─────────────────────────────────────────────────────────────


class SearchConfig(BaseModel):
    """
    Per-controller configuration.

    Assignments are validated, so a controller can reconfigure its own copy
    at runtime without ever holding an invalid setting.
    """
    debounce_ms: int = Field(default=300, ge=0)
    case_sensitive: bool = False
    min_search_length: int = Field(default=0, ge=0)
    page_size: int = Field(default=20, gt=0)

    # Online mode only; 0 disables storage
    cache_results: bool = True
    max_cache_size: int = Field(default=100, ge=0)

    fuzzy_search_enabled: bool = False
    # Minimum fuzzy score kept by the offline pipeline
    fuzzy_threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    searchable_fields: SearchableFields | None = None
    comparator: Comparator | None = None

    model_config = {"arbitrary_types_allowed": True, "validate_assignment": True}

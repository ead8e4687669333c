"""Request ids used to discard responses from superseded operations."""
from __future__ import annotations


class RequestScheduler:
    """
    Issues monotonically increasing request ids.

    Only the most recently issued id is current. A response tagged with any
    other id arrived late and must be dropped by the caller.
    """

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def issue(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, request_id: int) -> bool:
        return request_id == self._current

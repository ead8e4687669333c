"""Trailing debounce on the running asyncio loop."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Restarts its timer on each trigger; the handler passed to the last
    trigger runs once ``delay_ms`` has passed without another trigger.

    A delay of 0 runs the handler synchronously inside ``trigger``, as does
    any trigger made while no event loop is running.

    Usage:
        self._debounce = Debouncer(delay_ms=300)

        def on_text_changed(self, text):
            self._debounce.trigger(lambda: self._apply(text))
    """

    def __init__(self, delay_ms: int) -> None:
        self._delay_ms = delay_ms
        self._handle: asyncio.TimerHandle | None = None

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, handler: Callable[[], None]) -> None:
        self.cancel()
        if self._delay_ms <= 0:
            handler()
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; running debounced handler now")
            handler()
            return

        def fire() -> None:
            self._handle = None
            handler()

        self._handle = loop.call_later(self._delay_ms / 1000, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

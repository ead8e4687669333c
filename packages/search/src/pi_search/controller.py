"""
SearchController — searchable, filterable, sortable, paginated, selectable view.

Offline mode keeps every item in memory and re-runs the pipeline
synchronously on each change. Online mode (a loader is set) fetches pages
from the loader; every fetch is tagged with a request id and only the most
recently issued id may commit its result.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Generic, Iterable, Mapping, Sequence, TypeVar

from .cache import ResultCache
from .debounce import Debouncer
from .highlight import search_terms
from .pipeline import apply_pipeline
from .scheduler import RequestScheduler
from .selection import SelectionSet
from .types import AsyncLoader, Comparator, Listener, Predicate, SearchConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Never captured as loader errors.
_PROPAGATE = (asyncio.CancelledError, KeyboardInterrupt, SystemExit, GeneratorExit)


class SearchController(Generic[T]):
    """
    Owns all search state and notifies subscribers after each observable change.

    Offline:
        controller = SearchController(searchable_fields=lambda item: [item], debounce_ms=0)
        controller.set_items(["Apple", "Banana", "Cherry"])
        controller.search("App")            # items == ("Apple",)

    Online:
        controller = SearchController(page_size=20)
        controller.set_async_loader(api.search_products)
        await controller.search_now("shoes")
        await controller.load_more()

    Loader failures never propagate out of public operations; they are
    stored verbatim in ``error``. After ``dispose()`` every operation is a
    silent no-op.
    """

    def __init__(self, config: SearchConfig | None = None, **overrides: Any) -> None:
        base = config or SearchConfig()
        self._config = SearchConfig(**{**dict(base), **overrides})

        self._all_items: list[T] = []
        self._items: list[T] = []
        self._query = ""
        self._requested_query = ""
        self._has_searched = False
        self._is_loading = False
        self._is_loading_more = False
        self._error: BaseException | None = None
        self._disposed = False

        self._loader: AsyncLoader | None = None
        self._scheduler = RequestScheduler()
        self._debouncer = Debouncer(self._config.debounce_ms)
        self._cache: ResultCache[T] = ResultCache(self._config.max_cache_size)
        self._current_page = 0
        self._has_more_pages = True

        self._filters: dict[str, Predicate] = {}
        self._selection: SelectionSet[T] = SelectionSet()

        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task[None]] = set()

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def config(self) -> SearchConfig:
        """A copy of the current configuration."""
        return self._config.model_copy()

    @property
    def items(self) -> tuple[T, ...]:
        """Displayed items after filtering, matching, sorting and pagination."""
        return tuple(self._items)

    @property
    def all_items(self) -> tuple[T, ...]:
        return tuple(self._all_items)

    @property
    def query(self) -> str:
        """The last query that was actually applied."""
        return self._query

    @property
    def search_terms(self) -> tuple[str, ...]:
        return tuple(search_terms(self._query))

    @property
    def has_searched(self) -> bool:
        return self._has_searched

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_loading_more(self) -> bool:
        return self._is_loading_more

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def has_more_pages(self) -> bool:
        return self._has_more_pages

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def active_filters(self) -> Mapping[str, Predicate]:
        return MappingProxyType(dict(self._filters))

    @property
    def current_comparator(self) -> Comparator | None:
        return self._config.comparator

    @property
    def selected_items(self) -> tuple[T, ...]:
        """Selected items in selection order."""
        return self._selection.snapshot()

    # ── Subscriptions ─────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Subscribe to state changes. Returns unsubscribe function."""
        if self._disposed:
            return lambda: None
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def _notify(self) -> None:
        if self._disposed:
            return
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Search listener raised")

    # ── Items & loader ────────────────────────────────────────────────────────

    def set_items(self, items: Iterable[T]) -> None:
        """Replace the offline collection and re-run the pipeline. Selection is kept."""
        if self._disposed:
            return
        self._all_items = list(items)
        if self._loader is None:
            self._items = self._run_pipeline()
        self._notify()

    def set_async_loader(self, loader: AsyncLoader | None) -> None:
        """
        Swap the page source. Does not fetch; call search_now() or refresh().
        Passing None returns the controller to offline mode and re-runs the
        local pipeline. Fetches still in flight against the previous source
        are dropped when they finish.
        """
        if self._disposed:
            return
        self._loader = loader
        self._cache.clear()
        self._scheduler.issue()
        was_loading = self._is_loading or self._is_loading_more
        self._is_loading = False
        self._is_loading_more = False
        if loader is None:
            self._current_page = 0
            self._has_more_pages = False
            self._items = self._run_pipeline()
            self._notify()
        elif was_loading:
            self._notify()

    # ── Search ────────────────────────────────────────────────────────────────

    def search(self, query: str) -> None:
        """
        Debounced search; only the last call within the delay is evaluated.

        Without a running event loop the query is evaluated immediately.
        """
        if self._disposed:
            return
        self._debouncer.trigger(lambda: self._search(query))

    def search_now(self, query: str) -> asyncio.Task[None] | None:
        """
        Evaluate *query* immediately, cancelling any pending debounced search.

        Returns the fetch task when the loader returned an awaitable, so
        callers may await completion.
        """
        if self._disposed:
            return None
        self._debouncer.cancel()
        return self._search(query)

    def clear_query(self) -> asyncio.Task[None] | None:
        return self.search_now("")

    async def retry(self) -> None:
        """Re-issue the applied query, keeping the cache."""
        if self._disposed:
            return
        task = self._evaluate(self._query)
        if task is not None:
            await task

    async def refresh(self) -> None:
        """Drop the cache and reload the applied query from page 0."""
        if self._disposed:
            return
        self._cache.clear()
        task = self._evaluate(self._query)
        if task is not None:
            await task

    async def load_more(self) -> None:
        """
        Append the next page. No-op offline, while any load is in flight,
        or once the last page has been seen.
        """
        if (
            self._disposed
            or self._loader is None
            or self._is_loading
            or self._is_loading_more
            or not self._has_more_pages
        ):
            return

        self._is_loading_more = True
        self._error = None
        task = self._request(self._current_page + 1)
        self._notify()
        if task is not None:
            await task

    async def wait_for_idle(self) -> None:
        """Wait for outstanding fetches. Pending debounce timers are not awaited."""
        pending = [t for t in self._tasks if not t.done()]
        while pending:
            await asyncio.wait(pending)
            pending = [t for t in self._tasks if not t.done()]

    def _passes_min_length(self, query: str) -> bool:
        return not query or len(query) >= self._config.min_search_length

    def _search(self, query: str) -> asyncio.Task[None] | None:
        if self._disposed:
            return None
        self._requested_query = query
        if not self._passes_min_length(query):
            return None
        return self._evaluate(query)

    def _reevaluate(self) -> asyncio.Task[None] | None:
        # A query held back by the length gate applies as soon as it passes.
        if self._passes_min_length(self._requested_query):
            return self._evaluate(self._requested_query)
        return self._evaluate(self._query)

    def _evaluate(self, query: str) -> asyncio.Task[None] | None:
        if self._disposed:
            return None

        self._query = query
        self._has_searched = True
        self._current_page = 0
        self._error = None
        self._is_loading_more = False

        if self._loader is None:
            self._scheduler.issue()
            self._is_loading = False
            self._has_more_pages = False
            self._items = self._run_pipeline()
            self._notify()
            return None

        self._has_more_pages = True

        cached = self._cache.get(query) if self._config.cache_results else None
        if cached is not None:
            self._scheduler.issue()
            self._is_loading = False
            self._items = list(cached)
            self._has_more_pages = len(cached) >= self._config.page_size
            self._notify()
            return None

        self._is_loading = True
        task = self._request(0)
        self._notify()
        return task

    def _run_pipeline(self) -> list[T]:
        cfg = self._config
        return apply_pipeline(
            self._all_items,
            filters=self._filters,
            query=self._query,
            searchable_fields=cfg.searchable_fields,
            case_sensitive=cfg.case_sensitive,
            fuzzy=cfg.fuzzy_search_enabled,
            fuzzy_threshold=cfg.fuzzy_threshold,
            comparator=cfg.comparator,
        )

    # ── Requests ──────────────────────────────────────────────────────────────

    def _request(self, page: int) -> asyncio.Task[None] | None:
        """
        Issue a request id and call the loader for *page*.

        Synchronous results and raises commit immediately; an awaitable is
        awaited on a task that commits (and notifies) when it finishes.
        """
        loader = self._loader
        assert loader is not None
        request_id = self._scheduler.issue()
        query = self._query
        try:
            result = loader(query, page, self._config.page_size)
        except _PROPAGATE:
            raise
        except BaseException as exc:
            self._commit_error(request_id, page, exc)
            return None

        if not inspect.isawaitable(result):
            self._commit_page(request_id, page, query, result)
            return None

        task = asyncio.get_running_loop().create_task(
            self._await_page(request_id, page, query, result)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _await_page(
        self,
        request_id: int,
        page: int,
        query: str,
        pending: Awaitable[Sequence[T]],
    ) -> None:
        try:
            results = await pending
        except _PROPAGATE:
            raise
        except BaseException as exc:
            applied = self._commit_error(request_id, page, exc)
        else:
            applied = self._commit_page(request_id, page, query, results)
        if applied:
            self._notify()

    def _is_stale(self, request_id: int) -> bool:
        if self._disposed:
            return True
        if not self._scheduler.is_current(request_id):
            logger.debug(
                "Dropping response for request %d; current is %d",
                request_id, self._scheduler.current,
            )
            return True
        return False

    def _commit_page(self, request_id: int, page: int, query: str, results: Sequence[T]) -> bool:
        if self._is_stale(request_id):
            return False

        fetched = list(results)
        if page == 0:
            self._items = fetched
            self._is_loading = False
            if self._config.cache_results:
                self._cache.put(query, fetched)
        else:
            # New list; never extend a sequence a cache entry may share.
            self._items = [*self._items, *fetched]
            self._is_loading_more = False
            if fetched:
                self._current_page = page
        self._has_more_pages = len(fetched) >= self._config.page_size
        return True

    def _commit_error(self, request_id: int, page: int, error: BaseException) -> bool:
        if self._is_stale(request_id):
            return False

        logger.debug("Loader failed for page %d: %r", page, error)
        self._error = error
        if page == 0:
            self._is_loading = False
        else:
            self._is_loading_more = False
        return True

    # ── Filters & sort ────────────────────────────────────────────────────────

    def set_filter(self, key: str, predicate: Predicate) -> None:
        """
        Add or replace the filter under *key* and re-evaluate.

        Online, the predicate is not applied client-side; the change only
        invalidates the cache and re-invokes the loader.
        """
        if self._disposed:
            return
        self._filters[key] = predicate
        self._cache.clear()
        self._reevaluate()

    def remove_filter(self, key: str) -> None:
        if self._disposed or key not in self._filters:
            return
        del self._filters[key]
        self._cache.clear()
        self._reevaluate()

    def clear_filters(self) -> None:
        if self._disposed or not self._filters:
            return
        self._filters.clear()
        self._cache.clear()
        self._reevaluate()

    def set_sort_by(self, comparator: Comparator | None) -> None:
        """
        Set or remove (None) the comparator.

        Online, sort order belongs to the server: the cache is dropped and the
        loader re-invoked, but pages are never re-sorted locally.
        """
        if self._disposed:
            return
        self._config.comparator = comparator
        self._cache.clear()
        self._reevaluate()

    # ── Runtime reconfiguration ───────────────────────────────────────────────

    def set_case_sensitive(self, value: bool) -> None:
        if self._disposed or self._config.case_sensitive == value:
            return
        self._config.case_sensitive = value
        self._cache.clear()
        self._settings_changed()

    def set_min_search_length(self, value: int) -> None:
        if self._disposed or self._config.min_search_length == value:
            return
        self._config.min_search_length = value
        self._settings_changed()

    def set_fuzzy_search_enabled(self, value: bool) -> None:
        if self._disposed or self._config.fuzzy_search_enabled == value:
            return
        self._config.fuzzy_search_enabled = value
        self._cache.clear()
        self._settings_changed()

    def set_fuzzy_threshold(self, value: float) -> None:
        if self._disposed or self._config.fuzzy_threshold == value:
            return
        self._config.fuzzy_threshold = value
        self._cache.clear()
        self._settings_changed()

    def _settings_changed(self) -> None:
        if self._query or self._requested_query != self._query:
            self._reevaluate()
            return
        if self._loader is None:
            self._items = self._run_pipeline()
        self._notify()

    # ── Selection ─────────────────────────────────────────────────────────────

    def is_selected(self, item: T) -> bool:
        return item in self._selection

    def select(self, item: T) -> None:
        if self._disposed:
            return
        if self._selection.add(item):
            self._notify()

    def deselect(self, item: T) -> None:
        if self._disposed:
            return
        if self._selection.discard(item):
            self._notify()

    def toggle_selection(self, item: T) -> None:
        if self._disposed:
            return
        self._selection.toggle(item)
        self._notify()

    def select_all(self) -> None:
        """Select every displayed item."""
        if self._disposed:
            return
        if self._selection.add_all(self._items):
            self._notify()

    def deselect_all(self) -> None:
        """Deselect every displayed item; hidden selections are kept."""
        if self._disposed:
            return
        if self._selection.discard_all(self._items):
            self._notify()

    def select_where(self, predicate: Callable[[T], bool]) -> None:
        if self._disposed:
            return
        if self._selection.add_where(self._items, predicate):
            self._notify()

    def deselect_where(self, predicate: Callable[[T], bool]) -> None:
        if self._disposed:
            return
        if self._selection.discard_where(self._items, predicate):
            self._notify()

    def clear_selection(self) -> None:
        """Deselect everything, displayed or not."""
        if self._disposed:
            return
        if self._selection.clear():
            self._notify()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Terminal. Cancels the debounce timer and drops selection, cache and listeners."""
        if self._disposed:
            return
        self._disposed = True
        self._debouncer.cancel()
        self._selection.clear()
        self._cache.clear()
        self._listeners.clear()

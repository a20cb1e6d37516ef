# =============================================================================
# scentbox_core/offline/list_orchestrator.py
# Paginated catalog list session: cache-first reads, remote refresh
# =============================================================================
"""
ListOrchestrator - one catalog list session (search field + filter + sort).

States:
    IDLE -> LOADING -> READY
    READY -> LOADING_MORE -> READY
    READY -> REFRESHING -> READY

Every reload bumps a generation counter and cancels the previous token;
results of an older generation are discarded, so the latest search text
wins regardless of which request finishes first. Search text changes are
debounced before they trigger a reload.
"""

from __future__ import annotations
import threading
from enum import Enum
from typing import Callable, List, Optional, Tuple

from scentbox_core.data.catalog_source import RemoteCatalogSource
from scentbox_core.data.retry import INITIAL_DELAY, MAX_ATTEMPTS, with_retry
from scentbox_core.domain import CatalogItem, PerfumeFilter, SortOption
from scentbox_core.errors import ErrorReport, NoConnectionError, OperationCancelled, handle_error
from scentbox_core.logging import get_logger, record
from scentbox_core.utils.cancellation import CancellationToken
from .cache_service import CacheService
from .connection_manager import ConnectivityMonitor

logger = get_logger(__name__)

PAGE_SIZE = 20
SEARCH_DEBOUNCE = 0.3  # seconds


class ListState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    LOADING_MORE = "loading_more"
    REFRESHING = "refreshing"


class ListOrchestrator:
    """
    Drives one list: which items are shown, whether more can be loaded,
    and what error (if any) the screen should show.
    """

    def __init__(
        self,
        cache: CacheService,
        remote: RemoteCatalogSource,
        connectivity: ConnectivityMonitor,
        page_size: int = PAGE_SIZE,
        search_debounce: float = SEARCH_DEBOUNCE,
        retry_attempts: int = MAX_ATTEMPTS,
        retry_initial_delay: float = INITIAL_DELAY,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.cache = cache
        self.remote = remote
        self.connectivity = connectivity
        self.page_size = page_size
        self.search_debounce = search_debounce
        self.retry_attempts = retry_attempts
        self.retry_initial_delay = retry_initial_delay
        self._sleep = sleep

        self._lock = threading.RLock()
        self._generation = 0
        self._token: Optional[CancellationToken] = None
        self._search_timer: Optional[threading.Timer] = None
        self._count_thread: Optional[threading.Thread] = None
        self._callbacks: List[Callable[["ListOrchestrator"], None]] = []

        self._state = ListState.IDLE
        self._items: List[CatalogItem] = []
        self._remote_page = -1
        self._remote_search = False
        self._has_more = False
        self._error: Optional[ErrorReport] = None
        self._total_count: Optional[int] = None
        self._search_text = ""
        self._filter = PerfumeFilter()
        self._sort = SortOption.NAME_ASC

        self.brands: List[str] = []
        self.concentrations: List[str] = []

    # =========================================================================
    # OBSERVABLE STATE
    # =========================================================================

    @property
    def state(self) -> ListState:
        return self._state

    @property
    def items(self) -> List[CatalogItem]:
        with self._lock:
            return list(self._items)

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def error(self) -> Optional[ErrorReport]:
        return self._error

    @property
    def total_count(self) -> Optional[int]:
        return self._total_count

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def filter(self) -> PerfumeFilter:
        return self._filter

    @property
    def sort(self) -> SortOption:
        return self._sort

    @property
    def is_loading(self) -> bool:
        return self._state in (ListState.LOADING, ListState.LOADING_MORE, ListState.REFRESHING)

    @property
    def is_offline(self) -> bool:
        return not self.connectivity.is_connected

    @property
    def generation(self) -> int:
        return self._generation

    def register_callback(self, callback: Callable[["ListOrchestrator"], None]) -> None:
        """Called after every visible state change."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Error in list callback: {e}")

    # =========================================================================
    # GENERATIONS
    # =========================================================================

    def _next_generation(self) -> int:
        """Supersede whatever is in flight. Caller holds the lock."""
        self._generation += 1
        if self._token is not None:
            self._token.cancel()
        self._token = CancellationToken(f"list:{self._generation}")
        return self._generation

    def _publish(self, generation: int, **changes) -> None:
        """Apply state changes if ``generation`` is still current."""
        with self._lock:
            if generation != self._generation:
                raise OperationCancelled("stale list update")
            for name, value in changes.items():
                setattr(self, f"_{name}", value)
        self._notify()

    def _retry(self, operation, token: CancellationToken, description: str):
        return with_retry(
            operation,
            max_attempts=self.retry_attempts,
            initial_delay=self.retry_initial_delay,
            sleep=self._sleep,
            token=token,
            description=description,
        )

    def _fetch_remote(
        self,
        first_page: int,
        offset: int,
        query: str,
        filter: PerfumeFilter,
        sort: SortOption,
        token: CancellationToken,
    ) -> Tuple[List[CatalogItem], int, bool]:
        """
        Fetch remote pages from ``first_page`` on until one yields rows to show
        or the remote runs out.

        Browsing caches each page and re-reads the local view from ``offset``;
        searching shows the remote rows as they are.

        Returns:
            (items to show, last remote page fetched, whether the remote has more)
        """
        remote_page = first_page
        while True:
            page = self._retry(
                lambda: self.remote.fetch_page(remote_page, self.page_size, filter, sort, query or None),
                token,
                f"fetch catalog page {remote_page}",
            )
            token.raise_if_cancelled()

            if query:
                shown = page.items
            else:
                self.cache.cache_page(page.items, token)
                shown = self.cache.load_slice(offset, self.page_size, filter, sort)

            more = page.is_full(self.page_size)
            if shown or not more:
                return shown, remote_page, more
            remote_page += 1

    # =========================================================================
    # LOADING
    # =========================================================================

    def load_data(self, force_refresh: bool = False) -> List[CatalogItem]:
        """
        Load the first page: local cache first, then the remote when online
        and the cache is stale (or ``force_refresh``).

        Returns:
            The items shown after the load
        """
        with self._lock:
            generation = self._next_generation()
            token = self._token
            query = self._search_text.strip()
            filter = self._filter
            sort = self._sort
            self._error = None
            if force_refresh and self._items:
                self._state = ListState.REFRESHING
            else:
                self._state = ListState.LOADING
                self._items = []
                self._has_more = False
                self._remote_page = -1
                self._remote_search = False
        self._notify()

        shown_local = False
        try:
            local = self.cache.load_slice(0, self.page_size, filter, sort, query)
            if local:
                self._publish(
                    generation,
                    items=local,
                    remote_page=-1,
                    remote_search=False,
                    has_more=len(local) == self.page_size,
                )
                shown_local = True

            if not self.connectivity.is_connected:
                if not shown_local:
                    raise NoConnectionError()
                logger.debug("Offline, showing cached items")
                return self.items

            if shown_local and not force_refresh and not self.cache.needs_refresh:
                return self.items

            token.raise_if_cancelled()
            shown, remote_page, more = self._fetch_remote(0, 0, query, filter, sort, token)
            if query:
                # Search results are shown but not cached
                has_more = more
            else:
                has_more = more or len(shown) == self.page_size
            self._publish(
                generation,
                items=shown,
                remote_page=remote_page,
                remote_search=bool(query),
                has_more=has_more,
            )

            record("perfumes", "debug", f"Loaded {len(self._items)} items (query={query!r})")
            self._start_total_count(generation, token, query, filter)
            return self.items

        except OperationCancelled:
            logger.debug(f"Load generation {generation} superseded")
            return self.items
        except Exception as e:
            report = handle_error(e)
            if generation == self._generation and not shown_local:
                self._error = report
            return self.items
        finally:
            with self._lock:
                if generation == self._generation:
                    self._state = ListState.READY
            self._notify()

    def load_more_if_needed(self, item: CatalogItem) -> bool:
        """
        Load the next page when ``item`` is the last one shown.

        A search keeps reading from wherever its first page came from, so
        local offsets and remote pages never mix. Browsing reads the cache
        and falls back to the remote when the cached page is short or stale.

        Returns:
            True if a page was requested
        """
        with self._lock:
            if (
                not self._items
                or self._items[-1].id != item.id
                or not self._has_more
                or self._state != ListState.READY
            ):
                return False
            self._state = ListState.LOADING_MORE
            generation = self._generation
            token = self._token
            offset = len(self._items)
            remote_page = self._remote_page
            remote_search = self._remote_search
            query = self._search_text.strip()
            filter = self._filter
            sort = self._sort
        self._notify()

        try:
            if remote_search:
                if not self.connectivity.is_connected:
                    raise NoConnectionError()
                page_items, remote_page, has_more = self._fetch_remote(
                    remote_page + 1, offset, query, filter, sort, token
                )
            else:
                page_items = self.cache.load_slice(offset, self.page_size, filter, sort, query)
                has_more = len(page_items) == self.page_size
                if (
                    not query
                    and self.connectivity.is_connected
                    and (not has_more or self.cache.needs_refresh)
                ):
                    # Remote rows before the shown offset are already covered
                    first_page = max(remote_page + 1, offset // self.page_size)
                    page_items, remote_page, more = self._fetch_remote(
                        first_page, offset, query, filter, sort, token
                    )
                    has_more = more or len(page_items) == self.page_size

            with self._lock:
                if generation != self._generation:
                    raise OperationCancelled("stale page")
                self._items = self._items + page_items
                self._remote_page = remote_page
                self._has_more = has_more
        except OperationCancelled:
            logger.debug(f"Page after offset {offset} superseded")
        except Exception as e:
            # Already shown items stay; the next scroll retries
            handle_error(e)
        finally:
            with self._lock:
                if generation == self._generation:
                    self._state = ListState.READY
            self._notify()
        return True

    def refresh(self) -> List[CatalogItem]:
        """Pull-to-refresh."""
        return self.load_data(force_refresh=True)

    def retry(self) -> List[CatalogItem]:
        """Retry after an error was shown."""
        return self.load_data()

    # =========================================================================
    # INPUTS
    # =========================================================================

    def set_search_text(self, text: str) -> None:
        """
        Update the search text; the reload runs after the debounce delay.

        The previous request is superseded immediately.
        """
        with self._lock:
            self._search_text = text
            self._next_generation()
            if self._search_timer is not None:
                self._search_timer.cancel()
            self._search_timer = threading.Timer(self.search_debounce, self._debounced_search, args=(text,))
            self._search_timer.daemon = True
            self._search_timer.start()

    def _debounced_search(self, text: str) -> None:
        if text != self._search_text:
            return
        self.load_data()

    def set_filter(self, filter: PerfumeFilter) -> List[CatalogItem]:
        with self._lock:
            self._filter = filter
        record("perfumes", "debug", f"Filter changed ({filter.active_count} active)")
        return self.load_data()

    def clear_filter(self) -> List[CatalogItem]:
        return self.set_filter(PerfumeFilter())

    def set_sort(self, sort: SortOption) -> List[CatalogItem]:
        with self._lock:
            self._sort = sort
        return self.load_data()

    def load_facets(self) -> None:
        """Brand and concentration values for the filter sheet."""
        if not self.connectivity.is_connected:
            return
        token = CancellationToken("facets")
        try:
            self.brands = self._retry(lambda: self.remote.list_facet_values("brand"), token, "list brands")
            self.concentrations = self._retry(
                lambda: self.remote.list_facet_values("concentration"), token, "list concentrations"
            )
        except Exception as e:
            handle_error(e, user_message="Filter options could not be loaded.")
        self._notify()

    # =========================================================================
    # TOTAL COUNT / LIFECYCLE
    # =========================================================================

    def _start_total_count(
        self,
        generation: int,
        token: CancellationToken,
        query: str,
        filter: PerfumeFilter,
    ) -> None:
        def fetch_count():
            try:
                count = self._retry(
                    lambda: self.remote.total_count(query or None, filter),
                    token,
                    "count catalog items",
                )
                self._publish(generation, total_count=count)
            except OperationCancelled:
                pass
            except Exception as e:
                logger.warning(f"Total count unavailable: {e}")

        self._count_thread = threading.Thread(target=fetch_count, daemon=True, name="ListTotalCount")
        self._count_thread.start()

    def wait_idle(self, timeout: float = 5.0) -> None:
        """Join the pending debounce timer and count thread (tests, shutdown)."""
        timer = self._search_timer
        if timer is not None:
            timer.join(timeout)
        thread = self._count_thread
        if thread is not None:
            thread.join(timeout)

    def close(self) -> None:
        with self._lock:
            self._next_generation()
            if self._search_timer is not None:
                self._search_timer.cancel()
            self._state = ListState.IDLE

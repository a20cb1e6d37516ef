# =============================================================================
# scentbox_core/offline/cache_service.py
# Catalog cache: write-through of remote pages and staleness tracking
# =============================================================================
"""
CacheService - the only writer of catalog items into the local store.

Remote pages are upserted in a single write batch; the last-synced
timestamp is stamped only after the batch commits, so a failed or
cancelled write never makes stale data look fresh. The timestamp lives in
a small JSON state file next to the database.
"""

from __future__ import annotations
import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from scentbox_core.domain import CatalogItem, PerfumeFilter, SortOption
from scentbox_core.errors import StorageError
from scentbox_core.logging import get_logger, record
from scentbox_core.utils.cancellation import CancellationToken, check
from .local_database import LocalDatabase

logger = get_logger(__name__)

STALENESS_THRESHOLD = 300  # seconds

Clock = Callable[[], datetime]


class SyncTimestampFile:
    """Last successful catalog sync, persisted as JSON."""

    KEY = "catalog_last_synced_at"

    def __init__(self, path: Optional[Union[str, Path]] = None):
        # None keeps the value in memory only
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._memory: dict = {}

    def _load(self) -> dict:
        if self.path is None:
            return dict(self._memory)
        if self.path.exists():
            try:
                with open(self.path, "r") as f:
                    return json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Ignoring unreadable sync state {self.path}: {e}")
                return {}
        return {}

    def _save(self, data: dict) -> None:
        if self.path is None:
            self._memory = dict(data)
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except IOError as e:
            raise StorageError(f"Cannot write sync state: {e}") from e

    def get(self) -> Optional[datetime]:
        with self._lock:
            value = self._load().get(self.KEY)
        if not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring invalid sync timestamp: {value!r}")
            return None

    def set(self, value: datetime) -> None:
        with self._lock:
            data = self._load()
            data[self.KEY] = value.isoformat()
            self._save(data)

    def clear(self) -> None:
        with self._lock:
            data = self._load()
            data.pop(self.KEY, None)
            self._save(data)


class CacheService:
    """
    Local catalog reads plus write-through of remote pages.

    Reads never touch the network.
    """

    def __init__(
        self,
        database: LocalDatabase,
        timestamp_file: Optional[SyncTimestampFile] = None,
        staleness_seconds: float = STALENESS_THRESHOLD,
        clock: Clock = datetime.now,
    ):
        self.database = database
        self.timestamp_file = timestamp_file or SyncTimestampFile()
        self.staleness_seconds = staleness_seconds
        self._clock = clock

    @property
    def last_synced_at(self) -> Optional[datetime]:
        return self.timestamp_file.get()

    @property
    def needs_refresh(self) -> bool:
        """True if never synced or the last sync is older than the threshold."""
        last = self.last_synced_at
        if last is None:
            return True
        return (self._clock() - last).total_seconds() > self.staleness_seconds

    def invalidate(self) -> None:
        self.timestamp_file.clear()
        logger.info("Catalog cache invalidated")

    # =========================================================================
    # WRITES
    # =========================================================================

    def cache_page(self, remote_items: List[CatalogItem], token: Optional[CancellationToken] = None) -> int:
        """
        Upsert remote items in one batch, then stamp the sync time.

        Returns:
            Number of items written

        Raises:
            StorageError: the batch was rolled back, timestamp untouched
            OperationCancelled: cancelled before or during the batch
        """
        check(token)
        with self.database.write_batch():
            for item in remote_items:
                check(token)
                self.database.upsert(item)

        self.timestamp_file.set(self._clock())
        record("cache", "debug", f"Cached {len(remote_items)} items")
        return len(remote_items)

    def ensure_item(self, item: CatalogItem) -> None:
        """Materialise an item shown from remote search before it gets a status."""
        if self.database.get_item(item.id) is None:
            self.database.upsert(item)
            logger.debug(f"Materialised item {item.id} for status change")

    # =========================================================================
    # READS
    # =========================================================================

    def load_slice(
        self,
        offset: int,
        limit: int,
        filter: Optional[PerfumeFilter] = None,
        sort: SortOption = SortOption.NAME_ASC,
        query: Optional[str] = None,
    ) -> List[CatalogItem]:
        """
        Rows ``offset`` to ``offset + limit`` of the local view.

        Searches by name when ``query`` is non-empty.
        """
        order_by, descending = sort.local_order
        if query:
            return self.database.search_page(
                query,
                offset=offset,
                limit=limit,
                order_by=order_by,
                descending=descending,
                filter=filter,
            )
        return self.database.find_page(
            order_by=order_by,
            offset=offset,
            limit=limit,
            descending=descending,
            filter=filter,
        )

    def load_page(
        self,
        page: int,
        page_size: int,
        filter: Optional[PerfumeFilter] = None,
        sort: SortOption = SortOption.NAME_ASC,
    ) -> List[CatalogItem]:
        return self.load_slice(page * page_size, page_size, filter, sort)

    def search_page(
        self,
        query: str,
        page: int,
        page_size: int,
        filter: Optional[PerfumeFilter] = None,
        sort: SortOption = SortOption.NAME_ASC,
    ) -> List[CatalogItem]:
        return self.load_slice(page * page_size, page_size, filter, sort, query=query)

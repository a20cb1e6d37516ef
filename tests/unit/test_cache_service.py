# =============================================================================
# tests/unit/test_cache_service.py
# Unit Tests for CacheService and the sync timestamp file
# =============================================================================

import json
import pytest


class TestStaleness:
    """Test the refresh decision"""

    def test_never_synced_needs_refresh(self, cache):
        assert cache.last_synced_at is None
        assert cache.needs_refresh

    def test_fresh_after_caching(self, cache, sample_items, clock):
        cache.cache_page(sample_items[:3])

        assert cache.last_synced_at == clock.now
        assert not cache.needs_refresh

    def test_stale_after_threshold(self, cache, sample_items, clock):
        """Exactly at the threshold is still fresh, one second later is stale"""
        cache.cache_page(sample_items[:3])

        clock.advance(300)
        assert not cache.needs_refresh
        clock.advance(1)
        assert cache.needs_refresh

    def test_invalidate(self, cache, sample_items):
        cache.cache_page(sample_items[:3])
        cache.invalidate()

        assert cache.needs_refresh


class TestCachePage:
    """Test write-through of remote pages"""

    def test_items_are_written(self, cache, database, sample_items):
        written = cache.cache_page(sample_items)

        assert written == 12
        assert database.count_items() == 12

    def test_cancelled_batch_writes_nothing(self, cache, database, sample_items):
        """A cancelled token leaves the store and the timestamp untouched"""
        from scentbox_core.errors import OperationCancelled
        from scentbox_core.utils.cancellation import CancellationToken

        token = CancellationToken("test")
        token.cancel()

        with pytest.raises(OperationCancelled):
            cache.cache_page(sample_items, token)

        assert database.count_items() == 0
        assert cache.last_synced_at is None

    def test_failed_write_keeps_old_timestamp(self, cache, database, sample_items, clock):
        """A storage failure rolls back and does not refresh the stamp"""
        from unittest.mock import patch
        from scentbox_core.errors import StorageError

        cache.cache_page(sample_items[:2])
        stamped = cache.last_synced_at
        clock.advance(60)

        with patch.object(database, "upsert", side_effect=StorageError("disk full")):
            with pytest.raises(StorageError):
                cache.cache_page(sample_items[2:])

        assert cache.last_synced_at == stamped
        assert database.count_items() == 2

    def test_ensure_item_materialises_once(self, cache, database, make_item):
        item = make_item("remote-1", "Search Hit")

        cache.ensure_item(item)
        cache.ensure_item(item)

        assert database.count_items() == 1


class TestCacheReads:
    """Test paged reads through the sort option"""

    def test_load_page_uses_sort(self, cache, sample_items):
        from scentbox_core.domain import SortOption

        cache.cache_page(sample_items)

        page = cache.load_page(0, 3, sort=SortOption.NAME_DESC)

        assert [i.name for i in page] == ["Viking", "Silver Mountain Water", "Sauvage"]

    def test_load_second_page(self, cache, sample_items):
        cache.cache_page(sample_items)

        page = cache.load_page(1, 5)

        assert [i.name for i in page] == ["Fahrenheit", "Green Irish Tweed", "J'adore", "No. 5", "Sauvage"]

    def test_search_page(self, cache, sample_items):
        cache.cache_page(sample_items)

        assert [i.name for i in cache.search_page("irish", 0, 5)] == ["Green Irish Tweed"]

    def test_load_slice_at_any_offset(self, cache, sample_items):
        cache.cache_page(sample_items)

        assert [i.name for i in cache.load_slice(3, 2)] == ["Coco", "Dune"]
        assert [i.name for i in cache.load_slice(1, 2, query="e")] == ["Aventus", "Bleu"]


class TestSyncTimestampFile:
    """Test the JSON state file"""

    def test_persists_to_disk(self, tmp_path):
        from datetime import datetime
        from scentbox_core.offline.cache_service import SyncTimestampFile

        path = tmp_path / "state" / "sync_state.json"
        stamp = datetime(2025, 6, 1, 12, 0)
        SyncTimestampFile(path).set(stamp)

        assert json.loads(path.read_text())["catalog_last_synced_at"] == stamp.isoformat()
        assert SyncTimestampFile(path).get() == stamp

    def test_unreadable_file_means_never_synced(self, tmp_path):
        from scentbox_core.offline.cache_service import SyncTimestampFile

        path = tmp_path / "sync_state.json"
        path.write_text("{not json")

        assert SyncTimestampFile(path).get() is None

    def test_clear(self, tmp_path):
        from datetime import datetime
        from scentbox_core.offline.cache_service import SyncTimestampFile

        stamp_file = SyncTimestampFile(tmp_path / "sync_state.json")
        stamp_file.set(datetime(2025, 1, 1))
        stamp_file.clear()

        assert stamp_file.get() is None

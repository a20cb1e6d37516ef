# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock


USER_ID = "user-1"


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

def build_item(item_id, name, brand="Chanel", performance=3.0, **kwargs):
    """Build a CatalogItem with sensible defaults"""
    from scentbox_core.domain import Brand, CatalogItem

    return CatalogItem(
        id=item_id,
        name=name,
        brand=Brand(brand, kwargs.pop("country", "France")) if brand else None,
        performance=performance,
        **kwargs,
    )


@pytest.fixture
def sample_items():
    """Twelve items across three brands with notes and occasions"""
    from scentbox_core.domain import Note

    brands = ["Chanel", "Dior", "Creed"]
    names = [
        "Bleu", "Sauvage", "Aventus", "No. 5", "J'adore", "Silver Mountain Water",
        "Coco", "Fahrenheit", "Green Irish Tweed", "Allure", "Dune", "Viking",
    ]
    base = datetime(2024, 1, 1)
    items = []
    for i, name in enumerate(names):
        items.append(
            build_item(
                f"item-{i:02d}",
                name,
                brand=brands[i % 3],
                performance=1.0 + (i % 5),
                concentration="EDP" if i % 2 else "EDT",
                longevity="Long" if i % 3 == 0 else "Moderate",
                occasions=["Evening"] if i % 2 else ["Daily", "Office"],
                top_notes=[Note("Bergamot", "Citrus")] if i % 2 else [Note("Lemon", "Citrus")],
                base_notes=[Note("Vanilla", "Gourmand")],
                created_at=base + timedelta(days=i),
            )
        )
    return items


@pytest.fixture
def catalog(sample_items):
    """Alias used by the list tests"""
    return sample_items


# =============================================================================
# CORE FIXTURES
# =============================================================================

@pytest.fixture
def database():
    """Initialized in-memory local database"""
    from scentbox_core.offline.local_database import LocalDatabase

    db = LocalDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


class FakeClock:
    """Controllable replacement for datetime.now"""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 6, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(database, clock):
    from scentbox_core.offline.cache_service import CacheService, SyncTimestampFile

    return CacheService(database, SyncTimestampFile(), clock=clock)


@pytest.fixture
def connectivity():
    """Connectivity monitor that starts online and never probes the network"""
    from scentbox_core.offline.connection_manager import ConnectivityMonitor

    monitor = ConnectivityMonitor(probe=lambda: (True, True))
    monitor.set_connected(True)
    return monitor


@pytest.fixture
def auth():
    from scentbox_core.auth import StaticAuthContext

    return StaticAuthContext(USER_ID, "alice@example.com")


@pytest.fixture
def sleeps():
    """Records retry delays instead of sleeping"""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_catalog_source(sample_items):
    from scentbox_core.data.mock_sources import MockCatalogSource

    return MockCatalogSource(sample_items)


@pytest.fixture
def mock_status_source():
    from scentbox_core.data.mock_sources import MockUserStatusSource

    return MockUserStatusSource()


@pytest.fixture
def mock_review_source():
    from scentbox_core.data.mock_sources import MockReviewSource

    return MockReviewSource(usernames={USER_ID: "alice"})


@pytest.fixture
def mock_supabase():
    """Mock Supabase client whose query builder returns itself"""
    mock_client = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "ilike", "order", "range", "limit", "upsert", "delete", "insert", "update"):
        getattr(query, method).return_value = query
    query.execute.return_value.data = []
    query.execute.return_value.count = 0
    mock_client.table.return_value = query
    mock_client.query = query
    return mock_client


@pytest.fixture
def sync_engine(database, mock_status_source, auth, connectivity, fake_sleep):
    from scentbox_core.offline.sync_engine import SyncEngine

    return SyncEngine(database, mock_status_source, auth, connectivity, sleep=fake_sleep)


@pytest.fixture
def orchestrator(cache, mock_catalog_source, connectivity, fake_sleep):
    from scentbox_core.offline.list_orchestrator import ListOrchestrator

    session = ListOrchestrator(
        cache,
        mock_catalog_source,
        connectivity,
        page_size=5,
        search_debounce=0.05,
        sleep=fake_sleep,
    )
    yield session
    session.close()


@pytest.fixture
def make_item():
    """Factory fixture for single catalog items"""
    return build_item

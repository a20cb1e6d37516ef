# =============================================================================
# scentbox_core/data/__init__.py
# Remote data access: Supabase client, remote sources, mocks and retry
# =============================================================================

from .supabase_client import (
    get_supabase_client,
    close_supabase_client,
    SupabaseTable,
)
from .catalog_source import (
    CatalogPage,
    RemoteCatalogSource,
    SupabaseCatalogSource,
    escape_like_pattern,
    build_search_pattern,
    apply_client_filters,
    item_from_row,
    FACETS,
)
from .user_status_source import (
    RemoteUserStatusSource,
    SupabaseUserStatusSource,
)
from .review_source import (
    RemoteReviewSource,
    SupabaseReviewSource,
)
from .mock_sources import (
    MockCatalogSource,
    MockUserStatusSource,
    MockReviewSource,
    sample_catalog,
)
from .retry import with_retry, backoff_delay, MAX_ATTEMPTS

__all__ = [
    "get_supabase_client",
    "close_supabase_client",
    "SupabaseTable",
    "CatalogPage",
    "RemoteCatalogSource",
    "SupabaseCatalogSource",
    "escape_like_pattern",
    "build_search_pattern",
    "apply_client_filters",
    "item_from_row",
    "FACETS",
    "RemoteUserStatusSource",
    "SupabaseUserStatusSource",
    "RemoteReviewSource",
    "SupabaseReviewSource",
    "MockCatalogSource",
    "MockUserStatusSource",
    "MockReviewSource",
    "sample_catalog",
    "with_retry",
    "backoff_delay",
    "MAX_ATTEMPTS",
]

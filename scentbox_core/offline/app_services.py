# =============================================================================
# scentbox_core/offline/app_services.py
# Construction and lifecycle of the offline-first services
# =============================================================================
"""
Wires the store, remote sources, auth, connectivity, cache, sync, status
toggling and reviews together. Every service is built once here and
receives its collaborators explicitly.

Usage:
    config = load_config()
    services = create_app_services(config)
    services.start()
    session = services.new_list_session()
    session.load_data()
    ...
    services.shutdown()
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from supabase import Client

from scentbox_core.auth import AuthContext, StaticAuthContext, SupabaseAuthContext
from scentbox_core.config import AppConfig
from scentbox_core.data import (
    MockCatalogSource,
    MockReviewSource,
    MockUserStatusSource,
    RemoteCatalogSource,
    RemoteReviewSource,
    RemoteUserStatusSource,
    SupabaseCatalogSource,
    SupabaseReviewSource,
    SupabaseUserStatusSource,
    close_supabase_client,
    get_supabase_client,
    sample_catalog,
)
from scentbox_core.logging import get_logger, setup_logging
from scentbox_core.services import ReviewService
from .cache_service import CacheService, SyncTimestampFile
from .connection_manager import ConnectivityMonitor
from .list_orchestrator import ListOrchestrator
from .local_database import LocalDatabase
from .status_toggle import StatusToggleService
from .sync_engine import SyncEngine

logger = get_logger(__name__)

MOCK_USER_ID = "demo-user"


@dataclass
class AppServices:
    config: AppConfig
    database: LocalDatabase
    cache: CacheService
    connectivity: ConnectivityMonitor
    auth: AuthContext
    catalog_source: RemoteCatalogSource
    status_source: RemoteUserStatusSource
    review_source: RemoteReviewSource
    sync_engine: SyncEngine
    toggles: StatusToggleService
    reviews: ReviewService
    supabase_client: Optional[Client] = None
    sleep: Optional[Callable[[float], None]] = None
    started: bool = False

    def start(self, monitor_connectivity: bool = True) -> None:
        """Open the store, start connectivity monitoring and the initial sync."""
        if self.started:
            return
        self.database.initialize()
        self.connectivity.initialize(start_monitoring=monitor_connectivity)
        if isinstance(self.auth, SupabaseAuthContext):
            self.auth.listen()
        self.sync_engine.start()
        self.started = True
        logger.info("ScentBox services started")

    def shutdown(self) -> None:
        """Stop background work and close the store."""
        self.toggles.shutdown()
        self.sync_engine.stop()
        self.connectivity.stop_monitoring()
        if isinstance(self.auth, SupabaseAuthContext):
            self.auth.stop_listening()
        self.database.close()
        close_supabase_client(self.supabase_client)
        self.started = False
        logger.info("ScentBox services stopped")

    def new_list_session(self) -> ListOrchestrator:
        return ListOrchestrator(
            cache=self.cache,
            remote=self.catalog_source,
            connectivity=self.connectivity,
            page_size=self.config.page_size,
            search_debounce=self.config.search_debounce_seconds,
            retry_attempts=self.config.retry_attempts,
            retry_initial_delay=self.config.retry_initial_delay,
            sleep=self.sleep,
        )

    def get_status_display(self) -> Dict[str, Any]:
        return {
            "connection": self.connectivity.get_status_display(),
            "sync": self.sync_engine.get_status_display(),
            "last_catalog_sync": self.cache.last_synced_at.isoformat() if self.cache.last_synced_at else None,
            "signed_in": self.auth.is_authenticated,
        }


def create_app_services(
    config: AppConfig,
    catalog_source: Optional[RemoteCatalogSource] = None,
    status_source: Optional[RemoteUserStatusSource] = None,
    review_source: Optional[RemoteReviewSource] = None,
    auth: Optional[AuthContext] = None,
    connectivity: Optional[ConnectivityMonitor] = None,
    database: Optional[LocalDatabase] = None,
    sleep: Optional[Callable[[float], None]] = None,
    configure_logging: bool = False,
) -> AppServices:
    """
    Build all services for the configured provider.

    Any collaborator passed explicitly replaces the one the provider would
    create (tests pass mocks and an in-memory database).
    """
    if configure_logging:
        setup_logging(config.log_level, log_to_file=config.log_to_file)

    client: Optional[Client] = None
    if config.provider == "supabase" and None in (catalog_source, status_source, review_source, auth):
        client = get_supabase_client(config)

    if config.provider == "mock":
        catalog_source = catalog_source or MockCatalogSource(sample_catalog())
        status_source = status_source or MockUserStatusSource()
        review_source = review_source or MockReviewSource()
        auth = auth or StaticAuthContext(MOCK_USER_ID, "demo@scentbox.app")
        connectivity = connectivity or ConnectivityMonitor(probe=lambda: (True, True))
    else:
        catalog_source = catalog_source or SupabaseCatalogSource(client)
        status_source = status_source or SupabaseUserStatusSource(client)
        review_source = review_source or SupabaseReviewSource(client)
        auth = auth or SupabaseAuthContext(client)
        connectivity = connectivity or ConnectivityMonitor(supabase_url=config.supabase_url)

    database = database or LocalDatabase(config.db_path)
    cache = CacheService(
        database,
        SyncTimestampFile(config.state_path),
        staleness_seconds=config.staleness_seconds,
    )
    sync_engine = SyncEngine(
        database,
        status_source,
        auth,
        connectivity,
        retry_attempts=config.retry_attempts,
        retry_initial_delay=config.retry_initial_delay,
        sleep=sleep,
    )
    toggles = StatusToggleService(
        database,
        cache,
        status_source,
        auth,
        connectivity,
        interval=config.toggle_interval_seconds,
        retry_attempts=config.retry_attempts,
        retry_initial_delay=config.retry_initial_delay,
        sleep=sleep,
    )
    reviews = ReviewService(
        review_source,
        auth,
        retry_attempts=config.retry_attempts,
        retry_initial_delay=config.retry_initial_delay,
        sleep=sleep,
    )

    logger.info(f"Services created (provider={config.provider}, db={config.db_path})")
    return AppServices(
        config=config,
        database=database,
        cache=cache,
        connectivity=connectivity,
        auth=auth,
        catalog_source=catalog_source,
        status_source=status_source,
        review_source=review_source,
        sync_engine=sync_engine,
        toggles=toggles,
        reviews=reviews,
        supabase_client=client,
        sleep=sleep,
    )

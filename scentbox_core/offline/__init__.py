# =============================================================================
# scentbox_core/offline/__init__.py
# Offline-First Architecture for ScentBox
# =============================================================================
"""
Offline-First Architecture Module

The catalog is browsable without a connection; status changes are saved
locally first and uploaded when possible.

Architecture:
------------
┌──────────────────────────────────────────────────────────────┐
│                  OFFLINE-FIRST ARCHITECTURE                  │
├──────────────────────────────────────────────────────────────┤
│                                                              │
│   ┌──────────────────┐          ┌──────────────────────┐     │
│   │ ListOrchestrator │          │ StatusToggleService  │     │
│   │ (one list screen)│          │ (optimistic toggles) │     │
│   └──────────────────┘          └──────────────────────┘     │
│            │                               │                 │
│            ▼                               ▼                 │
│   ┌──────────────────┐          ┌──────────────────────┐     │
│   │   CacheService   │          │     SyncEngine       │     │
│   │ (pages + stamp)  │          │ (upload, download)   │     │
│   └──────────────────┘          └──────────────────────┘     │
│            │                               │                 │
│            ▼                               ▼                 │
│   ┌──────────┐    ConnectivityMonitor    ┌──────────┐        │
│   │  SQLite  │◄────────────────────────► │ Supabase │        │
│   │ (Local)  │                           │ (Cloud)  │        │
│   └──────────┘                           └──────────┘        │
└──────────────────────────────────────────────────────────────┘

Usage:
------
from scentbox_core.config import load_config
from scentbox_core.offline import create_app_services

services = create_app_services(load_config())
services.start()

session = services.new_list_session()
session.load_data()
session.set_search_text("oud")

services.toggles.toggle_status(session.items[0], UserStatus.WISHLIST)
"""

from scentbox_core.offline.connection_manager import (
    ConnectivityMonitor,
    ConnectionState,
    ConnectionStatus,
)

from scentbox_core.offline.local_database import (
    LocalDatabase,
    ANONYMOUS_USER_ID,
)

from scentbox_core.offline.cache_service import (
    CacheService,
    SyncTimestampFile,
    STALENESS_THRESHOLD,
)

from scentbox_core.offline.sync_engine import (
    SyncEngine,
    SyncReport,
    SyncState,
    upload_status,
)

from scentbox_core.offline.status_toggle import (
    StatusToggleService,
    TOGGLE_INTERVAL,
)

from scentbox_core.offline.list_orchestrator import (
    ListOrchestrator,
    ListState,
)

from scentbox_core.offline.app_services import (
    AppServices,
    create_app_services,
)

__all__ = [
    # Connectivity
    "ConnectivityMonitor",
    "ConnectionState",
    "ConnectionStatus",
    # Local store
    "LocalDatabase",
    "ANONYMOUS_USER_ID",
    # Cache
    "CacheService",
    "SyncTimestampFile",
    "STALENESS_THRESHOLD",
    # Sync
    "SyncEngine",
    "SyncReport",
    "SyncState",
    "upload_status",
    # Status toggling
    "StatusToggleService",
    "TOGGLE_INTERVAL",
    # List sessions
    "ListOrchestrator",
    "ListState",
    # Wiring
    "AppServices",
    "create_app_services",
]

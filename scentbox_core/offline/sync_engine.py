# =============================================================================
# scentbox_core/offline/sync_engine.py
# User-status Synchronization Engine
# =============================================================================
"""
SyncEngine - reconciles local user statuses with the remote source.

A pass has two phases that never interleave:

1. Upload every pending local record (delete for ``none``, upsert
   otherwise), each call wrapped in the retry policy. A success clears the
   pending flag only if the record still holds the uploaded value.
2. Download the remote listing and overwrite local statuses for items in
   the local store, skipping records that are (still) pending.

Passes run at start, on sign-in, when connectivity is restored and on
demand. Failures are reported through ``last_error`` and callbacks and
never raise out of ``sync_now``.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from scentbox_core.auth import AuthContext
from scentbox_core.data.retry import INITIAL_DELAY, MAX_ATTEMPTS, with_retry
from scentbox_core.data.user_status_source import RemoteUserStatusSource
from scentbox_core.domain import UserStatus, UserStatusRecord
from scentbox_core.errors import ErrorReport, OperationCancelled, handle_error
from scentbox_core.logging import get_logger, record
from scentbox_core.utils.cancellation import CancellationToken
from .connection_manager import ConnectionState, ConnectionStatus, ConnectivityMonitor
from .local_database import ANONYMOUS_USER_ID, LocalDatabase

logger = get_logger(__name__)


@dataclass
class SyncReport:
    """Outcome of one sync pass."""
    uploaded: int = 0
    upload_failures: int = 0
    downloaded: int = 0
    skipped_pending: int = 0
    skipped: bool = False
    reason: Optional[str] = None
    error: Optional[ErrorReport] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return not self.skipped and self.error is None and self.upload_failures == 0


@dataclass
class SyncState:
    """Current sync state."""
    is_syncing: bool = False
    last_sync: Optional[datetime] = None
    last_sync_success: Optional[datetime] = None
    failed_count: int = 0
    total_synced: int = 0
    last_error: Optional[ErrorReport] = None


def upload_status(
    remote: RemoteUserStatusSource,
    pending: UserStatusRecord,
    max_attempts: int = MAX_ATTEMPTS,
    initial_delay: float = INITIAL_DELAY,
    sleep: Optional[Callable[[float], None]] = None,
    token: Optional[CancellationToken] = None,
) -> None:
    """Push one local record to the remote: delete for ``none``, upsert otherwise."""
    if pending.status is UserStatus.NONE:
        operation = lambda: remote.delete(pending.user_id, pending.item_id)
        description = f"delete status {pending.item_id}"
    else:
        operation = lambda: remote.upsert(pending.user_id, pending.item_id, pending.status, pending.created_at)
        description = f"upsert status {pending.item_id}"

    with_retry(
        operation,
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        sleep=sleep,
        token=token,
        description=description,
    )


class SyncEngine:
    """
    Two-phase user-status synchronization.

    Usage:
        engine = SyncEngine(database, remote_statuses, auth, connectivity)
        engine.start()      # register listeners + initial pass
        engine.sync_now()   # blocking pass, returns a SyncReport
    """

    def __init__(
        self,
        database: LocalDatabase,
        remote: RemoteUserStatusSource,
        auth: AuthContext,
        connectivity: ConnectivityMonitor,
        retry_attempts: int = MAX_ATTEMPTS,
        retry_initial_delay: float = INITIAL_DELAY,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.database = database
        self.remote = remote
        self.auth = auth
        self.connectivity = connectivity
        self.retry_attempts = retry_attempts
        self.retry_initial_delay = retry_initial_delay
        self._sleep = sleep

        self._state = SyncState()
        self._pass_lock = threading.Lock()
        self._callbacks: List[Callable[[SyncState], None]] = []
        self._token = CancellationToken("sync")
        self._threads: List[threading.Thread] = []
        self._initialized = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state.is_syncing

    @property
    def last_error(self) -> Optional[ErrorReport]:
        return self._state.last_error

    def dismiss_error(self) -> None:
        """Clear the alert shown for the last failed pass."""
        self._state.last_error = None
        self._notify_callbacks()

    @property
    def pending_count(self) -> int:
        user_id = self.auth.user_id_or_none()
        return self.database.pending_count(user_id) if user_id else 0

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Register for connectivity and auth transitions."""
        if self._initialized:
            return
        self.connectivity.register_callback(self._on_connection_change)
        self.auth.register_callback(self._on_auth_change)
        self._initialized = True
        logger.info("SyncEngine initialized")

    def start(self) -> None:
        """Initialize and run the start-up pass in the background."""
        self.initialize()
        self.sync_in_background("start")

    def stop(self) -> None:
        """Cancel in-flight work and wait for background passes."""
        self._token.cancel()
        for thread in list(self._threads):
            thread.join(timeout=10)
        self._threads.clear()
        self.connectivity.unregister_callback(self._on_connection_change)
        self.auth.unregister_callback(self._on_auth_change)
        self._initialized = False
        logger.info("Sync engine stopped")

    def sync_in_background(self, trigger: str = "manual") -> threading.Thread:
        thread = threading.Thread(
            target=self.sync_now,
            kwargs={"trigger": trigger},
            daemon=True,
            name=f"SyncEngine-{trigger}",
        )
        self._threads = [t for t in self._threads if t.is_alive()]
        self._threads.append(thread)
        thread.start()
        return thread

    def _on_connection_change(self, state: ConnectionState) -> None:
        if state.status == ConnectionStatus.ONLINE:
            logger.info("Connection restored, triggering sync")
            self.sync_in_background("reconnect")

    def _on_auth_change(self, signed_in: bool) -> None:
        if signed_in:
            logger.info("User signed in, triggering sync")
            self.sync_in_background("sign-in")

    # =========================================================================
    # SYNC PASS
    # =========================================================================

    def sync_now(self, trigger: str = "manual") -> SyncReport:
        """
        Run one full pass (upload, then download).

        Returns:
            SyncReport; ``skipped`` is set when offline, signed out or
            another pass is running
        """
        report = SyncReport()

        if not self.connectivity.is_connected:
            return self._skip(report, "offline")

        user_id = self.auth.user_id_or_none()
        if user_id is None:
            return self._skip(report, "signed out")

        if not self._pass_lock.acquire(blocking=False):
            return self._skip(report, "sync already in progress")

        self._state.is_syncing = True
        self._state.last_sync = datetime.now()
        self._notify_callbacks()
        record("sync", "info", f"Sync started ({trigger})")

        try:
            self._upload_pending(user_id, report)
            self._download_remote(user_id, report)
        except OperationCancelled:
            report.reason = "cancelled"
            logger.info("Sync cancelled")
        except Exception as e:
            report.error = handle_error(e, user_message="Sync failed. Your changes are kept and will be retried.")
        finally:
            report.finished_at = datetime.now()
            self._state.total_synced += report.uploaded
            self._state.failed_count = report.upload_failures
            if report.error is not None:
                self._state.last_error = report.error
            elif report.succeeded:
                self._state.last_sync_success = report.finished_at
            self._state.is_syncing = False
            self._pass_lock.release()
            self._notify_callbacks()

        record(
            "sync",
            "info" if report.succeeded else "warning",
            f"Sync finished: {report.uploaded} uploaded, {report.upload_failures} failed, "
            f"{report.downloaded} downloaded, {report.skipped_pending} pending kept",
        )
        return report

    def _skip(self, report: SyncReport, reason: str) -> SyncReport:
        logger.debug(f"Sync skipped: {reason}")
        report.skipped = True
        report.reason = reason
        report.finished_at = datetime.now()
        return report

    def _retry(self, operation, description: str):
        return with_retry(
            operation,
            max_attempts=self.retry_attempts,
            initial_delay=self.retry_initial_delay,
            sleep=self._sleep,
            token=self._token,
            description=description,
        )

    def upload_record(self, pending: UserStatusRecord) -> None:
        """Push one record to the remote (delete for ``none``), with retry."""
        upload_status(
            self.remote,
            pending,
            max_attempts=self.retry_attempts,
            initial_delay=self.retry_initial_delay,
            sleep=self._sleep,
            token=self._token,
        )

    def _upload_pending(self, user_id: str, report: SyncReport) -> None:
        adopted = self.database.reassign_statuses(ANONYMOUS_USER_ID, user_id)
        if adopted:
            logger.info(f"Adopted {adopted} signed-out status change(s) for {user_id}")

        pending_records = self.database.pending_statuses(user_id)
        if pending_records:
            logger.info(f"Uploading {len(pending_records)} pending status change(s)")

        for pending in pending_records:
            self._token.raise_if_cancelled()
            try:
                self.upload_record(pending)
            except OperationCancelled:
                raise
            except Exception as e:
                report.upload_failures += 1
                report.error = handle_error(e, user_message="Some changes could not be uploaded yet.")
                continue

            self._token.raise_if_cancelled()
            if self.database.clear_pending(user_id, pending.item_id, pending.status):
                report.uploaded += 1
            else:
                # Changed again while uploading; stays pending for the next upload
                logger.debug(f"Status of {pending.item_id} changed during upload")

    def _download_remote(self, user_id: str, report: SyncReport) -> None:
        entries = self._retry(lambda: self.remote.list_all(user_id), "list remote statuses")
        remote_map = {entry.item_id: entry for entry in entries}

        self._token.raise_if_cancelled()
        for item_id in self.database.all_item_ids():
            local = self.database.get_status(user_id, item_id)
            if local is not None and local.pending_sync:
                report.skipped_pending += 1
                continue

            entry = remote_map.get(item_id)
            if entry is None:
                continue
            if local is not None and local.status is entry.status:
                continue

            if self.database.apply_remote_status(user_id, item_id, entry.status, entry.created_at):
                report.downloaded += 1
            else:
                report.skipped_pending += 1

    # =========================================================================
    # CALLBACKS / DISPLAY
    # =========================================================================

    def register_callback(self, callback: Callable[[SyncState], None]) -> None:
        """Register a callback for sync state changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[SyncState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in sync callback: {e}")

    def get_status_display(self) -> Dict[str, Any]:
        """Get sync status for UI display."""
        return {
            "is_syncing": self._state.is_syncing,
            "last_sync": self._state.last_sync.isoformat() if self._state.last_sync else None,
            "last_success": self._state.last_sync_success.isoformat() if self._state.last_sync_success else None,
            "pending_count": self.pending_count,
            "failed_count": self._state.failed_count,
            "total_synced": self._state.total_synced,
            "error": self._state.last_error.message if self._state.last_error else None,
        }

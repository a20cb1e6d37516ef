# =============================================================================
# scentbox_core/offline/status_toggle.py
# Optimistic status toggling with a debounced upload per item
# =============================================================================
"""
StatusToggleService - wishlist / owned / consumed buttons.

The local record changes immediately (pending_sync = True). The upload
waits for a quiet period; toggling the same item again within that
period cancels the scheduled (or in-flight) upload and starts a new one,
so only the final status reaches the network. Uploads run one at a time.
"""

from __future__ import annotations
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional

from scentbox_core.auth import AuthContext
from scentbox_core.data.retry import INITIAL_DELAY, MAX_ATTEMPTS
from scentbox_core.data.user_status_source import RemoteUserStatusSource
from scentbox_core.domain import CatalogItem, UserStatus, UserStatusRecord
from scentbox_core.errors import ErrorReport, OperationCancelled, handle_error
from scentbox_core.logging import get_logger, record
from scentbox_core.utils.cancellation import CancellationToken
from .cache_service import CacheService
from .connection_manager import ConnectivityMonitor
from .local_database import ANONYMOUS_USER_ID, LocalDatabase
from .sync_engine import upload_status

logger = get_logger(__name__)

TOGGLE_INTERVAL = 0.5  # seconds of quiet before an upload


@dataclass
class _UploadTask:
    token: CancellationToken
    timer: Optional[threading.Timer] = None
    done: threading.Event = field(default_factory=threading.Event)


class StatusToggleService:
    """Local-first status changes for the current user."""

    def __init__(
        self,
        database: LocalDatabase,
        cache: CacheService,
        remote: RemoteUserStatusSource,
        auth: AuthContext,
        connectivity: ConnectivityMonitor,
        interval: float = TOGGLE_INTERVAL,
        retry_attempts: int = MAX_ATTEMPTS,
        retry_initial_delay: float = INITIAL_DELAY,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.database = database
        self.cache = cache
        self.remote = remote
        self.auth = auth
        self.connectivity = connectivity
        self.interval = interval
        self.retry_attempts = retry_attempts
        self.retry_initial_delay = retry_initial_delay
        self._sleep = sleep

        self._lock = threading.Lock()
        self._upload_lock = threading.Lock()
        self._tasks: Dict[str, _UploadTask] = {}
        self.last_error: Optional[ErrorReport] = None
        self._error_callbacks = []

    def _user_id(self) -> str:
        return self.auth.user_id_or_none() or ANONYMOUS_USER_ID

    def current_status(self, item_id: str) -> UserStatus:
        existing = self.database.get_status(self._user_id(), item_id)
        return existing.status if existing else UserStatus.NONE

    def is_active(self, item_id: str, status: UserStatus) -> bool:
        return self.current_status(item_id) is status

    def toggle_status(self, item: CatalogItem, target: UserStatus) -> UserStatus:
        """
        Set ``target`` on the item, or clear it if already set.

        Returns:
            The new local status
        """
        user_id = self._user_id()

        with self._lock:
            self._cancel_locked(item.id)

            self.cache.ensure_item(item)
            existing = self.database.get_status(user_id, item.id)
            new_status = UserStatus.NONE if existing is not None and existing.status is target else target

            self.database.save_status(
                UserStatusRecord(
                    user_id=user_id,
                    item_id=item.id,
                    status=new_status,
                    created_at=existing.created_at if existing else datetime.now(),
                    personal_notes=existing.personal_notes if existing else None,
                    pending_sync=True,
                )
            )

            if user_id != ANONYMOUS_USER_ID:
                self._schedule_locked(user_id, item.id, new_status)

        record("user_status", "info", f"{item.name}: status -> {new_status.value}")
        return new_status

    # =========================================================================
    # UPLOAD SCHEDULING
    # =========================================================================

    def _cancel_locked(self, item_id: str) -> None:
        task = self._tasks.pop(item_id, None)
        if task is None:
            return
        task.token.cancel()
        if task.timer is not None:
            task.timer.cancel()
        logger.debug(f"Cancelled pending upload for {item_id}")

    def _schedule_locked(self, user_id: str, item_id: str, status: UserStatus) -> None:
        task = _UploadTask(token=CancellationToken(f"toggle:{item_id}"))
        task.timer = threading.Timer(self.interval, self._run_upload, args=(user_id, item_id, status, task))
        task.timer.daemon = True
        self._tasks[item_id] = task
        task.timer.start()

    def _run_upload(self, user_id: str, item_id: str, status: UserStatus, task: _UploadTask) -> None:
        try:
            with self._upload_lock:
                task.token.raise_if_cancelled()
                if not self.connectivity.is_connected:
                    logger.info(f"Offline, status of {item_id} stays pending for the next sync")
                    return

                local = self.database.get_status(user_id, item_id)
                if local is None or local.status is not status or not local.pending_sync:
                    return

                upload_status(
                    self.remote,
                    local,
                    max_attempts=self.retry_attempts,
                    initial_delay=self.retry_initial_delay,
                    sleep=self._sleep,
                    token=task.token,
                )

                task.token.raise_if_cancelled()
                if self.database.clear_pending(user_id, item_id, status):
                    logger.debug(f"Uploaded status {status.value} for {item_id}")
        except OperationCancelled:
            logger.debug(f"Upload for {item_id} superseded")
        except Exception as e:
            self.last_error = handle_error(e, user_message="Could not save your change online. It will be retried.")
            self._notify_error()
        finally:
            task.done.set()
            with self._lock:
                if self._tasks.get(item_id) is task:
                    del self._tasks[item_id]

    # =========================================================================
    # ERRORS / LIFECYCLE
    # =========================================================================

    def register_error_callback(self, callback: Callable[[ErrorReport], None]) -> None:
        if callback not in self._error_callbacks:
            self._error_callbacks.append(callback)

    def _notify_error(self) -> None:
        for callback in list(self._error_callbacks):
            try:
                callback(self.last_error)
            except Exception as e:
                logger.error(f"Error in toggle error callback: {e}")

    def dismiss_error(self) -> None:
        self.last_error = None

    @property
    def has_pending_uploads(self) -> bool:
        with self._lock:
            return bool(self._tasks)

    def wait_idle(self, timeout: float = 5.0) -> bool:
        """
        Wait until no upload is scheduled or running.

        Returns:
            True if idle before the timeout
        """
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                tasks = list(self._tasks.values())
            if not tasks:
                return True
            for task in tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0 or not task.done.wait(remaining):
                    return False

    def shutdown(self) -> None:
        """Cancel every scheduled upload; pending flags stay for the next sync."""
        with self._lock:
            for item_id in list(self._tasks):
                self._cancel_locked(item_id)

# =============================================================================
# scentbox_core/offline/connection_manager.py
# Connection Status Detection and Management
# =============================================================================
"""
ConnectivityMonitor - Detects and monitors internet/Supabase connectivity.

Features:
- Socket probes of public DNS hosts and the Supabase host
- Periodic health checks on a daemon thread
- Event callbacks for status changes (the sync engine listens for
  "connection restored")
- Non-blocking ``is_connected`` reading the last known state
"""

from __future__ import annotations
import socket
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from scentbox_core.logging import get_logger

logger = get_logger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"           # Internet + Supabase reachable
    OFFLINE = "offline"         # No connectivity
    DEGRADED = "degraded"       # Internet OK but Supabase unavailable
    CHECKING = "checking"       # Currently checking status
    UNKNOWN = "unknown"         # Initial state


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    internet_available: bool = False
    supabase_available: bool = False
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None


# probe() -> (internet_available, supabase_available)
Probe = Callable[[], Tuple[bool, bool]]


class ConnectivityMonitor:
    """
    Tracks whether the remote service is reachable.

    Usage:
        monitor = ConnectivityMonitor(supabase_url=config.supabase_url)
        monitor.initialize()
        if monitor.is_connected:
            # fetch remote
        else:
            # serve from the local store
    """

    # Configuration
    CHECK_INTERVAL_ONLINE = 30      # Seconds between checks when online
    CHECK_INTERVAL_OFFLINE = 10     # Seconds between checks when offline
    CONNECTION_TIMEOUT = 5          # Timeout for connection tests

    INTERNET_HOSTS = (
        ("8.8.8.8", 53),        # Google DNS
        ("1.1.1.1", 53),        # Cloudflare DNS
        ("208.67.222.222", 53), # OpenDNS
    )

    def __init__(self, supabase_url: Optional[str] = None, probe: Optional[Probe] = None):
        """
        Args:
            supabase_url: Remote service URL; without it only internet is probed
            probe: Replaces the socket probes (tests, mock provider)
        """
        self.supabase_url = supabase_url
        self._probe = probe
        self._state = ConnectionState()
        self._state_lock = threading.Lock()
        self._callbacks: List[Callable[[ConnectionState], None]] = []
        self._monitor_thread: Optional[threading.Thread] = None
        self._stop_monitoring = threading.Event()
        self._initialized = False

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_connected(self) -> bool:
        """Last known state; never blocks on a probe."""
        return self._state.status == ConnectionStatus.ONLINE

    @property
    def is_offline(self) -> bool:
        return self._state.status == ConnectionStatus.OFFLINE

    def initialize(self, start_monitoring: bool = True) -> None:
        """
        Run a first check and optionally start background monitoring.
        """
        if self._initialized:
            return

        self.check_connection()

        if start_monitoring:
            self.start_monitoring()

        self._initialized = True
        logger.info(f"ConnectivityMonitor initialized. Status: {self._state.status.value}")

    def check_connection(self) -> ConnectionState:
        """
        Perform a connection check and update state.

        Returns:
            Updated ConnectionState
        """
        if self._probe is not None:
            internet_ok, supabase_ok = self._probe()
        else:
            internet_ok = self._check_internet()
            supabase_ok = self._check_supabase() if internet_ok else False

        if internet_ok and supabase_ok:
            status = ConnectionStatus.ONLINE
        elif internet_ok:
            status = ConnectionStatus.DEGRADED
        else:
            status = ConnectionStatus.OFFLINE

        self._apply(status, internet_ok, supabase_ok)
        return self._state

    def _apply(self, status: ConnectionStatus, internet_ok: bool, supabase_ok: bool) -> None:
        with self._state_lock:
            old_status = self._state.status
            now = datetime.now()
            self._state.last_check = now
            self._state.internet_available = internet_ok
            self._state.supabase_available = supabase_ok
            self._state.status = status
            if status == ConnectionStatus.ONLINE:
                self._state.last_online = now
                self._state.consecutive_failures = 0
                self._state.error_message = None
            else:
                self._state.consecutive_failures += 1

        if old_status != status:
            logger.info(f"Connection status changed: {old_status.value} -> {status.value}")
            self._notify_callbacks()

    def _connect(self, host: str, port: int) -> bool:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(self.CONNECTION_TIMEOUT)
        try:
            return sock.connect_ex((host, port)) == 0
        finally:
            sock.close()

    def _check_internet(self) -> bool:
        """
        Check internet connectivity by attempting to reach well-known hosts.
        """
        for host, port in self.INTERNET_HOSTS:
            try:
                if self._connect(host, port):
                    return True
            except OSError:
                continue
        return False

    def _check_supabase(self) -> bool:
        """
        Check that the Supabase host accepts connections.
        """
        if not self.supabase_url:
            # No remote configured: internet is all we can check
            return True

        parsed = urlparse(self.supabase_url)
        host = parsed.hostname
        if not host:
            self._state.error_message = f"Invalid Supabase URL: {self.supabase_url}"
            return False

        try:
            return self._connect(host, parsed.port or 443)
        except OSError as e:
            self._state.error_message = str(e)
            logger.debug(f"Supabase check failed: {e}")
            return False

    def start_monitoring(self) -> None:
        """Start background connection monitoring."""
        if self._monitor_thread is not None and self._monitor_thread.is_alive():
            return

        self._stop_monitoring.clear()
        self._monitor_thread = threading.Thread(
            target=self._monitoring_loop,
            daemon=True,
            name="ConnectivityMonitor"
        )
        self._monitor_thread.start()
        logger.debug("Connection monitoring started")

    def stop_monitoring(self) -> None:
        """Stop background connection monitoring."""
        self._stop_monitoring.set()
        if self._monitor_thread:
            self._monitor_thread.join(timeout=5)
            self._monitor_thread = None
        logger.debug("Connection monitoring stopped")

    def _monitoring_loop(self) -> None:
        """Background monitoring loop."""
        while not self._stop_monitoring.is_set():
            interval = (
                self.CHECK_INTERVAL_ONLINE
                if self.is_connected
                else self.CHECK_INTERVAL_OFFLINE
            )

            if self._stop_monitoring.wait(timeout=interval):
                break

            try:
                self.check_connection()
            except Exception as e:
                logger.error(f"Error in connection check: {e}")

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """
        Register a callback for connection status changes.

        Args:
            callback: Function called with ConnectionState when status changes
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def force_offline(self) -> None:
        """Force offline mode (user preference or tests)."""
        self._apply(ConnectionStatus.OFFLINE, False, False)
        logger.info("Forced offline mode")

    def set_connected(self, connected: bool) -> None:
        """Set the state directly, firing callbacks on change."""
        if connected:
            self._apply(ConnectionStatus.ONLINE, True, True)
        else:
            self._apply(ConnectionStatus.OFFLINE, False, False)

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_connected,
            "internet": self._state.internet_available,
            "supabase": self._state.supabase_available,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
            "error": self._state.error_message,
        }

# =============================================================================
# tests/unit/test_connection_manager.py
# Unit Tests for ConnectivityMonitor
# =============================================================================

import pytest
from unittest.mock import patch


class TestConnectionCheck:
    """Test status derivation from probes"""

    @pytest.mark.parametrize("probe_result, expected", [
        ((True, True), "online"),
        ((True, False), "degraded"),
        ((False, False), "offline"),
    ])
    def test_status_from_probe(self, probe_result, expected):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        monitor = ConnectivityMonitor(probe=lambda: probe_result)

        state = monitor.check_connection()

        assert state.status.value == expected
        assert monitor.is_connected == (expected == "online")

    def test_initial_state_is_unknown_and_not_connected(self):
        from scentbox_core.offline.connection_manager import ConnectionStatus, ConnectivityMonitor

        monitor = ConnectivityMonitor(probe=lambda: (True, True))

        assert monitor.status == ConnectionStatus.UNKNOWN
        assert not monitor.is_connected

    def test_failures_are_counted(self):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        monitor = ConnectivityMonitor(probe=lambda: (False, False))
        monitor.check_connection()
        monitor.check_connection()

        assert monitor.state.consecutive_failures == 2

    def test_socket_probes(self):
        """Without a probe the monitor connects to DNS hosts and the Supabase host"""
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        monitor = ConnectivityMonitor(supabase_url="https://demo.supabase.co")
        with patch.object(ConnectivityMonitor, "_connect", return_value=True) as connect:
            monitor.check_connection()

        assert monitor.is_connected
        connect.assert_any_call("demo.supabase.co", 443)

    def test_unreachable_network(self):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        monitor = ConnectivityMonitor(supabase_url="https://demo.supabase.co")
        with patch.object(ConnectivityMonitor, "_connect", side_effect=OSError("unreachable")):
            monitor.check_connection()

        assert monitor.is_offline


class TestCallbacks:
    """Test change notifications"""

    def test_callback_only_on_change(self):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        seen = []
        monitor = ConnectivityMonitor(probe=lambda: (True, True))
        monitor.register_callback(lambda state: seen.append(state.status.value))

        monitor.set_connected(True)
        monitor.set_connected(True)
        monitor.set_connected(False)

        assert seen == ["online", "offline"]

    def test_unregister(self):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        seen = []
        monitor = ConnectivityMonitor(probe=lambda: (True, True))
        monitor.register_callback(seen.append)
        monitor.unregister_callback(seen.append)

        monitor.force_offline()

        assert seen == []

    def test_status_display(self, connectivity):
        display = connectivity.get_status_display()

        assert display["status"] == "online"
        assert display["is_online"] is True
        assert display["failures"] == 0


class TestMonitoring:
    """Test the background thread lifecycle"""

    def test_initialize_without_monitoring(self):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        monitor = ConnectivityMonitor(probe=lambda: (True, True))
        monitor.initialize(start_monitoring=False)

        assert monitor.is_connected
        assert monitor._monitor_thread is None

    def test_start_and_stop(self):
        from scentbox_core.offline.connection_manager import ConnectivityMonitor

        monitor = ConnectivityMonitor(probe=lambda: (True, True))
        monitor.start_monitoring()
        assert monitor._monitor_thread.is_alive()

        monitor.stop_monitoring()
        assert monitor._monitor_thread is None

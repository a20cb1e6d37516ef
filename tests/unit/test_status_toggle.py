# =============================================================================
# tests/unit/test_status_toggle.py
# Unit Tests for StatusToggleService
# =============================================================================

import time

import pytest


USER = "user-1"


@pytest.fixture
def toggles(database, cache, mock_status_source, auth, connectivity, fake_sleep):
    from scentbox_core.offline.status_toggle import StatusToggleService

    service = StatusToggleService(
        database, cache, mock_status_source, auth, connectivity,
        interval=0.1, sleep=fake_sleep,
    )
    yield service
    service.shutdown()


@pytest.fixture
def item(make_item):
    return make_item("a", "Bleu")


class TestToggleLocal:
    """Test the optimistic local change"""

    def test_toggle_sets_status_immediately(self, toggles, database, item):
        from scentbox_core.domain import UserStatus

        new_status = toggles.toggle_status(item, UserStatus.WISHLIST)

        assert new_status is UserStatus.WISHLIST
        record = database.get_status(USER, "a")
        assert record.status is UserStatus.WISHLIST
        assert record.pending_sync
        assert toggles.is_active("a", UserStatus.WISHLIST)

    def test_toggle_same_status_clears_it(self, toggles, item):
        from scentbox_core.domain import UserStatus

        toggles.toggle_status(item, UserStatus.OWNED)

        assert toggles.toggle_status(item, UserStatus.OWNED) is UserStatus.NONE
        assert toggles.current_status("a") is UserStatus.NONE

    def test_uncached_item_is_materialised(self, toggles, database, item):
        """Items shown from remote search get a local row before their status"""
        from scentbox_core.domain import UserStatus

        assert database.get_item("a") is None

        toggles.toggle_status(item, UserStatus.WISHLIST)

        assert database.get_item("a").name == "Bleu"

    def test_unknown_item_has_no_status(self, toggles):
        from scentbox_core.domain import UserStatus

        assert toggles.current_status("missing") is UserStatus.NONE


class TestToggleUpload:
    """Test the debounced upload"""

    def test_rapid_toggles_upload_final_status_once(
        self, database, cache, mock_status_source, auth, connectivity, fake_sleep, item
    ):
        """Wishlist then collection 0.1 s apart: the first upload is cancelled, OWNED is sent once"""
        from scentbox_core.domain import UserStatus
        from scentbox_core.offline.status_toggle import StatusToggleService

        toggles = StatusToggleService(
            database, cache, mock_status_source, auth, connectivity,
            interval=0.5, sleep=fake_sleep,
        )
        try:
            toggles.toggle_status(item, UserStatus.WISHLIST)
            time.sleep(0.1)
            toggles.toggle_status(item, UserStatus.OWNED)

            assert database.get_status(USER, "a").status is UserStatus.OWNED
            assert toggles.wait_idle(5.0)
        finally:
            toggles.shutdown()

        assert mock_status_source.call_count("upsert") == 1
        assert mock_status_source.rows[(USER, "a")].status is UserStatus.OWNED
        record = database.get_status(USER, "a")
        assert record.status is UserStatus.OWNED
        assert not record.pending_sync

    def test_cleared_status_deletes_remote(self, toggles, item, mock_status_source):
        from scentbox_core.domain import UserStatus

        toggles.toggle_status(item, UserStatus.WISHLIST)
        toggles.toggle_status(item, UserStatus.WISHLIST)

        assert toggles.wait_idle(5.0)
        assert mock_status_source.call_count("upsert") == 0
        assert mock_status_source.call_count("delete") == 1

    def test_offline_change_stays_pending(self, toggles, database, item, connectivity, mock_status_source):
        from scentbox_core.domain import UserStatus

        connectivity.set_connected(False)
        toggles.toggle_status(item, UserStatus.OWNED)

        assert toggles.wait_idle(5.0)
        assert mock_status_source.call_count() == 0
        assert database.get_status(USER, "a").pending_sync

    def test_failed_upload_reports_error(self, toggles, database, item, mock_status_source):
        from scentbox_core.domain import UserStatus
        from scentbox_core.errors import ServerError

        reports = []
        toggles.register_error_callback(reports.append)
        mock_status_source.fail_with(ServerError(500))

        toggles.toggle_status(item, UserStatus.OWNED)

        assert toggles.wait_idle(5.0)
        assert len(reports) == 1
        assert toggles.last_error.code == "NET_003"
        assert database.get_status(USER, "a").pending_sync

        toggles.dismiss_error()
        assert toggles.last_error is None

    def test_signed_out_change_is_not_uploaded(self, database, cache, mock_status_source, connectivity, item):
        from scentbox_core.auth import StaticAuthContext
        from scentbox_core.domain import UserStatus
        from scentbox_core.offline.local_database import ANONYMOUS_USER_ID
        from scentbox_core.offline.status_toggle import StatusToggleService

        service = StatusToggleService(database, cache, mock_status_source, StaticAuthContext(), connectivity)

        service.toggle_status(item, UserStatus.WISHLIST)

        assert not service.has_pending_uploads
        assert database.get_status(ANONYMOUS_USER_ID, "a").pending_sync
        assert mock_status_source.call_count() == 0

    def test_shutdown_cancels_scheduled_upload(self, database, cache, mock_status_source, auth, connectivity, item):
        from scentbox_core.domain import UserStatus
        from scentbox_core.offline.status_toggle import StatusToggleService

        service = StatusToggleService(database, cache, mock_status_source, auth, connectivity, interval=30)
        service.toggle_status(item, UserStatus.OWNED)
        assert service.has_pending_uploads

        service.shutdown()

        assert not service.has_pending_uploads
        assert mock_status_source.call_count() == 0
        assert database.get_status(USER, "a").pending_sync

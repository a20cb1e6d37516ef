# =============================================================================
# tests/unit/test_sync_engine.py
# Unit Tests for the user-status SyncEngine
# =============================================================================

import threading

import pytest


USER = "user-1"


@pytest.fixture
def stocked(database, make_item):
    """Store with three cached items"""
    database.upsert_many([make_item("a", "Bleu"), make_item("b", "Coco"), make_item("c", "Dune")])
    return database


def save(database, item_id, status, pending=True, user_id=USER):
    from scentbox_core.domain import UserStatusRecord

    database.save_status(
        UserStatusRecord(user_id=user_id, item_id=item_id, status=status, pending_sync=pending)
    )


def wait_for_pass(engine, timeout=5.0):
    """Event set when a background pass finishes"""
    done = threading.Event()

    def on_state(state):
        if not state.is_syncing and state.last_sync is not None:
            done.set()

    engine.register_callback(on_state)
    return done


class TestUploadPhase:
    """Test pushing pending local changes"""

    def test_pending_upsert_is_uploaded_and_cleared(self, sync_engine, stocked, mock_status_source):
        from scentbox_core.domain import UserStatus

        save(stocked, "a", UserStatus.OWNED)

        report = sync_engine.sync_now()

        assert report.succeeded
        assert report.uploaded == 1
        assert mock_status_source.rows[(USER, "a")].status is UserStatus.OWNED
        assert not stocked.get_status(USER, "a").pending_sync

    def test_none_status_deletes_remote_row(self, sync_engine, stocked, mock_status_source):
        from scentbox_core.domain import UserStatus

        mock_status_source.upsert(USER, "a", UserStatus.WISHLIST)
        save(stocked, "a", UserStatus.NONE)

        sync_engine.sync_now()

        assert (USER, "a") not in mock_status_source.rows
        assert mock_status_source.call_count("delete") == 1
        assert stocked.pending_count(USER) == 0

    def test_failed_upload_continues_with_next(self, sync_engine, stocked, mock_status_source):
        """One failing record does not stop the others; it stays pending"""
        from scentbox_core.domain import UserStatus
        from scentbox_core.errors import ServerError

        save(stocked, "a", UserStatus.OWNED)
        save(stocked, "b", UserStatus.WISHLIST)
        mock_status_source.fail_with(ServerError(400), times=1)

        report = sync_engine.sync_now()

        assert report.uploaded == 1
        assert report.upload_failures == 1
        assert not report.succeeded
        assert stocked.pending_count(USER) == 1
        assert sync_engine.last_error is not None

    def test_transient_failure_is_retried(self, sync_engine, stocked, mock_status_source, sleeps):
        from scentbox_core.domain import UserStatus
        from scentbox_core.errors import RequestTimeoutError

        save(stocked, "a", UserStatus.OWNED)
        mock_status_source.fail_with(RequestTimeoutError(), times=2)

        report = sync_engine.sync_now()

        assert report.uploaded == 1
        assert sleeps == [1.0, 2.0]
        assert mock_status_source.call_count("upsert") == 3

    def test_signed_out_changes_are_adopted(self, sync_engine, stocked, mock_status_source):
        """Changes saved while signed out are uploaded for the user who signs in"""
        from scentbox_core.domain import UserStatus
        from scentbox_core.offline.local_database import ANONYMOUS_USER_ID

        save(stocked, "c", UserStatus.WISHLIST, user_id=ANONYMOUS_USER_ID)

        sync_engine.sync_now()

        assert mock_status_source.rows[(USER, "c")].status is UserStatus.WISHLIST
        assert stocked.get_status(ANONYMOUS_USER_ID, "c") is None


class TestDownloadPhase:
    """Test applying the remote listing"""

    def test_remote_status_is_applied(self, sync_engine, stocked, mock_status_source):
        from scentbox_core.domain import UserStatus

        mock_status_source.upsert(USER, "b", UserStatus.CONSUMED)

        report = sync_engine.sync_now()

        assert report.downloaded == 1
        record = stocked.get_status(USER, "b")
        assert record.status is UserStatus.CONSUMED
        assert not record.pending_sync

    def test_pending_local_change_wins(self, sync_engine, stocked, mock_status_source):
        """A record whose upload failed keeps its local value through the download"""
        from scentbox_core.domain import UserStatus
        from scentbox_core.errors import ServerError

        mock_status_source.upsert(USER, "a", UserStatus.WISHLIST)
        save(stocked, "a", UserStatus.OWNED)
        mock_status_source.fail_with(ServerError(400), times=1)

        report = sync_engine.sync_now()

        assert report.skipped_pending == 1
        record = stocked.get_status(USER, "a")
        assert record.status is UserStatus.OWNED
        assert record.pending_sync

    def test_missing_remote_entry_leaves_local(self, sync_engine, stocked):
        from scentbox_core.domain import UserStatus

        save(stocked, "a", UserStatus.OWNED, pending=False)

        report = sync_engine.sync_now()

        assert report.downloaded == 0
        assert stocked.get_status(USER, "a").status is UserStatus.OWNED

    def test_remote_only_item_is_not_materialised(self, sync_engine, stocked, mock_status_source):
        from scentbox_core.domain import UserStatus

        mock_status_source.upsert(USER, "not-cached", UserStatus.OWNED)

        sync_engine.sync_now()

        assert stocked.get_item("not-cached") is None
        assert stocked.get_status(USER, "not-cached") is None

    def test_listing_failure_is_reported(self, sync_engine, stocked, mock_status_source):
        from scentbox_core.errors import NoConnectionError

        mock_status_source.fail_with(NoConnectionError())

        report = sync_engine.sync_now()

        assert report.error is not None
        assert report.error.code == "NET_001"
        assert sync_engine.last_error is not None

        sync_engine.dismiss_error()
        assert sync_engine.last_error is None


class TestPassGuards:
    """Test when a pass is skipped"""

    def test_skipped_when_offline(self, sync_engine, connectivity, mock_status_source):
        connectivity.set_connected(False)

        report = sync_engine.sync_now()

        assert report.skipped
        assert report.reason == "offline"
        assert mock_status_source.call_count() == 0

    def test_skipped_when_signed_out(self, database, mock_status_source, connectivity):
        from scentbox_core.auth import StaticAuthContext
        from scentbox_core.offline.sync_engine import SyncEngine

        engine = SyncEngine(database, mock_status_source, StaticAuthContext(), connectivity)

        report = engine.sync_now()

        assert report.skipped
        assert report.reason == "signed out"

    def test_only_one_pass_at_a_time(self, sync_engine):
        sync_engine._pass_lock.acquire()
        try:
            report = sync_engine.sync_now()
        finally:
            sync_engine._pass_lock.release()

        assert report.skipped
        assert report.reason == "sync already in progress"

    def test_status_display(self, sync_engine, stocked):
        from scentbox_core.domain import UserStatus

        save(stocked, "a", UserStatus.OWNED)
        display = sync_engine.get_status_display()

        assert display["pending_count"] == 1
        assert display["is_syncing"] is False


class TestTriggers:
    """Test passes started by connectivity and auth transitions"""

    def test_reconnect_triggers_pass(self, sync_engine, stocked, connectivity, mock_status_source):
        from scentbox_core.domain import UserStatus

        sync_engine.initialize()
        connectivity.set_connected(False)
        save(stocked, "a", UserStatus.OWNED)
        done = wait_for_pass(sync_engine)

        connectivity.set_connected(True)

        assert done.wait(5.0)
        assert (USER, "a") in mock_status_source.rows

    def test_sign_in_triggers_pass(self, database, make_item, mock_status_source, connectivity, fake_sleep):
        from scentbox_core.auth import StaticAuthContext
        from scentbox_core.domain import UserStatus
        from scentbox_core.offline.local_database import ANONYMOUS_USER_ID
        from scentbox_core.offline.sync_engine import SyncEngine

        auth = StaticAuthContext()
        engine = SyncEngine(database, mock_status_source, auth, connectivity, sleep=fake_sleep)
        engine.initialize()
        database.upsert(make_item("a", "Bleu"))
        save(database, "a", UserStatus.WISHLIST, user_id=ANONYMOUS_USER_ID)
        done = wait_for_pass(engine)

        auth.sign_in("user-2", "bob@example.com")

        assert done.wait(5.0)
        assert mock_status_source.rows[("user-2", "a")].status is UserStatus.WISHLIST

    def test_stop_unregisters(self, sync_engine, connectivity, mock_status_source):
        sync_engine.initialize()
        sync_engine.stop()

        connectivity.set_connected(False)
        connectivity.set_connected(True)

        assert mock_status_source.call_count() == 0

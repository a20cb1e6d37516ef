# =============================================================================
# tests/unit/test_errors.py
# Unit Tests for the error taxonomy and handlers
# =============================================================================

import socket

import httpx
import pytest
from postgrest.exceptions import APIError


class TestClassifyException:
    """Test mapping of transport errors to NetworkError subclasses"""

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("refused"),
        ConnectionRefusedError(),
        socket.gaierror("no such host"),
    ])
    def test_connection_errors(self, error):
        from scentbox_core.errors import NoConnectionError, classify_exception

        classified = classify_exception(error)

        assert isinstance(classified, NoConnectionError)
        assert not classified.is_transient

    @pytest.mark.parametrize("error", [
        httpx.ReadTimeout("slow"),
        socket.timeout("slow"),
        TimeoutError(),
    ])
    def test_timeouts(self, error):
        from scentbox_core.errors import RequestTimeoutError, classify_exception

        classified = classify_exception(error)

        assert isinstance(classified, RequestTimeoutError)
        assert classified.is_transient

    def test_http_status_error(self):
        from scentbox_core.errors import ServerError, classify_exception

        request = httpx.Request("GET", "https://example.supabase.co/rest/v1/perfumes")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("unavailable", request=request, response=response)

        classified = classify_exception(error)

        assert isinstance(classified, ServerError)
        assert classified.status_code == 503
        assert classified.is_transient

    def test_postgrest_error_with_http_code(self):
        from scentbox_core.errors import ServerError, classify_exception

        classified = classify_exception(APIError({"message": "denied", "code": "401"}))

        assert isinstance(classified, ServerError)
        assert classified.status_code == 401
        assert not classified.is_transient

    def test_postgrest_error_with_sql_state_is_unknown(self):
        from scentbox_core.errors import UnknownNetworkError, classify_exception

        classified = classify_exception(APIError({"message": "bad column", "code": "42703"}))

        assert isinstance(classified, UnknownNetworkError)

    def test_network_error_passes_through(self):
        from scentbox_core.errors import NoConnectionError, classify_exception

        error = NoConnectionError()

        assert classify_exception(error) is error


class TestExceptions:
    """Test exception payloads"""

    def test_str_includes_code_and_details(self):
        from scentbox_core.errors import DataValidationError

        error = DataValidationError("bad rating", field="rating")

        assert str(error) == "[DATA_001] bad rating | Details: {'field': 'rating'}"

    def test_to_dict(self):
        from scentbox_core.errors import CorruptRecordError

        data = CorruptRecordError("unknown status", value="favourite").to_dict()

        assert data["error_type"] == "CorruptRecordError"
        assert data["code"] == "STORE_002"
        assert data["details"] == {"value": "favourite"}
        assert data["recoverable"] is False


class TestHandlers:
    """Test handle_error, safe_execute and error_boundary"""

    def test_network_error_report_is_retryable(self):
        from scentbox_core.errors import NoConnectionError, handle_error

        report = handle_error(NoConnectionError(), log_error=False)

        assert report.code == "NET_001"
        assert report.retryable

    def test_user_message_overrides(self):
        from scentbox_core.errors import StorageError, handle_error

        report = handle_error(StorageError("locked"), log_error=False, user_message="Could not save.")

        assert report.message == "Could not save."
        assert not report.retryable

    def test_unexpected_error(self):
        from scentbox_core.errors import handle_error

        report = handle_error(ValueError("oops"), log_error=False)

        assert report.code == "UNKNOWN"
        assert report.message == "oops"

    def test_safe_execute_returns_default(self):
        from scentbox_core.errors import safe_execute

        def fail():
            raise RuntimeError("boom")

        assert safe_execute(fail, default=[]) == []

    def test_safe_execute_reraises(self):
        from scentbox_core.errors import safe_execute

        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            safe_execute(fail, reraise=True)

    def test_error_boundary(self):
        from scentbox_core.errors import error_boundary

        @error_boundary(default_return="fallback")
        def callback():
            raise RuntimeError("boom")

        assert callback() == "fallback"

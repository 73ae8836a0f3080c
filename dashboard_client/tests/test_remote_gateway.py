"""
Unit tests for the remote data gateway.
"""

import json

import httpx
import pytest
from unittest.mock import MagicMock

from dashboard_client.app.adapters.gateway import RemoteDataGateway
from dashboard_client.app.adapters.session_store import MemorySessionStore
from dashboard_client.app.domain.models import User
from shared.errors import ApiError
from shared.logging import request_id_var
from shared.metrics import MetricsCollector


API_URL = "http://api.test/api"


@pytest.fixture
def store():
    store = MemorySessionStore()
    store.save("token-abc", User(id="u1", name="Alice", email="alice@example.com", role="admin"))
    return store


@pytest.fixture
def metrics():
    return MetricsCollector("test_gateway")


def make_gateway(handler, store, metrics=None, on_unauthorized=None):
    return RemoteDataGateway(
        API_URL,
        store,
        metrics=metrics,
        on_unauthorized=on_unauthorized,
        transport=httpx.MockTransport(handler),
    )


class TestRemoteDataGateway:
    """Test cases for RemoteDataGateway."""

    @pytest.mark.asyncio
    async def test_get_unwraps_envelope_and_sends_auth(self, store, metrics):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {"totalRevenue": 16177}})

        gateway = make_gateway(handler, store, metrics)
        data = await gateway.get("/revenue/dashboard")

        assert data == {"totalRevenue": 16177}
        request = seen[0]
        assert request.url.path == "/api/revenue/dashboard"
        assert request.headers["Authorization"] == "Bearer token-abc"
        assert "_t" in request.url.params
        assert metrics.get_sample_value(
            "http_requests_total", method="GET", endpoint="/revenue/dashboard", status_code="200"
        ) == 1

    @pytest.mark.asyncio
    async def test_get_drops_unset_params(self, store):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": []})

        gateway = make_gateway(handler, store)
        await gateway.get("/events", params={"page": 2, "limit": None})

        params = seen[0].url.params
        assert params["page"] == "2"
        assert "limit" not in params

    @pytest.mark.asyncio
    async def test_each_request_carries_its_own_request_id(self, store):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.headers["X-Request-ID"], request_id_var.get()))
            return httpx.Response(200, json={"success": True, "data": None})

        gateway = make_gateway(handler, store)
        await gateway.get("/revenue/current-week")
        await gateway.post("/revenue", {"date": "2024-01-01"})

        first, second = seen
        assert first[0] == first[1]
        assert second[0] == second[1]
        assert first[0] != second[0]
        assert request_id_var.get() is None

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": None})

        gateway = make_gateway(handler, MemorySessionStore())
        await gateway.get("/health")

        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_write_sends_json_body_without_cache_buster(self, store):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {"date": "2024-01-01"}})

        gateway = make_gateway(handler, store)
        result = await gateway.put("/revenue/2024-01-01", {"posRevenue": 1200})

        assert result == {"date": "2024-01-01"}
        assert seen[0].method == "PUT"
        assert json.loads(seen[0].content) == {"posRevenue": 1200}
        assert "_t" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_delete_can_carry_a_body(self, store):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {"deleted": 2}})

        gateway = make_gateway(handler, store)
        result = await gateway.delete("/admin/revenue/bulk", {"dates": ["2024-01-01", "2024-01-02"]})

        assert result == {"deleted": 2}
        assert json.loads(seen[0].content) == {"dates": ["2024-01-01", "2024-01-02"]}

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope_raises(self, store):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Date already exists"})

        gateway = make_gateway(handler, store)

        with pytest.raises(ApiError) as exc_info:
            await gateway.post("/events", {"date": "2024-01-01"})

        error = exc_info.value
        assert error.message == "Date already exists"
        assert error.status == 200
        assert not error.is_transport_error

    @pytest.mark.asyncio
    async def test_error_status_uses_backend_message(self, store, metrics):
        def handler(request):
            return httpx.Response(422, json={"success": False, "error": "Invalid date"})

        gateway = make_gateway(handler, store, metrics)

        with pytest.raises(ApiError) as exc_info:
            await gateway.get("/revenue/date/not-a-date")

        error = exc_info.value
        assert error.message == "Invalid date"
        assert error.status == 422
        assert error.is_client_error
        assert not error.is_retryable
        assert error.data == {"success": False, "error": "Invalid date"}
        assert metrics.get_sample_value("errors_total", error_type="http_422", service="gateway") == 1

    @pytest.mark.asyncio
    async def test_error_status_without_body(self, store):
        def handler(request):
            return httpx.Response(502)

        gateway = make_gateway(handler, store)

        with pytest.raises(ApiError) as exc_info:
            await gateway.get("/revenue/dashboard")

        assert exc_info.value.message == "Request failed with status 502"
        assert exc_info.value.is_retryable

    @pytest.mark.asyncio
    async def test_unauthorized_clears_session(self, store):
        on_unauthorized = MagicMock()

        def handler(request):
            return httpx.Response(401, json={"success": False, "message": "Token expired"})

        gateway = make_gateway(handler, store, on_unauthorized=on_unauthorized)

        with pytest.raises(ApiError) as exc_info:
            await gateway.get("/admin/dashboard")

        assert exc_info.value.is_unauthorized
        assert store.get_token() is None
        assert store.get_user() is None
        on_unauthorized.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_timeout_is_a_retryable_transport_error(self, store):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(handler, store)

        with pytest.raises(ApiError) as exc_info:
            await gateway.get("/revenue/dashboard")

        error = exc_info.value
        assert error.message == "Request timed out"
        assert error.status is None
        assert error.is_transport_error
        assert error.is_retryable

    @pytest.mark.asyncio
    async def test_connection_failure_is_a_network_error(self, store):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = make_gateway(handler, store)

        with pytest.raises(ApiError) as exc_info:
            await gateway.get("/health")

        assert exc_info.value.message == "Network error. Please check your connection."
        assert exc_info.value.is_transport_error

    @pytest.mark.asyncio
    async def test_envelope_can_be_returned_whole(self, store):
        envelope = {"success": True, "message": "OK", "timestamp": "2024-01-01T00:00:00Z", "version": "1.0.0"}

        def handler(request):
            return httpx.Response(200, json=envelope)

        gateway = make_gateway(handler, store)

        assert await gateway.get("/health", unwrap=False) == envelope

    @pytest.mark.asyncio
    async def test_empty_response_returns_none(self, store):
        def handler(request):
            return httpx.Response(204)

        gateway = make_gateway(handler, store)

        assert await gateway.delete("/events/e1") is None

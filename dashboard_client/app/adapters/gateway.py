"""
Remote data gateway for the revenue API.
"""

import time
from typing import Any, Callable, Dict, Optional

import httpx

from shared.errors import ApiError
from shared.logging import REQUEST_ID_HEADER, get_logger, request_scope
from shared.metrics import MetricsCollector

from .session_store import SessionStore


class RemoteDataGateway:
    """HTTP access to the backend: auth header in, unwrapped payload or ApiError out."""

    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        *,
        timeout: float = 10.0,
        metrics: Optional[MetricsCollector] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.session_store = session_store
        self.timeout = timeout
        self.metrics = metrics
        self.on_unauthorized = on_unauthorized
        self._transport = transport
        self.logger = get_logger("gateway.remote_data")

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, unwrap: bool = True) -> Any:
        return await self.request("GET", path, params=params, unwrap=unwrap)

    async def post(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, body=body, params=params)

    async def put(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PUT", path, body=body, params=params)

    async def patch(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PATCH", path, body=body, params=params)

    async def delete(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("DELETE", path, body=body, params=params)

    def _headers(self, request_id: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", REQUEST_ID_HEADER: request_id}
        token = self.session_store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _query(method: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        query = {key: value for key, value in (params or {}).items() if value is not None}
        if method == "GET":
            # Defeat intermediary caches; freshness is the query cache's job
            query["_t"] = int(time.time() * 1000)
        return query

    async def request(self, method: str, path: str, body: Any = None,
                      params: Optional[Dict[str, Any]] = None, unwrap: bool = True) -> Any:
        """Perform a request and return the envelope's ``data`` (or the whole envelope)."""
        with request_scope() as request_id:
            return await self._send(method, path, body, params, unwrap, request_id)

    async def _send(self, method: str, path: str, body: Any, params: Optional[Dict[str, Any]],
                    unwrap: bool, request_id: str) -> Any:
        url = f"{self.base_url}{path}"
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=self._query(method, params),
                    json=body,
                    headers=self._headers(request_id)
                )
        except httpx.TimeoutException as e:
            self._record_error("timeout")
            self.logger.warning("API request timed out", method=method, path=path, error=str(e))
            raise ApiError("Request timed out", is_transport_error=True)
        except httpx.HTTPError as e:
            self._record_error("network")
            self.logger.warning("API request failed", method=method, path=path, error=str(e))
            raise ApiError("Network error. Please check your connection.", is_transport_error=True)

        duration = time.perf_counter() - start
        if self.metrics:
            self.metrics.record_http_request(method, _endpoint_label(path), response.status_code, duration)

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        if response.is_error:
            message = _envelope_message(payload) or f"Request failed with status {response.status_code}"
            self._record_error(f"http_{response.status_code}")
            self.logger.warning(
                "API error response",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message
            )
            if response.status_code == 401:
                self._handle_unauthorized()
            raise ApiError(message, response.status_code, payload, is_transport_error=True)

        if payload is None:
            return None

        if not isinstance(payload, dict) or not payload.get("success"):
            message = _envelope_message(payload) or "Request failed"
            self._record_error("envelope")
            raise ApiError(message, response.status_code, payload)

        self.logger.debug("API response", method=method, path=path, status_code=response.status_code)
        return payload.get("data") if unwrap else payload

    def _handle_unauthorized(self):
        self.logger.info("Session rejected by API, clearing stored credentials")
        self.session_store.clear()
        if self.on_unauthorized is not None:
            self.on_unauthorized()

    def _record_error(self, error_type: str):
        if self.metrics:
            self.metrics.record_error(error_type, service="gateway")


def _envelope_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        return payload.get("message") or payload.get("error")
    return None


def _endpoint_label(path: str) -> str:
    """First two path segments, so ids and dates do not explode label cardinality."""
    parts = [part for part in path.split("/") if part]
    return "/" + "/".join(parts[:2])

"""HTTP client for the distribution backend."""
import logging
from typing import Any, Mapping, Optional
import httpx

from distro_portal.config import config
from distro_portal.auth.session import TokenSession, error_message
from distro_portal.exceptions import PortalHTTPError, PortalTransportError
from distro_portal.fetch import endpoints
from distro_portal.recovery.models import Product

logger = logging.getLogger(__name__)


def clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop empty filter values so they are not sent as blank query parameters."""
    if not params:
        return {}
    return {key: value for key, value in params.items() if value is not None and value != ""}


def rekey_collection(body: Any, key: str) -> Any:
    """Move rows kept under a collection-specific key to "items", next to the pagination."""
    if not isinstance(body, Mapping) or key not in body:
        return body
    rekeyed = {name: value for name, value in body.items() if name != key}
    rekeyed["items"] = body[key]
    return rekeyed


class PortalClient:
    """Authenticated JSON client; list methods double as pagination fetch functions."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url or config.API_BASE_URL,
            timeout=timeout or config.REQUEST_TIMEOUT,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self.session = TokenSession(self.client, token=token)

    async def __aenter__(self):
        try:
            await self.session.ensure_authenticated()
        except Exception:
            await self.client.aclose()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """Send an authenticated request and return the decoded JSON body."""
        await self.session.ensure_authenticated()

        response = await self._send(method, path, params, json)
        if response.status_code == 401 and self.session.password:
            # Token expired; log in again and retry once
            logger.warning(f"Got 401 for {path}, re-authenticating...")
            self.session.invalidate()
            await self.session.login()
            response = await self._send(method, path, params, json)

        if response.status_code >= 400:
            message = error_message(response)
            logger.error(f"{method} {path} failed with {response.status_code}: {message}")
            raise PortalHTTPError(response.status_code, str(response.url), message)

        if not response.content:
            return None
        return response.json()

    async def _send(self, method: str, path: str, params: Optional[Mapping[str, Any]], json: Any) -> httpx.Response:
        try:
            return await self.client.request(
                method,
                path,
                params=clean_params(params),
                json=json,
                headers=self.session.auth_headers(),
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(f"Network error for {method} {path}: {e}")
            raise PortalTransportError(f"{method} {path}: {e}") from e

    # Collections

    async def get_collection(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET a list endpoint with page, limit and filter parameters."""
        return await self.request("GET", path, params=params)

    def list_fetcher(self, name: str):
        """Fetch function for PaginationController bound to a named collection."""
        path = endpoints.collection_path(name)
        key = endpoints.RESPONSE_KEYS.get(name)

        async def fetch(params: dict[str, Any]) -> Any:
            body = await self.get_collection(path, params)
            if key is None:
                return body
            return rekey_collection(body, key)

        return fetch

    # Recoveries

    async def get_shopkeepers_for_salesman(self, salesman_id: Optional[str] = None) -> list[dict]:
        """Shopkeepers assigned to a salesman, including pendingAmount."""
        salesman_id = salesman_id or self.session.user_id
        if not salesman_id:
            raise ValueError("salesman_id is required when the session has no user profile")
        body = await self.request("GET", endpoints.salesman_shopkeepers_path(salesman_id))
        if isinstance(body, dict):
            return body.get("shopkeepers") or []
        return body or []

    async def get_products(self, params: Optional[Mapping[str, Any]] = None) -> list[Product]:
        """Catalog snapshot a RecoveryDraft checks stock and default prices against."""
        body = await self.request("GET", endpoints.collection_path("products"), params=params)
        if isinstance(body, dict):
            rows = body.get("products") or []
        else:
            rows = body or []
        return [Product.model_validate(row) for row in rows]

    async def create_recovery(self, payload: Mapping[str, Any]) -> dict:
        """Submit a recovery; returns the stored recovery echoed by the backend."""
        body = await self.request("POST", endpoints.collection_path("recoveries"), json=dict(payload))
        if isinstance(body, dict) and "recovery" in body:
            return body["recovery"]
        return body

    async def get_recovery_stats(self, params: Optional[Mapping[str, Any]] = None) -> dict:
        return await self.request("GET", endpoints.recovery_stats_path(), params=params)

    async def create_receipt(self, payload: Mapping[str, Any]) -> dict:
        """Record a printed receipt for admin tracking."""
        return await self.request("POST", endpoints.collection_path("receipts"), json=dict(payload))

    # Analytics

    async def get_received_payments(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> dict:
        """Received-payment details: {startDate, endDate, summary, payers}."""
        body = await self.request(
            "GET",
            endpoints.received_payments_path(),
            params={"startDate": start_date, "endDate": end_date},
        )
        if isinstance(body, dict) and isinstance(body.get("details"), dict):
            return body["details"]
        return body or {}

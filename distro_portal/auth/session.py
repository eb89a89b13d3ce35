"""Bearer-token session: the single place credentials get attached to requests."""
import logging
from typing import Any, Optional
import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from distro_portal.config import config
from distro_portal.exceptions import AuthenticationError, PortalHTTPError, PortalTransportError
from distro_portal.fetch.endpoints import login_path

logger = logging.getLogger(__name__)


class TokenSession:
    """Holds the JWT and logged-in profile, logging in on demand."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        as_admin: Optional[bool] = None,
    ):
        self.client = client
        self._token: Optional[str] = token if token is not None else config.AUTH_TOKEN
        self.username = username if username is not None else config.USERNAME
        self.password = password if password is not None else config.PASSWORD
        self.as_admin = config.LOGIN_AS_ADMIN if as_admin is None else as_admin
        self.profile: dict[str, Any] = {}

    @property
    def user_id(self) -> Optional[str]:
        return self.profile.get("_id") or self.profile.get("id")

    def is_authenticated(self) -> bool:
        return self._token is not None

    async def ensure_authenticated(self) -> None:
        """Ensure we have a token, logging in if needed."""
        if self._token:
            return
        await self.login()

    async def login(self) -> None:
        """Exchange username/password for a token."""
        if not self.username or not self.password:
            raise AuthenticationError("Either AUTH_TOKEN or PORTAL_USERNAME/PORTAL_PASSWORD must be provided")

        logger.info(f"Logging in as {self.username}{' (admin)' if self.as_admin else ''}...")
        try:
            response = await self._login_request({"email": self.username, "password": self.password})
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.error(f"Login failed after retries: {e}")
            raise PortalTransportError(f"POST {login_path(self.as_admin)}: {e}") from e

        if response.status_code in (400, 401, 403):
            message = error_message(response)
            logger.error(f"Login rejected: {message}")
            raise AuthenticationError(f"Login rejected: {message}")
        if response.status_code >= 400:
            raise PortalHTTPError(response.status_code, str(response.url), error_message(response))

        body = response.json()
        token = body.get("token")
        if not token:
            raise AuthenticationError("No token found in login response")

        self._token = token
        self.profile = body.get("admin") or body.get("user") or body
        logger.info("Login successful - token obtained")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _login_request(self, login_data: dict) -> httpx.Response:
        """Make login request with retries on transient network errors."""
        return await self.client.post(login_path(self.as_admin), json=login_data)

    def invalidate(self) -> None:
        """Forget the token, e.g. after the backend answered 401."""
        self._token = None
        self.profile = {}

    def auth_headers(self) -> dict[str, str]:
        """Authorization header for an authenticated request."""
        if not self._token:
            raise AuthenticationError("Not authenticated. Call ensure_authenticated() first.")
        return {"Authorization": f"Bearer {self._token}"}


def error_message(response: httpx.Response) -> str:
    """Pull the backend's {"error": ...} message out of a response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)

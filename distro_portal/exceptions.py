"""Exception hierarchy for backend and recovery errors."""
from typing import Optional


class PortalError(Exception):
    """Base class for errors raised while talking to the backend."""


class PortalTransportError(PortalError):
    """No response was received (timeout, connection refused, DNS)."""


class PortalHTTPError(PortalError):
    """Backend answered with an error status.

    The backend puts a human readable message under ``error`` in the JSON
    body; it is kept on ``message`` so pages can show it in a toast.
    """

    def __init__(self, status_code: int, url: str, message: Optional[str] = None) -> None:
        self.status_code = status_code
        self.url = url
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"HTTP {status_code} for {url}{detail}")


class AuthenticationError(PortalError):
    """Credentials are missing or were rejected."""


class ResponseShapeError(PortalError):
    """No collection was found under any recognized alias."""

    def __init__(self, payload_type: str, keys: Optional[list[str]] = None) -> None:
        self.payload_type = payload_type
        self.keys = keys or []
        super().__init__(f"Unrecognized list response ({payload_type}, keys={self.keys})")


class InsufficientStockError(ValueError):
    """Requested quantity exceeds the product's known stock."""

    def __init__(self, product_name: str, requested: int, available: int) -> None:
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for {product_name}. Available: {available}, requested: {requested}")

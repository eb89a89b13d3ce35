"""Normalize list responses from the different collection endpoints."""
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from distro_portal.exceptions import ResponseShapeError
from distro_portal.paging.state import derive_total_pages

logger = logging.getLogger(__name__)

# Priority order matters: a payload carrying both "items" and "products" uses "items".
COLLECTION_ALIASES = (
    "items",
    "products",
    "users",
    "categories",
    "orders",
    "recoveries",
    "shopkeeperOrders",
)

PAGINATION_FIELDS = {
    "current": ("current", "page"),
    "pages": ("pages", "totalPages"),
    "total": ("total",),
}


@dataclass
class NormalizedPage:
    """Collection plus pagination metadata pulled out of a list response."""

    items: list[Any]
    current: Optional[int]
    pages: int
    total: int
    source: Optional[str] = None

    @property
    def recognized(self) -> bool:
        return self.source is not None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _positive_int(value: Any) -> Optional[int]:
    """Coerce pagination numbers; zero, negatives and junk count as missing."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _pick(meta: Mapping[str, Any], field_name: str) -> Optional[int]:
    for key in PAGINATION_FIELDS[field_name]:
        number = _positive_int(meta.get(key))
        if number is not None:
            return number
    return None


def extract_collection(payload: Any) -> tuple[list[Any], Mapping[str, Any], Optional[str]]:
    """
    Find the collection inside a list response.
    Returns (items, pagination_meta, source); source is None when nothing matched.
    """
    if _is_sequence(payload):
        return list(payload), {}, "<root>"

    if not isinstance(payload, Mapping):
        return [], {}, None

    container: Any = payload
    # An empty list or mapping under "data" still counts as the wrapper; only
    # null, false, 0 and "" fall through to the top-level aliases.
    if payload.get("data") not in (None, False, 0, ""):
        container = payload["data"]
        if _is_sequence(container):
            return list(container), payload.get("pagination") or {}, "data"
        if not isinstance(container, Mapping):
            return [], {}, None

    meta = container.get("pagination") or {}
    if not isinstance(meta, Mapping):
        meta = {}

    for alias in COLLECTION_ALIASES:
        value = container.get(alias)
        if _is_sequence(value):
            return list(value), meta, alias

    return [], meta, None


def normalize_page(payload: Any, page_size: int, strict: bool = False) -> NormalizedPage:
    """Normalize any supported response shape into a NormalizedPage."""
    items, meta, source = extract_collection(payload)

    if source is None:
        keys = sorted(payload.keys()) if isinstance(payload, Mapping) else []
        if strict:
            raise ResponseShapeError(type(payload).__name__, keys)
        logger.warning(f"Expected a collection but got {type(payload).__name__} (keys={keys}), using empty list")

    total = _pick(meta, "total")
    if total is None:
        total = len(items)

    pages = _pick(meta, "pages")
    if pages is None:
        pages = derive_total_pages(total, page_size)

    return NormalizedPage(
        items=items,
        current=_pick(meta, "current"),
        pages=pages,
        total=total,
        source=source,
    )

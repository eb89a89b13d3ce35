"""Pagination and filter controller driving paginated list views."""
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from distro_portal.paging.normalize import normalize_page
from distro_portal.paging.state import DEFAULT_PAGE_SIZE, PageState

logger = logging.getLogger(__name__)

FetchFunction = Callable[[dict[str, Any]], Awaitable[Any]]


class PaginationController:
    """
    Owns the PageState of one list view and re-fetches on every change.

    The fetch function receives {"page", "limit", **filters} and may return
    any of the supported list response shapes. Overlapping fetches are not
    cancelled: whichever response lands last wins, unless discard_stale is
    set, in which case only the most recently issued request may write.
    """

    def __init__(
        self,
        fetch: FetchFunction,
        initial_filters: Optional[Mapping[str, Any]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        strict: bool = False,
        discard_stale: bool = False,
    ):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.fetch = fetch
        self.initial_filters = dict(initial_filters or {})
        self.strict = strict
        self.discard_stale = discard_stale
        self.state = PageState(page_size=page_size, filters=dict(self.initial_filters))
        self._issued = 0
        self._in_flight = 0

    # Mutators

    async def load(self) -> PageState:
        """Initial fetch when the view is mounted."""
        return await self._fetch()

    async def refresh(self) -> PageState:
        """Re-fetch with unchanged page, size and filters."""
        return await self._fetch()

    async def set_page(self, page: int) -> PageState:
        # Clamping happens after the fetch against the server's totals
        if page == self.state.current_page:
            return self.state
        self.state.current_page = page
        return await self._fetch()

    async def set_page_size(self, page_size: int) -> PageState:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.state.page_size = page_size
        self.state.current_page = 1
        return await self._fetch()

    async def set_filter(self, key: str, value: Any) -> PageState:
        """Merge one filter and go back to page 1. Callers debounce free-text input."""
        self.state.filters = {**self.state.filters, key: value}
        self.state.current_page = 1
        return await self._fetch()

    async def set_filters(self, filters: Mapping[str, Any]) -> PageState:
        self.state.filters = dict(filters)
        self.state.current_page = 1
        return await self._fetch()

    async def clear_filters(self) -> PageState:
        self.state.filters = dict(self.initial_filters)
        self.state.current_page = 1
        return await self._fetch()

    # Fetching

    def build_params(self) -> dict[str, Any]:
        return {
            "page": self.state.current_page,
            "limit": self.state.page_size,
            **self.state.filters,
        }

    async def _fetch(self) -> PageState:
        self._issued += 1
        request_id = self._issued
        params = self.build_params()
        page_size = params["limit"]

        self._in_flight += 1
        self.state.loading = True
        self.state.error = None

        try:
            payload = await self.fetch(params)
            page = normalize_page(payload, page_size, strict=self.strict)
        except Exception as e:
            if self._is_stale(request_id):
                logger.debug(f"Dropping failure of superseded request {request_id}: {e}")
                return self.state
            logger.error(f"Error fetching paginated data: {e}")
            self.state.error = e
            self.state.items = []
            return self.state
        else:
            if self._is_stale(request_id):
                logger.debug(f"Dropping response of superseded request {request_id}")
                return self.state
            self._apply(page, page_size)
            return self.state
        finally:
            self._in_flight -= 1
            self.state.loading = self._in_flight > 0

    def _is_stale(self, request_id: int) -> bool:
        return self.discard_stale and request_id != self._issued

    def _apply(self, page, page_size: int) -> None:
        items = page.items
        if len(items) > page_size:
            logger.warning(f"Backend returned {len(items)} rows for limit={page_size}, truncating")
            items = items[:page_size]

        self.state.items = items
        self.state.diagnostic = None if page.recognized else "collection not found in response"
        if page.current is not None:
            self.state.current_page = page.current
        self.state.total_pages = page.pages
        self.state.total_items = page.total
        self.state.clamp_page()

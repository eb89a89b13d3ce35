"""Page state for paginated list views."""
import math
from dataclasses import dataclass, field
from typing import Any, Optional

PAGE_SIZE_OPTIONS = (10, 20, 50, 100)
DEFAULT_PAGE_SIZE = 10


@dataclass
class PageState:
    """Current page, totals, filters and rows of one list view."""

    items: list[Any] = field(default_factory=list)
    current_page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 1
    total_items: int = 0
    filters: dict[str, Any] = field(default_factory=dict)
    loading: bool = False
    error: Optional[Exception] = None
    diagnostic: Optional[str] = None

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def clamp_page(self) -> None:
        """Keep current_page within [1, total_pages]."""
        self.total_pages = max(1, self.total_pages)
        self.current_page = min(max(1, self.current_page), self.total_pages)

    def item_range(self) -> tuple[int, int]:
        """Return (first, last) 1-based item numbers shown on this page."""
        if self.total_items == 0:
            return 0, 0
        start = (self.current_page - 1) * self.page_size + 1
        end = min(self.total_items, self.current_page * self.page_size)
        return start, end

    def describe(self) -> str:
        start, end = self.item_range()
        return f"Showing {start} to {end} of {self.total_items} results"


def derive_total_pages(total_items: int, page_size: int) -> int:
    """Page count for a total, never below 1."""
    if page_size <= 0:
        return 1
    return max(1, math.ceil(total_items / page_size))


def page_window(current: int, total_pages: int, max_buttons: int = 5) -> list[Optional[int]]:
    """
    Page numbers to render as buttons.
    None marks an ellipsis gap. The first and last pages are always reachable.
    """
    if total_pages < 1:
        return []

    start = max(1, current - max_buttons // 2)
    end = min(total_pages, start + max_buttons - 1)
    if end - start < max_buttons - 1:
        start = max(1, end - max_buttons + 1)

    window: list[Optional[int]] = []
    if start > 1:
        window.append(1)
        if start > 2:
            window.append(None)

    window.extend(range(start, end + 1))

    if end < total_pages:
        if end < total_pages - 1:
            window.append(None)
        window.append(total_pages)

    return window

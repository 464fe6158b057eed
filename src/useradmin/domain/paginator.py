"""Page/page-size bookkeeping for the user list.

The paginator holds numbers only.  It never fetches data: when the page or
the page size changes it calls the registered callback, and the caller is
responsible for requesting the matching slice from the backend.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from useradmin.config import DEFAULT_PAGE_SIZE, MAX_VISIBLE_PAGES
from useradmin.domain.models import PageInfo

LOGGER = logging.getLogger(__name__)

PageChangeCallback = Callable[[int, int], None]


class Paginator:
    """Stateful page tracker.

    ``on_change(page, page_size)`` fires whenever the current page or the page
    size actually changes.  Page numbers are 1-based and always clamped to
    ``[1, total_pages]`` (with at least one page, even for an empty list).
    """

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_change: Optional[PageChangeCallback] = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._page_size = page_size
        self._page = 1
        self._total_count = 0
        self._on_change = on_change

    # -- properties --------------------------------------------------------

    def current_page(self) -> int:
        return self._page

    def page_size(self) -> int:
        return self._page_size

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def total_pages(self) -> int:
        if self._total_count <= 0:
            return 1
        return (self._total_count + self._page_size - 1) // self._page_size

    @property
    def has_previous(self) -> bool:
        return self._page > 1

    @property
    def has_next(self) -> bool:
        return self._page < self.total_pages

    # -- public API --------------------------------------------------------

    def set_callback(self, on_change: Optional[PageChangeCallback]) -> None:
        self._on_change = on_change

    def set_total(self, count: int, page_size: Optional[int] = None) -> None:
        """Record a new total item count (and optionally a page size).

        A different page size resets to page 1.  A shrinking total clamps the
        current page into range.  Either case fires the callback.
        """
        self._total_count = max(0, int(count))
        if page_size is not None and page_size != self._page_size:
            self.set_page_size(page_size)
            return
        clamped = self._clamp(self._page)
        if clamped != self._page:
            self._page = clamped
            self._notify()

    def set_page_size(self, page_size: int) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if page_size == self._page_size:
            return
        self._page_size = page_size
        self._page = 1
        self._notify()

    def go_to(self, page: int) -> int:
        """Move to *page*, clamped into range; return the resulting page."""
        target = self._clamp(page)
        if target != self._page:
            self._page = target
            self._notify()
        return self._page

    def next_page(self) -> int:
        return self.go_to(self._page + 1)

    def previous_page(self) -> int:
        return self.go_to(self._page - 1)

    def apply_server_pagination(self, info: PageInfo) -> None:
        """Adopt the page/total reported by the backend without notifying."""
        self._total_count = max(0, info.total)
        if info.limit > 0:
            self._page_size = info.limit
        self._page = self._clamp(info.page)

    def item_range(self) -> Tuple[int, int]:
        """Return the 1-based (first, last) item numbers shown on this page."""
        if self._total_count <= 0:
            return (0, 0)
        first = (self._page - 1) * self._page_size + 1
        last = min(self._total_count, self._page * self._page_size)
        return (first, last)

    def page_numbers(self, max_visible: int = MAX_VISIBLE_PAGES) -> List[Optional[int]]:
        """Page buttons to render; ``None`` marks an ellipsis gap."""
        total = self.total_pages
        current = self._page
        if total <= max_visible:
            return list(range(1, total + 1))

        half = max_visible // 2
        if current <= half + 1:
            pages: List[Optional[int]] = list(range(1, max_visible))
            pages += [None, total]
            return pages
        if current >= total - half:
            tail_start = total - (max_visible - 3)
            return [1, None] + list(range(tail_start, total + 1))

        window = max_visible - 4
        start = current - window // 2
        return [1, None] + list(range(start, start + window)) + [None, total]

    # -- internal ----------------------------------------------------------

    def _clamp(self, page: int) -> int:
        return max(1, min(int(page), self.total_pages))

    def _notify(self) -> None:
        LOGGER.debug("Page changed to %d (size %d)", self._page, self._page_size)
        if self._on_change is not None:
            self._on_change(self._page, self._page_size)

"""
List view controller.

Owns the working set behind a listing (blog, programs, dashboard sections)
and derives everything shown from it:

    topics, years    facets, "All" first, then first-seen order
    filtered         topic -> year -> case-insensitive title search,
                     stable with respect to the working set
    page_slice       fixed-size window over filtered

Derived values are recomputed on access and never stored, so they cannot
drift from the working set or the filter inputs. Any change to the working
set or a filter input sends the view back to page 1.

Usage:
    view = ListViewController(lambda: repository.list_all(Collection.BLOGS), page_size=3)
    state = await view.load()
    if isinstance(state, Loaded):
        view.set_topic("Youth")
        view.go_to_page(2)
        posts = view.page_slice
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from tonypoem.core.content.errors import ContentError, FetchError
from tonypoem.core.content.records import ContentRecord

logger = logging.getLogger("tonypoem.content")

ALL = "All"


@dataclass(frozen=True)
class Loading:
    """Fetch in flight (or not started yet)."""


@dataclass(frozen=True)
class Loaded:
    records: Tuple[ContentRecord, ...]


@dataclass(frozen=True)
class Failed:
    error: ContentError

    @property
    def message(self) -> str:
        return self.error.user_message


LoadState = Union[Loading, Loaded, Failed]
Fetcher = Callable[[], Awaitable[Sequence[ContentRecord]]]


def _distinct(values: Sequence[str]) -> List[str]:
    seen = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


class ListViewController:
    """Filter/paginate pipeline over one in-memory working set."""

    def __init__(self, fetch: Optional[Fetcher] = None, page_size: int = 3):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._fetch = fetch
        self.page_size = page_size
        self.state: LoadState = Loading()
        self._all_records: List[ContentRecord] = []
        self._search_text = ""
        self._selected_topic = ALL
        self._selected_year = ALL
        self._current_page = 1
        self._generation = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> LoadState:
        """
        Fetch the working set once for this page activation.

        A result that arrives after close(), or after a newer load() began,
        is dropped without touching the working set.
        """
        if self._fetch is None:
            raise RuntimeError("ListViewController has no fetcher")

        self._generation += 1
        generation = self._generation
        self.state = Loading()
        try:
            records = list(await self._fetch())
        except ContentError as e:
            if self._is_stale(generation):
                return self.state
            self.state = Failed(e)
            return self.state
        except Exception as e:
            if self._is_stale(generation):
                return self.state
            logger.error(f"Unexpected listing fetch failure: {e}")
            self.state = Failed(FetchError(str(e)))
            return self.state

        if self._is_stale(generation):
            logger.debug("Discarding listing result that arrived after teardown")
            return self.state

        self.set_records(records)
        self.state = Loaded(tuple(records))
        return self.state

    def close(self) -> None:
        """Tear the view down; pending loads will not apply their results."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def all_records(self) -> List[ContentRecord]:
        return list(self._all_records)

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def selected_topic(self) -> str:
        return self._selected_topic

    @property
    def selected_year(self) -> str:
        return self._selected_year

    @property
    def current_page(self) -> int:
        return self._current_page

    def set_records(self, records: Sequence[ContentRecord]) -> None:
        self._all_records = list(records)
        self._current_page = 1

    def set_search(self, text: Optional[str]) -> None:
        self._search_text = text or ""
        self._current_page = 1

    def set_topic(self, topic: Optional[str]) -> None:
        self._selected_topic = topic or ALL
        self._current_page = 1

    def set_year(self, year: Optional[str]) -> None:
        self._selected_year = year or ALL
        self._current_page = 1

    def discard(self, record_id: str) -> bool:
        """Drop exactly the record with `record_id` from the working set."""
        remaining = [r for r in self._all_records if r.id != record_id]
        if len(remaining) == len(self._all_records):
            return False
        self._all_records = remaining
        self._current_page = min(self._current_page, self.total_pages)
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_page(self) -> int:
        if self.has_next:
            self._current_page += 1
        return self._current_page

    def prev_page(self) -> int:
        if self.has_previous:
            self._current_page -= 1
        return self._current_page

    def go_to_page(self, page: int) -> int:
        self._current_page = max(1, min(int(page), self.total_pages))
        return self._current_page

    # ------------------------------------------------------------------
    # Derivations
    # ------------------------------------------------------------------

    @property
    def topics(self) -> List[str]:
        return [ALL] + _distinct([r.category for r in self._all_records])

    @property
    def years(self) -> List[str]:
        return [ALL] + _distinct([r.year for r in self._all_records])

    @property
    def filtered(self) -> List[ContentRecord]:
        result = self._all_records
        if self._selected_topic != ALL:
            result = [r for r in result if r.category == self._selected_topic]
        if self._selected_year != ALL:
            # Records without a parseable date never match a specific year
            result = [r for r in result if r.parsed_date is not None and r.year == self._selected_year]
        if self._search_text:
            needle = self._search_text.lower()
            result = [r for r in result if needle in (r.title or r.name or "").lower()]
        return list(result)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.filtered) / self.page_size))

    @property
    def page_slice(self) -> List[ContentRecord]:
        start = (self._current_page - 1) * self.page_size
        return self.filtered[start:start + self.page_size]

    @property
    def has_previous(self) -> bool:
        return self._current_page > 1

    @property
    def has_next(self) -> bool:
        return self._current_page < self.total_pages

    @property
    def is_empty(self) -> bool:
        return not self.filtered

    @property
    def show_pagination(self) -> bool:
        return not self.is_empty

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a cursor-paginated listing."""

    results: Sequence[T]
    next_cursor: str | None = None


FetchPageFn = Callable[[str | None], Page[T]]


def iterate_paginated(fetch_page: FetchPageFn[T]) -> Iterator[T]:
    """
    Yield every result of a cursor-paginated listing, in page order.

    `fetch_page` is called with None for the first page and with the cursor
    reported by the previous page afterwards. Iteration stops only when a page
    reports no further cursor; a source that always reports one is followed
    indefinitely. Errors raised by `fetch_page` propagate unchanged and end
    the iteration. Call again to restart from the first page.
    """
    cursor: str | None = None
    while True:
        page = fetch_page(cursor)
        yield from page.results
        if not page.next_cursor:
            return
        cursor = page.next_cursor

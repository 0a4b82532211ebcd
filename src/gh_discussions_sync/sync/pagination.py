"""Cursor-based pagination walker."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

logger = logging.getLogger(__name__)


class PaginationError(Exception):
    """Raised when a listing cannot be walked to completion."""


class Page(Protocol[T_co]):
    """Shape of one page; ``DiscussionPage`` satisfies it."""

    @property
    def items(self) -> Sequence[T_co]: ...  # pragma: no cover

    @property
    def has_more(self) -> bool: ...  # pragma: no cover

    @property
    def next_cursor(self) -> str | None: ...  # pragma: no cover


async def walk_pages(
    fetch_page: Callable[[int, str | None], Awaitable[Page[T]]],
    page_size: int,
) -> list[T]:
    """Fetch every page of a listing and concatenate the items.

    The cursor returned by page N is the only input for page N+1, so items
    keep server order and are neither skipped nor repeated. Transport
    errors from *fetch_page* propagate unchanged.

    Args:
        fetch_page: Async callable ``(page_size, cursor) -> page``.
        page_size: Items requested per page.

    Returns:
        All items in server order.

    Raises:
        PaginationError: If a page reports more items but no cursor, or
            repeats the previous cursor.
    """
    items: list[T] = []
    cursor: str | None = None
    pages = 0

    while True:
        page = await fetch_page(page_size, cursor)
        pages += 1
        items.extend(page.items)

        if not page.has_more:
            break
        if not page.next_cursor or page.next_cursor == cursor:
            raise PaginationError(
                f"Page {pages} reports more results but no new cursor"
            )
        cursor = page.next_cursor

    logger.debug("Walked %d page(s), %d item(s)", pages, len(items))
    return items

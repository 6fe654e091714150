"""Offset pagination driver."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def paginate(
    fetch_page: Callable[[int, int], Awaitable[list[T]]],
    *,
    page_size: int = 500,
    delay: float = 0.1,
    max_pages: int | None = None,
) -> list[T]:
    """Collect every item from an offset-paginated endpoint.

    Pages are requested sequentially until one comes back short. A pause of
    ``delay`` seconds between pages keeps us under vendor rate limits.

    Args:
        fetch_page: Coroutine function taking ``(offset, count)``
        page_size: Items requested per page
        delay: Seconds to wait between pages
        max_pages: Optional hard cap on requested pages

    Returns:
        list: Items in page order
    """
    items: list[T] = []
    offset = 0
    pages = 0

    while True:
        page = await fetch_page(offset, page_size)
        items.extend(page)
        pages += 1

        if len(page) < page_size:
            break
        if max_pages is not None and pages >= max_pages:
            logger.warning(
                f"Stopped paginating after {pages} pages ({len(items)} items)"
            )
            break

        offset += page_size
        if delay:
            logger.debug(
                f"Fetched {len(items)} items, waiting {delay}s before next page"
            )
            await asyncio.sleep(delay)

    return items

"""
Bounded page walks over Judge.me collections.

The API reports no total count, so a page shorter than ``per_page`` is taken
as the last page. Every walk also stops after ``max_pages`` fetches.
"""

from typing import AsyncIterator, Awaitable, Callable, Sequence, TypeVar

from loguru import logger

T = TypeVar("T")

PageFetcher = Callable[[int, int], Awaitable[Sequence[T]]]


async def walk_pages(
    fetch_page: PageFetcher[T],
    per_page: int,
    max_pages: int,
) -> AsyncIterator[tuple[int, Sequence[T]]]:
    """
    Yield ``(page_number, items)`` for pages 1..max_pages, one fetch at a time.

    Args:
        fetch_page: Coroutine function taking (page, per_page)
        per_page: Requested page size
        max_pages: Hard ceiling on the number of fetches

    Stops after the first short page or once max_pages pages were fetched.
    A consumer that stops iterating early triggers no further fetches.
    """
    for page in range(1, max_pages + 1):
        items = await fetch_page(page, per_page)
        yield page, items

        if len(items) < per_page:
            logger.debug(f"Page {page} returned {len(items)} items, end of collection")
            return

    logger.debug(f"Stopped page walk at ceiling of {max_pages} pages")

"""
Client-side keyword search over reviews.

Judge.me has no text search, so review pages are scanned and filtered
locally. Each scan is capped at MAX_SEARCH_PAGES pages.
"""

from typing import Awaitable, Callable, Sequence

from loguru import logger

from reviewdesk.datasource.judgeme.models import Review, SearchResult
from reviewdesk.datasource.judgeme.pagination import walk_pages

REVIEWS_PER_PAGE = 100
DEFAULT_SEARCH_PAGES = 10
MAX_SEARCH_PAGES = 10


class ReviewSearch:
    """Scans up to ``max_pages`` review pages for a search term."""

    def __init__(
        self,
        fetch_reviews: Callable[[int, int, int | None], Awaitable[Sequence[Review]]],
        per_page: int = REVIEWS_PER_PAGE,
    ):
        self._fetch_reviews = fetch_reviews
        self.per_page = per_page

    async def search(
        self,
        term: str,
        rating: int | None = None,
        max_pages: int = DEFAULT_SEARCH_PAGES,
    ) -> SearchResult:
        """
        Search review titles and bodies for a term (case-insensitive).

        Args:
            term: Text to look for
            rating: Only scan reviews with this star rating
            max_pages: Pages to scan, clamped to 1..MAX_SEARCH_PAGES

        Returns:
            SearchResult with matches in page order
        """
        max_pages = max(1, min(max_pages, MAX_SEARCH_PAGES))

        async def fetch_page(page: int, per_page: int) -> Sequence[Review]:
            return await self._fetch_reviews(page, per_page, rating)

        matches: list[Review] = []
        pages_searched = 0

        async for page, reviews in walk_pages(fetch_page, self.per_page, max_pages):
            pages_searched = page
            # pages may come from the cache; matches must not alias cached reviews
            matches.extend(
                r.model_copy(deep=True) for r in reviews if r.mentions(term)
            )

        logger.info(
            f"Search '{term}' matched {len(matches)} review(s) "
            f"in {pages_searched} page(s)"
        )
        return SearchResult(
            matches=matches,
            pages_searched=pages_searched,
            total_matches=len(matches),
        )

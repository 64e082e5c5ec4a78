"""
Judge.me Reviews API data source.

API Documentation: https://judge.me/api/docs
Reviews, replies, reviewers, products and shop metrics for one Shopify store.

Uses both the public and the private API token. Reads are cached per
operation with TTLs; writes go straight to the API and invalidate the
affected cache entries.
"""

from typing import Any, Literal, Sequence

from loguru import logger

from reviewdesk.datasource.judgeme.models import (
    Product,
    ProductsPage,
    Review,
    ReviewCount,
    ReviewEnvelope,
    ReviewerEnvelope,
    ReviewsPage,
    SearchResult,
    ShopInfo,
)
from reviewdesk.datasource.judgeme.resolver import ProductResolver
from reviewdesk.datasource.judgeme.search import DEFAULT_SEARCH_PAGES, ReviewSearch
from reviewdesk.services.cache import (
    TTL,
    CacheConfig,
    CacheManager,
    CacheStats,
    create_cache_key,
)
from reviewdesk.services.client import RequestExecutor
from reviewdesk.services.errors import ProductNotFoundError
from reviewdesk.settings import (
    DEFAULT_CACHE_NAMESPACE,
    Settings,
    load_credentials,
)

CurationStatus = Literal["ok", "spam"]

# review, reviews and reviews_count keys; reviewer keys are left alone
REVIEW_FAMILY_PATTERN = r"^(review|reviews|reviews_count)(:|$)"


class JudgemeSource:
    """
    Judge.me data-access layer.

    Each read builds a cache key from internal identifiers only and goes
    through CacheManager.get_or_fetch. Shopify product IDs are resolved to
    Judge.me product IDs before any key or request is built.

    Usage:
        async with JudgemeSource.from_settings(load_settings()) as judgeme:
            count = await judgeme.count_reviews(shopify_product_id=555)
    """

    SERVICE_ID = "judgeme"

    def __init__(self, client: RequestExecutor, cache: CacheManager | None = None):
        self.client = client
        self.cache = cache or CacheManager(
            CacheConfig(namespace=DEFAULT_CACHE_NAMESPACE)
        )
        self.cache_disabled = False
        self.resolver = ProductResolver(self._fetch_product_page)
        self.searcher = ReviewSearch(self._fetch_review_page)

    @classmethod
    def from_settings(cls, settings: Settings) -> "JudgemeSource":
        """Build a source with its own executor and cache from settings."""
        client = RequestExecutor(
            load_credentials(settings),
            base_url=settings.judgeme_base_url,
            timeout=settings.judgeme_request_timeout,
        )
        cache = CacheManager(
            CacheConfig(
                namespace=settings.cache_namespace,
                default_ttl=TTL.FIFTEEN_MINUTES,
                max_size=settings.cache_max_size,
                debug=settings.cache_debug,
            )
        )
        return cls(client, cache)

    @property
    def service_id(self) -> str:
        return self.SERVICE_ID

    # Cache control

    def disable_cache(self) -> None:
        """Disables caching for all subsequent requests."""
        self.cache_disabled = True
        self.cache.disable()

    def enable_cache(self) -> None:
        """Re-enables caching after it was disabled."""
        self.cache_disabled = False
        self.cache.enable()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear_cache(self) -> int:
        """Clears all cached data. Returns number of entries cleared."""
        return self.cache.clear()

    def invalidate_cache_key(self, key: str) -> bool:
        return self.cache.invalidate(key)

    # Reviews

    async def list_reviews(
        self,
        page: int | None = None,
        per_page: int | None = None,
        product_id: int | None = None,
        shopify_product_id: int | None = None,
        rating: int | None = None,
    ) -> ReviewsPage:
        """
        List reviews with optional filters (cached 15 minutes).

        Args:
            page: Page number (1-indexed)
            per_page: Results per page (max 100)
            product_id: Judge.me internal product ID
            shopify_product_id: Shopify product ID, resolved to the internal ID
            rating: Star rating (1-5)

        Raises:
            ProductNotFoundError: If shopify_product_id matches no product
        """
        product_id = await self.resolve_product_id(product_id, shopify_product_id)

        key = create_cache_key(
            "reviews",
            {
                "page": page,
                "perPage": per_page,
                "productId": product_id,
                "rating": rating,
            },
        )

        return await self.cache.get_or_fetch(
            key,
            lambda: self.client.execute(
                "/reviews",
                params={
                    "page": page,
                    "per_page": per_page,
                    "product_id": product_id,
                    "rating": rating,
                },
                response_model=ReviewsPage,
            ),
            ttl=TTL.FIFTEEN_MINUTES,
            bypass_cache=self.cache_disabled,
        )

    async def get_review(self, review_id: int) -> ReviewEnvelope:
        """Get a single review, including its reply if any (cached 5 minutes)."""
        return await self.cache.get_or_fetch(
            create_cache_key("review", {"id": review_id}),
            lambda: self.client.execute(
                f"/reviews/{review_id}", response_model=ReviewEnvelope
            ),
            ttl=TTL.FIVE_MINUTES,
            bypass_cache=self.cache_disabled,
        )

    async def count_reviews(
        self,
        product_id: int | None = None,
        shopify_product_id: int | None = None,
        rating: int | None = None,
    ) -> ReviewCount:
        """
        Count reviews matching the filters (cached 15 minutes).

        Raises:
            ProductNotFoundError: If shopify_product_id matches no product
        """
        product_id = await self.resolve_product_id(product_id, shopify_product_id)

        key = create_cache_key(
            "reviews_count", {"productId": product_id, "rating": rating}
        )

        return await self.cache.get_or_fetch(
            key,
            lambda: self.client.execute(
                "/reviews/count",
                params={"product_id": product_id, "rating": rating},
                response_model=ReviewCount,
            ),
            ttl=TTL.FIFTEEN_MINUTES,
            bypass_cache=self.cache_disabled,
        )

    async def curate_review(
        self, review_id: int, status: CurationStatus
    ) -> ReviewEnvelope:
        """
        Approve ('ok') or hide ('spam') a review.

        A curation change can move the review in and out of listings and
        counts, so every review-family entry is invalidated.
        """
        result = await self.client.execute(
            f"/reviews/{review_id}",
            method="PUT",
            body={"curated": status},
            response_model=ReviewEnvelope,
        )
        removed = self.cache.invalidate_pattern(REVIEW_FAMILY_PATTERN)
        logger.info(
            f"Curated review {review_id} as '{status}', "
            f"invalidated {removed} cache entries"
        )
        return result

    async def reply_to_review(self, review_id: int, reply: str) -> dict[str, Any]:
        """Post a public reply, shown on the storefront below the review."""
        result = await self.client.execute(
            "/replies",
            method="POST",
            body={"review_id": review_id, "body": reply},
        )
        self.cache.invalidate(create_cache_key("review", {"id": review_id}))
        logger.info(f"Posted public reply to review {review_id}")
        return result

    async def send_private_reply(
        self, review_id: int, subject: str, body: str
    ) -> dict[str, Any]:
        """Email the reviewer directly; nothing is published."""
        result = await self.client.execute(
            "/private_replies",
            method="POST",
            body={"review_id": review_id, "subject": subject, "body": body},
        )
        logger.info(f"Sent private reply for review {review_id}")
        return result

    # Reviewers

    async def get_reviewer_by_id(self, reviewer_id: int) -> ReviewerEnvelope:
        return await self.cache.get_or_fetch(
            create_cache_key("reviewer", {"id": reviewer_id}),
            lambda: self.client.execute(
                f"/reviewers/{reviewer_id}", response_model=ReviewerEnvelope
            ),
            ttl=TTL.FIFTEEN_MINUTES,
            bypass_cache=self.cache_disabled,
        )

    async def get_reviewer_by_email(self, email: str) -> ReviewerEnvelope:
        return await self.cache.get_or_fetch(
            create_cache_key("reviewer_email", {"email": email}),
            lambda: self.client.execute(
                "/reviewers/find",
                params={"email": email},
                response_model=ReviewerEnvelope,
            ),
            ttl=TTL.FIFTEEN_MINUTES,
            bypass_cache=self.cache_disabled,
        )

    # Shop

    async def get_shop_info(self) -> ShopInfo:
        """Shop info and aggregate review metrics (cached 1 hour)."""
        return await self.cache.get_or_fetch(
            create_cache_key("shop_info"),
            lambda: self.client.execute("/shops/info", response_model=ShopInfo),
            ttl=TTL.HOUR,
            bypass_cache=self.cache_disabled,
        )

    # Products

    async def list_products(
        self, page: int | None = None, per_page: int | None = None
    ) -> ProductsPage:
        """List products tracked by Judge.me (cached 1 hour)."""
        return await self.cache.get_or_fetch(
            create_cache_key("products", {"page": page, "perPage": per_page}),
            lambda: self.client.execute(
                "/products",
                params={"page": page, "per_page": per_page},
                response_model=ProductsPage,
            ),
            ttl=TTL.HOUR,
            bypass_cache=self.cache_disabled,
        )

    async def get_product_by_external_id(self, external_id: int) -> Product | None:
        """
        Look up the Judge.me product for a Shopify product ID (cached 1 hour).

        Returns:
            The product, or None when no product page contains it
        """
        return await self.cache.get_or_fetch(
            create_cache_key("product_external", {"externalId": external_id}),
            lambda: self.resolver.resolve(external_id),
            ttl=TTL.HOUR,
            bypass_cache=self.cache_disabled,
        )

    async def resolve_product_id(
        self,
        product_id: int | None = None,
        shopify_product_id: int | None = None,
    ) -> int | None:
        """
        Turn a product filter into a Judge.me product ID.

        An explicit Judge.me product_id wins. Otherwise a Shopify product ID
        is resolved through get_product_by_external_id.

        Raises:
            ProductNotFoundError: If the Shopify product ID is unknown
        """
        if product_id is not None or shopify_product_id is None:
            return product_id

        product = await self.get_product_by_external_id(shopify_product_id)
        if product is None:
            raise ProductNotFoundError(shopify_product_id, service_id=self.SERVICE_ID)
        return product.id

    # Search

    async def search_reviews(
        self,
        search: str,
        rating: int | None = None,
        max_pages: int = DEFAULT_SEARCH_PAGES,
    ) -> SearchResult:
        """
        Search review titles and bodies client-side.

        Not cached as a whole; each scanned page is served by list_reviews
        and its cache.
        """
        return await self.searcher.search(search, rating=rating, max_pages=max_pages)

    async def _fetch_product_page(self, page: int, per_page: int) -> Sequence[Product]:
        return (await self.list_products(page=page, per_page=per_page)).products

    async def _fetch_review_page(
        self, page: int, per_page: int, rating: int | None
    ) -> Sequence[Review]:
        result = await self.list_reviews(page=page, per_page=per_page, rating=rating)
        return result.reviews

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "JudgemeSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

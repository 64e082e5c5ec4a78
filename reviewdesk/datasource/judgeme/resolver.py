"""
Shopify product ID -> Judge.me product resolution.

Judge.me has no lookup-by-external-ID endpoint, so products are scanned page
by page until one matches.
"""

from typing import Awaitable, Callable, Sequence

from loguru import logger

from reviewdesk.datasource.judgeme.models import Product
from reviewdesk.datasource.judgeme.pagination import walk_pages

PRODUCTS_PER_PAGE = 100
MAX_PRODUCT_PAGES = 100


class ProductResolver:
    """
    Finds the Judge.me product for a Shopify product ID.

    Pages are fetched sequentially in ascending order, so the first match in
    page order is returned. The scan ends at the first short page or after
    MAX_PRODUCT_PAGES pages, whichever comes first.
    """

    def __init__(
        self,
        fetch_products: Callable[[int, int], Awaitable[Sequence[Product]]],
        per_page: int = PRODUCTS_PER_PAGE,
        max_pages: int = MAX_PRODUCT_PAGES,
    ):
        self._fetch_products = fetch_products
        self.per_page = per_page
        self.max_pages = max_pages

    async def resolve(self, external_id: int) -> Product | None:
        """Return the product whose external_id matches, or None."""
        pages = 0
        async for page, products in walk_pages(
            self._fetch_products, self.per_page, self.max_pages
        ):
            pages = page
            for product in products:
                if product.external_id == external_id:
                    logger.info(
                        f"Resolved Shopify product {external_id} -> "
                        f"Judge.me product {product.id} (page {page})"
                    )
                    return product

        logger.info(
            f"No Judge.me product for Shopify product {external_id} "
            f"after {pages} page(s)"
        )
        return None

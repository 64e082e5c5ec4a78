"""
Judge.me data source for product reviews.
"""

from reviewdesk.datasource.judgeme.models import (
    Product,
    ProductsPage,
    Review,
    ReviewCount,
    ReviewEnvelope,
    Reviewer,
    ReviewerEnvelope,
    ReviewsPage,
    SearchResult,
    ShopInfo,
)
from reviewdesk.datasource.judgeme.resolver import ProductResolver
from reviewdesk.datasource.judgeme.search import ReviewSearch
from reviewdesk.datasource.judgeme.source import JudgemeSource

__all__ = [
    "JudgemeSource",
    "ProductResolver",
    "ReviewSearch",
    "Product",
    "ProductsPage",
    "Review",
    "ReviewCount",
    "ReviewEnvelope",
    "Reviewer",
    "ReviewerEnvelope",
    "ReviewsPage",
    "SearchResult",
    "ShopInfo",
]

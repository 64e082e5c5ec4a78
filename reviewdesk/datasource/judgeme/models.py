"""
Typed Judge.me response payloads.

Fields the API does not always send are optional; unknown fields are kept
so nothing the API returns is dropped on the way to the caller.
"""

from pydantic import BaseModel, ConfigDict


class JudgemeModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class ReviewReviewer(JudgemeModel):
    """Reviewer summary embedded in a review."""

    id: int
    email: str | None = None
    name: str | None = None


class PictureUrls(JudgemeModel):
    original: str | None = None
    small: str | None = None


class ReviewPicture(JudgemeModel):
    urls: PictureUrls


class ReviewReply(JudgemeModel):
    body: str
    created_at: str | None = None


class Review(JudgemeModel):
    """A product review."""

    id: int
    title: str | None = None
    body: str | None = None
    rating: int
    reviewer: ReviewReviewer | None = None
    product_external_id: int | None = None
    product_title: str | None = None
    curated: str | None = None  # 'ok' | 'spam' | None (pending)
    published: bool | None = None
    hidden: bool | None = None
    verified: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    pictures: list[ReviewPicture] | None = None
    reply: ReviewReply | None = None

    def mentions(self, term: str) -> bool:
        """Case-insensitive substring match over title and body."""
        needle = term.lower()
        return any(
            needle in text.lower() for text in (self.title, self.body) if text
        )


class ReviewsPage(JudgemeModel):
    reviews: list[Review]
    current_page: int | None = None
    per_page: int | None = None


class ReviewEnvelope(JudgemeModel):
    review: Review


class ReviewCount(JudgemeModel):
    count: int


class Reviewer(JudgemeModel):
    """Full reviewer record, including marketing preferences."""

    id: int
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    accepts_marketing: bool | None = None
    unsubscribed_at: str | None = None


class ReviewerEnvelope(JudgemeModel):
    reviewer: Reviewer


class Shop(JudgemeModel):
    id: int | None = None
    name: str | None = None
    domain: str | None = None
    platform: str | None = None
    plan: str | None = None
    created_at: str | None = None
    reviews_count: int | None = None
    average_rating: float | None = None
    widget_installed: bool | None = None


class ShopInfo(JudgemeModel):
    shop: Shop


class Product(JudgemeModel):
    """A product as tracked by Judge.me."""

    id: int  # Judge.me internal product ID
    external_id: int | None = None  # Shopify product ID
    title: str | None = None
    handle: str | None = None


class ProductsPage(JudgemeModel):
    products: list[Product]
    current_page: int | None = None
    per_page: int | None = None


class SearchResult(BaseModel):
    """Outcome of a bounded keyword scan over reviews."""

    matches: list[Review]
    pages_searched: int
    total_matches: int

"""
reviewdesk CLI - Judge.me product review management.

Every command prints JSON on stdout. Failures print ``{"error": ...}`` on
stderr and exit with code 1.
"""

import asyncio
import json
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, NoReturn

import httpx
import typer
from loguru import logger
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError

from reviewdesk.datasource.judgeme import JudgemeSource
from reviewdesk.services.cache import CacheStats
from reviewdesk.services.errors import ProductNotFoundError, ServiceError
from reviewdesk.settings import ConfigurationError, Settings, load_settings

app = typer.Typer(
    name="reviewdesk",
    help="Judge.me product review management",
    no_args_is_help=True,
)

TOOLS = [
    "list-reviews",
    "get-review",
    "count-reviews",
    "curate-review",
    "reply-to-review",
    "private-reply",
    "get-reviewer",
    "shop-info",
    "list-products",
    "lookup-product",
    "search-reviews",
    "cache-stats",
    "cache-clear",
    "list-tools",
]


_email_adapter = TypeAdapter(EmailStr)


class CurationChoice(str, Enum):
    ok = "ok"
    spam = "spam"


@dataclass
class CliState:
    settings: Settings
    no_cache: bool = False


def setup_logging(level: str) -> None:
    """Send loguru output to stderr so stdout stays pure JSON."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def build_source(settings: Settings) -> JudgemeSource:
    return JudgemeSource.from_settings(settings)


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, CacheStats):
        return result.to_dict()
    return result


def _run(ctx: typer.Context, operation: Callable[[JudgemeSource], Awaitable[Any]]) -> None:
    """Run one data-source operation and print its result as JSON."""
    state: CliState = ctx.obj

    async def runner() -> Any:
        async with build_source(state.settings) as judgeme:
            if state.no_cache:
                judgeme.disable_cache()
            return await operation(judgeme)

    try:
        result = asyncio.run(runner())
    except (ServiceError, ConfigurationError, httpx.HTTPError) as e:
        _fail(e)

    typer.echo(json.dumps(_to_jsonable(result), indent=2))


def _fail(error: Exception) -> NoReturn:
    logger.debug(f"Command failed: {type(error).__name__}: {error}")
    typer.echo(json.dumps({"error": str(error)}), err=True)
    raise typer.Exit(1)


def _check_email(email: str | None) -> str | None:
    if email is None:
        return None
    try:
        return str(_email_adapter.validate_python(email))
    except ValidationError:
        raise typer.BadParameter("Not a valid email address")


@app.callback()
def main(
    ctx: typer.Context,
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache for this run"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Judge.me product review management."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        _fail(e)
    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = CliState(settings=settings, no_cache=no_cache)


@app.command("list-tools")
def list_tools() -> None:
    """List all available CLI commands."""
    typer.echo(json.dumps({"tools": TOOLS}, indent=2))


# Reviews


@app.command("list-reviews")
def list_reviews(
    ctx: typer.Context,
    page: int | None = typer.Option(None, min=1, help="Page number"),
    per_page: int | None = typer.Option(
        None, min=1, max=100, help="Results per page (max 100)"
    ),
    product_id: int | None = typer.Option(
        None, min=1, help="Shopify product ID to filter by"
    ),
    rating: int | None = typer.Option(
        None, min=1, max=5, help="Filter by star rating (1-5)"
    ),
) -> None:
    """List product reviews with optional filters."""
    _run(
        ctx,
        lambda judgeme: judgeme.list_reviews(
            page=page,
            per_page=per_page,
            shopify_product_id=product_id,
            rating=rating,
        ),
    )


@app.command("get-review")
def get_review(
    ctx: typer.Context,
    review_id: int = typer.Option(..., "--id", min=1, help="Review ID"),
) -> None:
    """Get a specific review by ID."""
    _run(ctx, lambda judgeme: judgeme.get_review(review_id))


@app.command("count-reviews")
def count_reviews(
    ctx: typer.Context,
    product_id: int | None = typer.Option(
        None, min=1, help="Shopify product ID to filter by"
    ),
    rating: int | None = typer.Option(
        None, min=1, max=5, help="Filter by star rating (1-5)"
    ),
) -> None:
    """Get review count with optional filters."""
    _run(
        ctx,
        lambda judgeme: judgeme.count_reviews(
            shopify_product_id=product_id, rating=rating
        ),
    )


@app.command("search-reviews")
def search_reviews(
    ctx: typer.Context,
    search: str = typer.Option(..., help="Search term"),
    rating: int | None = typer.Option(
        None, min=1, max=5, help="Filter by star rating (1-5)"
    ),
    max_pages: int = typer.Option(
        10, min=1, max=10, help="Max pages to search (default: 10)"
    ),
) -> None:
    """Search reviews by keyword."""
    if not search.strip():
        raise typer.BadParameter("Search term must not be empty", param_hint="--search")
    _run(
        ctx,
        lambda judgeme: judgeme.search_reviews(
            search, rating=rating, max_pages=max_pages
        ),
    )


@app.command("curate-review")
def curate_review(
    ctx: typer.Context,
    review_id: int = typer.Option(..., "--id", min=1, help="Review ID"),
    status: CurationChoice = typer.Option(..., help="Curation status"),
) -> None:
    """Mark review as ok or spam."""
    _run(ctx, lambda judgeme: judgeme.curate_review(review_id, status.value))


@app.command("reply-to-review")
def reply_to_review(
    ctx: typer.Context,
    review_id: int = typer.Option(..., min=1, help="Review ID to reply to"),
    reply: str = typer.Option(..., help="Public reply text"),
) -> None:
    """Post a public reply to a review."""
    _run(ctx, lambda judgeme: judgeme.reply_to_review(review_id, reply))


@app.command("private-reply")
def private_reply(
    ctx: typer.Context,
    review_id: int = typer.Option(..., min=1, help="Review ID to reply to"),
    subject: str = typer.Option(..., help="Email subject"),
    body: str = typer.Option(..., help="Email body"),
) -> None:
    """Send private email reply to reviewer."""
    _run(ctx, lambda judgeme: judgeme.send_private_reply(review_id, subject, body))


# Reviewers


@app.command("get-reviewer")
def get_reviewer(
    ctx: typer.Context,
    reviewer_id: int | None = typer.Option(None, "--id", min=1, help="Reviewer ID"),
    email: str | None = typer.Option(
        None, help="Reviewer email", callback=_check_email
    ),
) -> None:
    """Get reviewer info by ID or email."""
    if reviewer_id is not None:
        _run(ctx, lambda judgeme: judgeme.get_reviewer_by_id(reviewer_id))
    elif email:
        _run(ctx, lambda judgeme: judgeme.get_reviewer_by_email(email))
    else:
        raise typer.BadParameter("Either --id or --email is required")


# Shop and products


@app.command("shop-info")
def shop_info(ctx: typer.Context) -> None:
    """Get shop information and statistics."""
    _run(ctx, lambda judgeme: judgeme.get_shop_info())


@app.command("list-products")
def list_products(
    ctx: typer.Context,
    page: int | None = typer.Option(None, min=1, help="Page number"),
    per_page: int | None = typer.Option(
        None, min=1, max=100, help="Results per page (max 100)"
    ),
) -> None:
    """List products with reviews."""
    _run(ctx, lambda judgeme: judgeme.list_products(page=page, per_page=per_page))


@app.command("lookup-product")
def lookup_product(
    ctx: typer.Context,
    shopify_id: int = typer.Option(..., min=1, help="Shopify product ID"),
) -> None:
    """Look up a product by Shopify product ID."""

    async def lookup(judgeme: JudgemeSource) -> dict[str, Any]:
        product = await judgeme.get_product_by_external_id(shopify_id)
        if product is None:
            raise ProductNotFoundError(shopify_id, service_id=judgeme.service_id)
        return {"product": product.model_dump(mode="json")}

    _run(ctx, lookup)


# Cache


@app.command("cache-stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show cache hit/miss statistics."""

    async def stats(judgeme: JudgemeSource) -> CacheStats:
        return judgeme.get_cache_stats()

    _run(ctx, stats)


@app.command("cache-clear")
def cache_clear(ctx: typer.Context) -> None:
    """Clear all cached responses."""

    async def clear(judgeme: JudgemeSource) -> dict[str, int]:
        return {"cleared": judgeme.clear_cache()}

    _run(ctx, clear)

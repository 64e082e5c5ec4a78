"""JudgemeSource unit tests: caching, ID translation and invalidation."""

from __future__ import annotations

import json
from datetime import timedelta

import httpx
import pytest

from reviewdesk.datasource.judgeme import JudgemeSource
from reviewdesk.datasource.judgeme.models import ReviewCount
from reviewdesk.services.cache import create_cache_key
from reviewdesk.services.errors import ApiError, ProductNotFoundError
from reviewdesk.settings import Settings
from tests.fakes import FakeClock, FakeJudgemeApi, make_review, paged

REVIEW_ENVELOPE = {"review": make_review(3, title="Great", body="Love it")}
REVIEWER_ENVELOPE = {"reviewer": {"id": 7, "email": "ann@example.com", "name": "Ann"}}


def serve_catalog(api: FakeJudgemeApi) -> None:
    products = [{"id": 42, "external_id": 555, "title": "Mug"}]
    api.route("GET", "/products", paged(products, "products"))


# ========== end-to-end ==========


@pytest.mark.asyncio
async def test_count_by_shopify_id_resolves_then_caches(source, api: FakeJudgemeApi):
    serve_catalog(api)
    api.json("GET", "/reviews/count", {"count": 12})

    first = await source.count_reviews(shopify_product_id=555)

    assert first == ReviewCount(count=12)
    assert [r.url.path for r in api.requests] == [
        "/api/v1/products",
        "/api/v1/reviews/count",
    ]
    assert api.calls("/reviews/count")[0].url.params["product_id"] == "42"
    api.requests.clear()
    second = await source.count_reviews(shopify_product_id=555)

    assert second == first
    assert api.requests == []


@pytest.mark.asyncio
async def test_count_cache_is_keyed_by_internal_id(source, api: FakeJudgemeApi):
    serve_catalog(api)
    api.json("GET", "/reviews/count", {"count": 12})

    await source.count_reviews(shopify_product_id=555)
    api.requests.clear()

    # the same filter reached through the internal ID hits the same entry
    assert await source.count_reviews(product_id=42) == ReviewCount(count=12)
    assert api.requests == []
    assert source.invalidate_cache_key(
        create_cache_key("reviews_count", {"productId": 42})
    )


@pytest.mark.asyncio
async def test_explicit_internal_id_skips_resolution(source, api: FakeJudgemeApi):
    api.json("GET", "/reviews", {"reviews": [make_review(1)], "per_page": 10})

    page = await source.list_reviews(product_id=42, shopify_product_id=555)

    assert page.reviews[0].id == 1
    assert api.calls("/products") == []
    assert api.calls("/reviews")[0].url.params["product_id"] == "42"


@pytest.mark.asyncio
async def test_unknown_shopify_id_raises_not_found(source, api: FakeJudgemeApi):
    serve_catalog(api)

    with pytest.raises(ProductNotFoundError) as exc_info:
        await source.list_reviews(shopify_product_id=999)

    assert exc_info.value.external_id == 999
    assert api.calls("/reviews") == []


@pytest.mark.asyncio
async def test_resolve_product_id_can_run_on_its_own(source, api: FakeJudgemeApi):
    serve_catalog(api)

    assert await source.resolve_product_id(shopify_product_id=555) == 42
    assert await source.resolve_product_id(product_id=7) == 7
    assert await source.resolve_product_id() is None
    assert len(api.calls("/products")) == 1


# ========== reads ==========


@pytest.mark.asyncio
async def test_list_reviews_sends_api_param_names(source, api: FakeJudgemeApi):
    api.json("GET", "/reviews", {"reviews": []})

    await source.list_reviews(page=2, per_page=50, rating=4)

    params = api.calls("/reviews")[0].url.params
    assert (params["page"], params["per_page"], params["rating"]) == ("2", "50", "4")
    assert "product_id" not in params


@pytest.mark.asyncio
async def test_get_review_expires_after_five_minutes(
    source, api: FakeJudgemeApi, clock: FakeClock
):
    api.json("GET", "/reviews/3", REVIEW_ENVELOPE)

    await source.get_review(3)
    clock.advance(timedelta(minutes=4))
    await source.get_review(3)
    assert len(api.calls("/reviews/3")) == 1

    clock.advance(timedelta(minutes=1))
    await source.get_review(3)
    assert len(api.calls("/reviews/3")) == 2


@pytest.mark.asyncio
async def test_shop_info_is_cached_for_an_hour(
    source, api: FakeJudgemeApi, clock: FakeClock
):
    api.json("GET", "/shops/info", {"shop": {"name": "Mugs", "reviews_count": 10}})

    info = await source.get_shop_info()
    clock.advance(timedelta(minutes=59))
    await source.get_shop_info()

    assert info.shop.reviews_count == 10
    assert len(api.calls("/shops/info")) == 1


@pytest.mark.asyncio
async def test_reviewer_lookups(source, api: FakeJudgemeApi):
    api.json("GET", "/reviewers/7", REVIEWER_ENVELOPE)
    api.json("GET", "/reviewers/find", REVIEWER_ENVELOPE)

    by_id = await source.get_reviewer_by_id(7)
    by_email = await source.get_reviewer_by_email("ann@example.com")

    assert by_id.reviewer.name == by_email.reviewer.name == "Ann"
    assert api.calls("/reviewers/find")[0].url.params["email"] == "ann@example.com"


@pytest.mark.asyncio
async def test_disabled_cache_fetches_every_time(source, api: FakeJudgemeApi):
    api.json("GET", "/shops/info", {"shop": {}})

    source.disable_cache()
    for _ in range(3):
        await source.get_shop_info()

    assert len(api.calls("/shops/info")) == 3
    assert source.get_cache_stats().size == 0

    source.enable_cache()
    await source.get_shop_info()
    await source.get_shop_info()
    assert len(api.calls("/shops/info")) == 4


@pytest.mark.asyncio
async def test_api_errors_are_not_cached(source, api: FakeJudgemeApi):
    api.route("GET", "/reviews/3", lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(ApiError):
        await source.get_review(3)

    api.json("GET", "/reviews/3", REVIEW_ENVELOPE)
    assert (await source.get_review(3)).review.id == 3


# ========== writes ==========


@pytest.mark.asyncio
async def test_curate_invalidates_review_family_only(source, api: FakeJudgemeApi):
    serve_catalog(api)
    api.json("GET", "/reviews/3", REVIEW_ENVELOPE)
    api.json("GET", "/reviews", {"reviews": []})
    api.json("GET", "/reviews/count", {"count": 1})
    api.json("GET", "/reviewers/7", REVIEWER_ENVELOPE)
    api.json("PUT", "/reviews/3", REVIEW_ENVELOPE)

    await source.get_review(3)
    await source.list_reviews(page=1)
    await source.count_reviews(shopify_product_id=555)
    await source.get_reviewer_by_id(7)
    assert source.get_cache_stats().size == 6

    await source.curate_review(3, "spam")

    assert json.loads(api.calls("/reviews/3")[-1].content) == {"curated": "spam"}
    # reviewer, product page and resolved product survive
    assert source.get_cache_stats().size == 3
    api.requests.clear()
    await source.get_reviewer_by_id(7)
    await source.count_reviews(shopify_product_id=555)
    assert [r.url.path for r in api.requests] == ["/api/v1/reviews/count"]


@pytest.mark.asyncio
async def test_reply_invalidates_only_that_review(source, api: FakeJudgemeApi):
    api.json("GET", "/reviews/3", REVIEW_ENVELOPE)
    api.json("GET", "/reviews/4", {"review": make_review(4)})
    api.json("POST", "/replies", {"reply": {"body": "Thanks!"}})

    await source.get_review(3)
    await source.get_review(4)
    await source.reply_to_review(3, "Thanks!")

    reply_request = api.calls("/replies")[0]
    assert json.loads(reply_request.content) == {"review_id": 3, "body": "Thanks!"}
    assert reply_request.url.params["api_token"] == "private-token"

    api.requests.clear()
    await source.get_review(3)
    await source.get_review(4)
    assert [r.url.path for r in api.requests] == ["/api/v1/reviews/3"]


@pytest.mark.asyncio
async def test_private_reply_leaves_cache_alone(source, api: FakeJudgemeApi):
    api.json("GET", "/reviews/3", REVIEW_ENVELOPE)
    api.json("POST", "/private_replies", {"sent": True})

    await source.get_review(3)
    result = await source.send_private_reply(3, "Sorry", "We will fix it")

    assert result == {"sent": True}
    assert json.loads(api.calls("/private_replies")[0].content) == {
        "review_id": 3,
        "subject": "Sorry",
        "body": "We will fix it",
    }
    assert source.get_cache_stats().size == 1


@pytest.mark.asyncio
async def test_writes_are_never_cached(source, api: FakeJudgemeApi):
    api.json("POST", "/private_replies", {"sent": True})

    await source.send_private_reply(3, "a", "b")
    await source.send_private_reply(3, "a", "b")

    assert len(api.calls("/private_replies")) == 2


# ========== cache control ==========


@pytest.mark.asyncio
async def test_clear_and_stats(source, api: FakeJudgemeApi):
    api.json("GET", "/shops/info", {"shop": {}})

    await source.get_shop_info()
    await source.get_shop_info()

    stats = source.get_cache_stats()
    assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)
    assert source.clear_cache() == 1
    assert source.invalidate_cache_key("shop_info") is False


def test_from_settings_builds_namespaced_cache():
    settings = Settings.model_validate(
        {
            "JUDGEME_SHOP_DOMAIN": "example.myshopify.com",
            "JUDGEME_PUBLIC_API_TOKEN": "pub",
            "JUDGEME_PRIVATE_API_TOKEN": "priv",
            "CACHE_NAMESPACE": "reviews-test",
            "CACHE_MAX_SIZE": "50",
        }
    )

    source = JudgemeSource.from_settings(settings)

    assert source.cache.namespace == "reviews-test"
    assert source.cache.config.max_size == 50
    assert source.client.timeout == 30.0


def test_default_cache_namespace_matches_settings(executor):
    source = JudgemeSource(executor)

    assert source.cache.namespace == Settings().cache_namespace

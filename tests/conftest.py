"""Shared test fixtures.

- No network: all HTTP goes through httpx.MockTransport
- Cache time is driven by FakeClock
"""

from __future__ import annotations

import pytest

from reviewdesk.datasource.judgeme import JudgemeSource
from reviewdesk.services.cache import CacheConfig, CacheManager
from reviewdesk.services.client import RequestExecutor
from reviewdesk.settings import JudgemeCredentials
from tests.fakes import BASE_URL, FakeClock, FakeJudgemeApi


@pytest.fixture
def credentials() -> JudgemeCredentials:
    return JudgemeCredentials(
        shop_domain="example.myshopify.com",
        public_api_token="public-token",
        private_api_token="private-token",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api() -> FakeJudgemeApi:
    return FakeJudgemeApi()


@pytest.fixture
def executor(credentials: JudgemeCredentials, api: FakeJudgemeApi) -> RequestExecutor:
    return RequestExecutor(credentials, base_url=BASE_URL, transport=api.transport())


@pytest.fixture
def cache(clock: FakeClock) -> CacheManager:
    return CacheManager(CacheConfig(namespace="test"), clock=clock)


@pytest.fixture
def source(executor: RequestExecutor, cache: CacheManager) -> JudgemeSource:
    return JudgemeSource(executor, cache)

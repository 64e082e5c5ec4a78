"""
Service layer infrastructure for external API calls.

Provides:
- CacheManager: Namespaced in-memory cache with TTL and invalidation
- create_cache_key: Deterministic cache keys from operation + params
- RequestExecutor: Single bounded-timeout request against the Judge.me API
"""

from reviewdesk.services.errors import (
    ServiceError,
    RequestTimeoutError,
    ApiError,
    InvalidResponseError,
    NotFoundError,
    ProductNotFoundError,
)
from reviewdesk.services.cache import (
    TTL,
    CacheConfig,
    CacheEntry,
    CacheManager,
    CacheStats,
    create_cache_key,
)
from reviewdesk.services.client import CredentialScope, RequestExecutor

__all__ = [
    # Errors
    "ServiceError",
    "RequestTimeoutError",
    "ApiError",
    "InvalidResponseError",
    "NotFoundError",
    "ProductNotFoundError",
    # Cache
    "TTL",
    "CacheConfig",
    "CacheEntry",
    "CacheManager",
    "CacheStats",
    "create_cache_key",
    # Client
    "CredentialScope",
    "RequestExecutor",
]

"""
RequestExecutor - Single-request async HTTP client for the Judge.me API.

Handles:
- Credential scope selection (public vs private API token)
- Query string assembly (None params dropped)
- Fixed request timeout
- Mapping transport failures onto service errors
- Validating payloads into pydantic models before they reach the cache
"""

from enum import Enum
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from reviewdesk.services.errors import (
    ApiError,
    InvalidResponseError,
    RequestTimeoutError,
)
from reviewdesk.settings import JudgemeCredentials

REQUEST_TIMEOUT_SECONDS = 30.0


class CredentialScope(str, Enum):
    """Which API token a request is signed with."""

    PUBLIC = "public"
    PRIVATE = "private"


class RequestExecutor:
    """
    Issues one bounded-timeout request per call against the Judge.me API.

    The executor is not cache-aware; callers layer CacheManager on top.

    Usage:
        executor = RequestExecutor(credentials)
        page = await executor.execute(
            "/reviews", params={"page": 1}, response_model=ReviewsPage
        )
    """

    SERVICE_ID = "judgeme"

    def __init__(
        self,
        credentials: JudgemeCredentials,
        base_url: str = "https://judge.me/api/v1",
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._http_client

    def build_params(
        self,
        params: dict[str, Any] | None = None,
        scope: CredentialScope = CredentialScope.PRIVATE,
    ) -> dict[str, str]:
        """Merge the scope's credentials with caller params, dropping None values."""
        token = (
            self._credentials.private_api_token
            if scope == CredentialScope.PRIVATE
            else self._credentials.public_api_token
        )
        query = {
            "api_token": token,
            "shop_domain": self._credentials.shop_domain,
        }
        for key, value in (params or {}).items():
            if value is not None:
                query[key] = str(value)
        return query

    async def execute(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        scope: CredentialScope = CredentialScope.PRIVATE,
        response_model: type[BaseModel] | None = None,
    ) -> Any:
        """
        Make a single HTTP request.

        Args:
            endpoint: Path below the API base URL, e.g. "/reviews"
            method: HTTP method (GET, POST, PUT)
            params: Query parameters; None values are omitted
            body: JSON body, sent for non-GET requests only
            scope: Credential scope selecting the API token
            response_model: Pydantic model to validate the payload into

        Returns:
            Validated model instance, or the decoded JSON payload

        Raises:
            RequestTimeoutError: If the request exceeds the timeout
            ApiError: For non-success HTTP status codes
            InvalidResponseError: If the payload fails validation
            httpx.RequestError: For any other transport failure, as-is
        """
        client = await self._get_http_client()
        url = f"{self._base_url}{endpoint}"

        logger.debug(f"{method} {endpoint} ({scope.value} scope)")

        try:
            response = await client.request(
                method=method,
                url=url,
                params=self.build_params(params, scope),
                headers={"Content-Type": "application/json"},
                json=body if body is not None and method != "GET" else None,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {endpoint} timed out after {self._timeout}s")
            raise RequestTimeoutError(self.SERVICE_ID, self._timeout) from e

        if not response.is_success:
            logger.warning(f"{method} {endpoint} failed: HTTP {response.status_code}")
            raise ApiError(self.SERVICE_ID, response.status_code, response.text)

        try:
            payload = response.json() if response.content else {}
        except ValueError as e:
            raise InvalidResponseError(self.SERVICE_ID, f"invalid JSON: {e}") from e

        if response_model is None:
            return payload

        try:
            return response_model.model_validate(payload)
        except ValidationError as e:
            raise InvalidResponseError(self.SERVICE_ID, str(e)) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("RequestExecutor closed")

    async def __aenter__(self) -> "RequestExecutor":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

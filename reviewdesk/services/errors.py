"""
Service layer exceptions.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class RequestTimeoutError(ServiceError):
    """Request timed out."""

    def __init__(self, service_id: str, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"Request to service '{service_id}' timed out after {timeout}s",
            service_id=service_id,
        )


class ApiError(ServiceError):
    """Remote API answered with a non-success status."""

    def __init__(self, service_id: str, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"{service_id} API error ({status_code}): {body}",
            service_id=service_id,
        )


class InvalidResponseError(ServiceError):
    """Response payload did not match the expected shape."""

    def __init__(self, service_id: str, detail: str):
        self.detail = detail
        super().__init__(
            f"Unexpected response from service '{service_id}': {detail}",
            service_id=service_id,
        )


class NotFoundError(ServiceError):
    """A lookup produced no matching entity."""

    pass


class ProductNotFoundError(NotFoundError):
    """No product matches the given Shopify product ID."""

    def __init__(self, external_id: int, service_id: str | None = None):
        self.external_id = external_id
        super().__init__(
            f"Product not found for Shopify product ID {external_id}",
            service_id=service_id,
        )

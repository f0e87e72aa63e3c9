"""
Error Handlers
Maps service exceptions to JSON error responses.
"""

import logging
from typing import Dict, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import (
    ConfigurationError,
    EmbeddingQuotaExceededError,
    InvalidSearchRequest,
    PlaceNotIndexedError,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)


class SearchError(APIError):
    """Exception raised when a backend fails during search."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(
            message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details
        )


class SyncError(APIError):
    """Exception raised when a sync request cannot be carried out."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(
            message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details
        )


class ServiceDegradedError(APIError):
    """Search capacity is temporarily reduced; the client should retry later."""

    def __init__(self, message: str, retry_after: int, details: dict = None):
        details = {**(details or {}), "retry_after": retry_after}
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            headers={"Retry-After": str(retry_after)},
        )


class ResourceNotFoundError(APIError):
    """Exception raised when resource is not found."""

    def __init__(self, resource: str, resource_id: Union[int, str]):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class InvalidRequestError(APIError):
    """Exception raised for invalid requests."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


def _error_response(exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.message,
                "type": exc.__class__.__name__,
                "details": exc.details,
            }
        },
        headers=exc.headers,
    )


def quota_error(exc: EmbeddingQuotaExceededError, default_retry_after: int) -> ServiceDegradedError:
    """Translate a provider quota error into the client-facing 503."""
    retry_after = exc.retry_after or default_retry_after
    return ServiceDegradedError(
        message=(
            "Search is temporarily degraded because the embedding provider is over quota. "
            f"Please retry in {retry_after} seconds."
        ),
        retry_after=retry_after,
        details={"provider": exc.provider},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """
    Set up custom error handlers for the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle custom API errors."""
        logger.error(
            f"API error: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "details": exc.details,
                "path": request.url.path,
            },
        )
        return _error_response(exc)

    @app.exception_handler(EmbeddingQuotaExceededError)
    async def quota_error_handler(request: Request, exc: EmbeddingQuotaExceededError):
        """Quota exhaustion is a degraded state, not a server fault."""
        services = getattr(request.app.state, "services", None)
        default_retry = (
            services.settings.quota_retry_after_seconds if services else DEFAULT_RETRY_AFTER_SECONDS
        )
        error = quota_error(exc, default_retry)
        logger.warning(
            f"Search degraded: {exc}",
            extra={"provider": exc.provider, "path": request.url.path},
        )
        return _error_response(error)

    @app.exception_handler(InvalidSearchRequest)
    async def invalid_search_handler(request: Request, exc: InvalidSearchRequest):
        logger.warning(f"Invalid search request: {exc}", extra={"path": request.url.path})
        return _error_response(InvalidRequestError(str(exc)))

    @app.exception_handler(PlaceNotIndexedError)
    async def not_indexed_handler(request: Request, exc: PlaceNotIndexedError):
        logger.info(f"{exc}", extra={"path": request.url.path})
        return _error_response(ResourceNotFoundError("Place", exc.document_id))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error: {exc}", extra={"path": request.url.path})
        return _error_response(APIError(str(exc)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(f"Validation error: {exc}", extra={"path": request.url.path})

        errors = [
            {
                "loc": error.get("loc", []),
                "msg": str(error.get("msg", "")),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "message": "Request validation failed",
                    "type": "ValidationError",
                    "details": errors,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"path": request.url.path})

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "message": "An unexpected error occurred",
                    "type": "InternalServerError",
                }
            },
        )

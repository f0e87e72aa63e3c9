"""
Service Exceptions
Error taxonomy shared by the adapters, sync orchestrator and search service.

HTTP translation lives in `placesearch.api.errors`.
"""


class PlaceSearchError(Exception):
    """Base exception for place search errors."""

    pass


class ConfigurationError(PlaceSearchError):
    """
    Fatal configuration problem detected at startup.

    Raised for missing credentials and for a vector dimension that does not
    match the configured vector collection.
    """

    pass


class EmbeddingError(PlaceSearchError):
    """Exception raised when an embedding cannot be generated."""

    pass


class EmbeddingQuotaExceededError(EmbeddingError):
    """
    Remote embedding provider rejected the call for quota or rate limits.

    Callers surface this as a degraded-capacity condition (HTTP 503) instead of
    a generic failure so that clients can back off.
    """

    def __init__(self, message: str, provider: str, retry_after: int = None):
        self.provider = provider
        self.retry_after = retry_after
        super().__init__(message)


class InvalidSearchRequest(PlaceSearchError, ValueError):
    """Exception raised for malformed search input (e.g. half a coordinate pair)."""

    pass


class PlaceNotIndexedError(PlaceSearchError):
    """Exception raised when a place has no point in the vector index."""

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Place not found in vector index: {document_id}")

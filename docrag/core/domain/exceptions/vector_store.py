"""Vector store exceptions for docrag.

Store errors may be retried by the caller with backoff; the adapter never
retries internally.
"""

from enum import Enum

from .base import DocRagError


class StoreFailureKind(str, Enum):
    """Classified cause of a vector store failure."""

    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    TIMEOUT = "TIMEOUT"
    API_ERROR = "API_ERROR"
    GENERIC = "GENERIC"


class VectorStoreError(DocRagError):
    """Base error for vector store operations."""

    error_code = "RAG_VEC_001"
    failure_kind: StoreFailureKind = StoreFailureKind.GENERIC


class StoreConnectionRefusedError(VectorStoreError):
    """The vector store refused the connection.

    Common causes:
    - Wrong URL or port
    - Qdrant service is down
    """

    error_code = "RAG_VEC_002"
    failure_kind = StoreFailureKind.CONNECTION_REFUSED


class StoreTimeoutError(VectorStoreError):
    """A vector store call exceeded its timeout."""

    error_code = "RAG_VEC_003"
    failure_kind = StoreFailureKind.TIMEOUT


class StoreAPIError(VectorStoreError):
    """Qdrant answered with an error status.

    Common causes:
    - Invalid API key
    - Invalid query parameters
    - Embedding dimension mismatch
    """

    error_code = "RAG_VEC_004"
    failure_kind = StoreFailureKind.API_ERROR

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class CollectionConfigError(VectorStoreError):
    """Existing collection does not match the configured vector parameters."""

    error_code = "RAG_VEC_005"


# Alias used by callers that only care about "the store failed".
StoreError = VectorStoreError

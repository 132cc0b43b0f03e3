"""Custom exception hierarchy for docrag.

Each exception carries an error code, the location it was raised from, an
optional underlying cause, and extra context for structured logging.

All exceptions are re-exported here:

    from docrag.core.domain.exceptions import DocRagError, StoreTimeoutError
"""

# Base classes
from .base import DocRagError, ExceptionContext

# Resource / auth / cancellation exceptions
from .access import AuthenticationError, NotFoundError, OperationCancelledError

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingAPIKeyError,
)

# Provider exceptions
from .provider import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingRateLimitError,
    LLMConnectionError,
    LLMError,
    LLMGenerationError,
    LLMRateLimitError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)

# Validation exceptions
from .validation import (
    EmptyContentError,
    EmptyQueryError,
    InvalidChunkParametersError,
    InvalidSearchOptionsError,
    QueryTooLongError,
    UnsupportedDocumentError,
    ValidationError,
)

# Vector store exceptions
from .vector_store import (
    CollectionConfigError,
    StoreAPIError,
    StoreConnectionRefusedError,
    StoreError,
    StoreFailureKind,
    StoreTimeoutError,
    VectorStoreError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "DocRagError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    # Vector Store
    "StoreError",
    "StoreFailureKind",
    "VectorStoreError",
    "StoreConnectionRefusedError",
    "StoreTimeoutError",
    "StoreAPIError",
    "CollectionConfigError",
    # Providers
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingRateLimitError",
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMGenerationError",
    # Validation
    "ValidationError",
    "EmptyContentError",
    "InvalidChunkParametersError",
    "InvalidSearchOptionsError",
    "EmptyQueryError",
    "QueryTooLongError",
    "UnsupportedDocumentError",
    # Access
    "NotFoundError",
    "AuthenticationError",
    "OperationCancelledError",
]

"""Embedding and chat provider exceptions for docrag."""

from .base import DocRagError


class ProviderError(DocRagError):
    """Base error for remote model providers (embeddings, chat)."""

    error_code = "RAG_PRV_001"


class ProviderConnectionError(ProviderError):
    """Failed to reach the provider.

    Common causes:
    - Network issues
    - Service unavailable
    """

    error_code = "RAG_PRV_002"


class ProviderTimeoutError(ProviderError):
    """A provider call exceeded its timeout."""

    error_code = "RAG_PRV_003"


class EmbeddingError(ProviderError):
    """Failed to generate embeddings."""

    error_code = "RAG_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "RAG_EMB_002"

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class EmbeddingRateLimitError(EmbeddingError):
    """Embedding API rate limit exceeded."""

    error_code = "RAG_EMB_003"


class LLMError(ProviderError):
    """Base error for chat completion operations."""

    error_code = "RAG_LLM_001"


class LLMConnectionError(LLMError):
    """Failed to connect to the chat provider.

    Common causes:
    - Invalid API key
    - Network issues
    - Service unavailable
    """

    error_code = "RAG_LLM_002"


class LLMRateLimitError(LLMError):
    """Rate limit exceeded on the chat provider."""

    error_code = "RAG_LLM_003"


class LLMGenerationError(LLMError):
    """Failed to generate a chat completion.

    Common causes:
    - Content filtered by the provider
    - Token limit exceeded
    - Invalid request
    """

    error_code = "RAG_LLM_004"

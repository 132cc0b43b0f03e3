"""Classification of OpenAI SDK failures into docrag provider errors."""

import openai

from ...core.domain.exceptions import (
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


def classify_embedding_error(exc: Exception, model: str) -> ProviderError:
    """Map an exception raised by ``embeddings.create`` to a typed error."""
    context = {"model": model}
    if isinstance(exc, TimeoutError | openai.APITimeoutError):
        return ProviderTimeoutError("Embedding request timed out", cause=exc, context=context)
    if isinstance(exc, openai.APIConnectionError):
        return ProviderConnectionError(
            "Cannot connect to the embedding provider", cause=exc, context=context
        )
    if isinstance(exc, openai.RateLimitError):
        return EmbeddingRateLimitError(
            "Embedding provider rate limit exceeded", cause=exc, context=context
        )
    if isinstance(exc, openai.APIStatusError):
        return EmbeddingAPIError(
            f"Embedding request failed with HTTP {exc.status_code}",
            status_code=exc.status_code,
            cause=exc,
            context=context,
        )
    return EmbeddingError(f"Embedding request failed: {exc}", cause=exc, context=context)


def classify_chat_error(exc: Exception, model: str) -> ProviderError:
    """Map an exception raised by ``chat.completions.create`` to a typed error."""
    context = {"model": model}
    if isinstance(exc, TimeoutError | openai.APITimeoutError):
        return ProviderTimeoutError("Chat completion timed out", cause=exc, context=context)
    if isinstance(exc, openai.APIConnectionError):
        return LLMConnectionError("Cannot connect to the chat provider", cause=exc, context=context)
    if isinstance(exc, openai.RateLimitError):
        return LLMRateLimitError("Chat provider rate limit exceeded", cause=exc, context=context)
    if isinstance(exc, openai.APIStatusError):
        return LLMGenerationError(
            f"Chat completion failed with HTTP {exc.status_code}",
            cause=exc,
            context={**context, "status_code": exc.status_code},
        )
    return LLMError(f"Chat completion failed: {exc}", cause=exc, context=context)

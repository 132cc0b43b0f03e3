"""OpenAI embeddings client with caching and bounded concurrency."""

import asyncio
import logging

from openai import AsyncOpenAI

from ....common.cancellation import CancellationToken, guarded_call
from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import DocRagError, EmbeddingError, ValidationError
from ....core.ports.cache_port import EmbeddingCachePort
from ....core.ports.embedding_port import EmbeddingPort
from ....core.services.token_counter import count_tokens
from ..openai_errors import classify_embedding_error
from .lru_cache import LRUEmbeddingCache, embedding_cache_key

logger = logging.getLogger(__name__)

# Constants
DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIMENSIONS = 1536
MAX_INPUT_TOKENS = 8191
EMBEDDING_BATCH_SIZE = 100  # provider limit per request
DEFAULT_MAX_CONCURRENCY = 4
DEFAULT_TIMEOUT_SECONDS = 30.0


class OpenAIEmbedder(EmbeddingPort):
    """Embedding client backed by ``AsyncOpenAI.embeddings``.

    Failed requests are not retried; they surface immediately as typed
    provider errors. Uncached texts are sent in batches that run
    concurrently under a semaphore and an optional rate limiter.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        cache: EmbeddingCachePort | None = None,
        batch_size: int = EMBEDDING_BATCH_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        rate_limiter: RateLimiter | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the embedder.

        Args:
            client: OpenAI client, created with ``max_retries=0``.
            model: Embedding model name.
            dimensions: Expected vector length.
            cache: Embedding cache; a fresh LRU cache when omitted.
            batch_size: Texts per request (at most 100).
            max_concurrency: Maximum batches in flight.
            rate_limiter: Optional limiter applied per request.
            timeout: Per-request timeout in seconds.
        """
        self.client = client
        self.model = model
        self._dimensions = dimensions
        self.cache = cache if cache is not None else LRUEmbeddingCache()
        self.batch_size = max(1, min(batch_size, EMBEDDING_BATCH_SIZE))
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _validate_text(self, text: str) -> None:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Text cannot be empty")
        tokens = count_tokens(text)
        if tokens > MAX_INPUT_TOKENS:
            raise ValidationError(
                f"Text exceeds the {MAX_INPUT_TOKENS}-token embedding limit",
                context={"estimated_tokens": tokens},
            )

    async def _request(
        self, inputs: list[str], token: CancellationToken | None
    ) -> list[list[float]]:
        """Embed one batch with a single provider call."""
        try:
            response = await guarded_call(
                self.client.embeddings.create(
                    model=self.model,
                    input=inputs,
                    dimensions=self._dimensions,
                ),
                timeout=self.timeout,
                token=token,
            )
        except DocRagError:
            raise
        except Exception as e:
            error = classify_embedding_error(e, self.model)
            logger.error(f"Embedding batch of {len(inputs)} failed [{error.error_code}]: {e}")
            raise error from e

        vectors = [item.embedding for item in sorted(response.data, key=lambda d: d.index)]
        if len(vectors) != len(inputs):
            raise EmbeddingError(
                f"Provider returned {len(vectors)} embeddings for {len(inputs)} inputs"
            )
        for vector in vectors:
            if len(vector) != self._dimensions:
                raise EmbeddingError(
                    f"Provider returned a {len(vector)}-dimension embedding, "
                    f"expected {self._dimensions}",
                    context={"model": self.model},
                )
        return vectors

    async def embed(self, text: str, token: CancellationToken | None = None) -> list[float]:
        vectors = await self.embed_many([text], token=token)
        return vectors[0]

    async def embed_many(
        self, texts: list[str], token: CancellationToken | None = None
    ) -> list[list[float]]:
        """Embed ``texts`` in input order, serving repeats from the cache.

        Raises:
            ValidationError: If any text is empty or too long.
            ProviderError: If a provider request fails.
        """
        if not texts:
            return []
        for text in texts:
            self._validate_text(text)

        results: list[list[float] | None] = [None] * len(texts)
        # Cache key -> positions of the texts sharing it
        pending: dict[str, list[int]] = {}
        for i, text in enumerate(texts):
            key = embedding_cache_key(text, self.model, self._dimensions)
            cached = self.cache.get(key) if key not in pending else None
            if cached is not None:
                results[i] = cached
            else:
                pending.setdefault(key, []).append(i)

        if pending:
            keys = list(pending)
            batches = [keys[i : i + self.batch_size] for i in range(0, len(keys), self.batch_size)]

            async def run_batch(batch_keys: list[str]) -> None:
                async with self._semaphore:
                    await self.rate_limiter.acquire()
                    vectors = await self._request([texts[pending[k][0]] for k in batch_keys], token)
                for key, vector in zip(batch_keys, vectors):
                    self.cache.set(key, vector)
                    for position in pending[key]:
                        results[position] = vector

            tasks = [asyncio.ensure_future(run_batch(batch)) for batch in batches]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise

            logger.debug(
                f"Embedded {len(keys)} texts in {len(batches)} batches "
                f"({len(texts) - sum(len(p) for p in pending.values())} cache hits)"
            )

        return [vector for vector in results if vector is not None]

"""Unit tests for the OpenAI embedding and chat adapters.

The AsyncOpenAI client is replaced with mocks so no requests leave the
process; SDK exceptions are built from real ``httpx`` requests.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from docrag.adapters.outbound.embedding import (
    LRUEmbeddingCache,
    OpenAIEmbedder,
    embedding_cache_key,
)
from docrag.adapters.outbound.llm import OpenAIChatClient
from docrag.common import CancellationToken
from docrag.core.domain import ChatMessage, Role
from docrag.core.domain.exceptions import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingRateLimitError,
    LLMConnectionError,
    LLMGenerationError,
    LLMRateLimitError,
    OperationCancelledError,
    ProviderConnectionError,
    ProviderTimeoutError,
    ValidationError,
)

pytestmark = pytest.mark.unit

DIMS = 4
REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def vector_for(text: str) -> list[float]:
    return [float(len(text)), float(text.count("a")), 1.0, 0.0]


def embeddings_response(inputs: list[str], reverse: bool = False):
    data = [SimpleNamespace(index=i, embedding=vector_for(t)) for i, t in enumerate(inputs)]
    if reverse:
        data.reverse()
    return SimpleNamespace(data=data)


def make_client(side_effect=None) -> MagicMock:
    async def create(*, model, input, dimensions):
        return embeddings_response(input)

    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=side_effect or create)
    return client


def status_error(cls, status: int):
    response = httpx.Response(status, request=REQUEST)
    return cls("provider said no", response=response, body=None)


class TestLRUEmbeddingCache:
    """Tests for the embedding LRU cache."""

    def test_key_depends_on_model_and_dimensions(self):
        base = embedding_cache_key("hello", "m1", 4)
        assert base == embedding_cache_key("hello", "m1", 4)
        assert base != embedding_cache_key("hello", "m2", 4)
        assert base != embedding_cache_key("hello", "m1", 8)
        assert base != embedding_cache_key("hello!", "m1", 4)

    def test_evicts_least_recently_used(self):
        cache = LRUEmbeddingCache(max_entries=2)
        cache.set("a", [1.0])
        cache.set("b", [2.0])
        assert cache.get("a") == [1.0]
        cache.set("c", [3.0])
        assert "b" not in cache
        assert "a" in cache and "c" in cache
        assert len(cache) == 2

    def test_counts_hits_and_misses(self):
        cache = LRUEmbeddingCache()
        cache.set("a", [1.0])
        cache.get("a")
        cache.get("missing")
        assert (cache.hits, cache.misses) == (1, 1)
        cache.evict("a")
        assert len(cache) == 0
        cache.clear()
        assert (cache.hits, cache.misses) == (0, 0)

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            LRUEmbeddingCache(max_entries=0)


class TestOpenAIEmbedder:
    """Tests for OpenAIEmbedder batching, caching and error mapping."""

    def test_preserves_input_order(self):
        """Test vectors come back in input order even if the provider reorders them."""

        async def create(*, model, input, dimensions):
            return embeddings_response(input, reverse=True)

        embedder = OpenAIEmbedder(make_client(create), dimensions=DIMS)
        texts = ["a", "bb", "aaa"]
        vectors = asyncio.run(embedder.embed_many(texts))
        assert vectors == [vector_for(t) for t in texts]

    def test_passes_model_and_dimensions(self):
        client = make_client()
        embedder = OpenAIEmbedder(client, model="text-embedding-3-large", dimensions=DIMS)
        asyncio.run(embedder.embed("hello"))
        client.embeddings.create.assert_awaited_once_with(
            model="text-embedding-3-large", input=["hello"], dimensions=DIMS
        )

    def test_empty_list_makes_no_request(self):
        client = make_client()
        embedder = OpenAIEmbedder(client, dimensions=DIMS)
        assert asyncio.run(embedder.embed_many([])) == []
        client.embeddings.create.assert_not_awaited()

    def test_cache_hit_skips_provider(self):
        client = make_client()
        embedder = OpenAIEmbedder(client, dimensions=DIMS)

        async def scenario():
            first = await embedder.embed("cached text")
            second = await embedder.embed("cached text")
            return first, second

        first, second = asyncio.run(scenario())
        assert first == second
        assert client.embeddings.create.await_count == 1
        assert embedder.cache.hits == 1

    def test_duplicates_in_one_call_are_sent_once(self):
        client = make_client()
        embedder = OpenAIEmbedder(client, dimensions=DIMS)
        vectors = asyncio.run(embedder.embed_many(["x", "y", "x", "x"]))
        assert len(vectors) == 4
        assert vectors[0] == vectors[2] == vectors[3]
        sent = client.embeddings.create.await_args.kwargs["input"]
        assert sorted(sent) == ["x", "y"]

    def test_batches_at_provider_limit(self):
        client = make_client()
        embedder = OpenAIEmbedder(client, dimensions=DIMS, batch_size=500)
        texts = [f"text number {i}" for i in range(250)]
        vectors = asyncio.run(embedder.embed_many(texts))
        assert len(vectors) == 250
        sizes = sorted(len(c.kwargs["input"]) for c in client.embeddings.create.await_args_list)
        assert sizes == [50, 100, 100]

    def test_concurrency_is_bounded(self):
        in_flight = 0
        peak = 0

        async def create(*, model, input, dimensions):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return embeddings_response(input)

        embedder = OpenAIEmbedder(make_client(create), dimensions=DIMS, max_concurrency=2, batch_size=10)
        asyncio.run(embedder.embed_many([f"t{i}" for i in range(100)]))
        assert 1 <= peak <= 2

    @pytest.mark.parametrize("text", ["", "   ", "x" * 30000])
    def test_invalid_text_is_rejected_before_request(self, text):
        client = make_client()
        embedder = OpenAIEmbedder(client, dimensions=DIMS)
        with pytest.raises(ValidationError):
            asyncio.run(embedder.embed_many(["fine", text]))
        client.embeddings.create.assert_not_awaited()

    def test_dimension_mismatch(self):
        async def create(*, model, input, dimensions):
            return SimpleNamespace(
                data=[SimpleNamespace(index=i, embedding=[0.1, 0.2]) for i in range(len(input))]
            )

        embedder = OpenAIEmbedder(make_client(create), dimensions=DIMS)
        with pytest.raises(EmbeddingError):
            asyncio.run(embedder.embed("hello"))

    def test_count_mismatch(self):
        async def create(*, model, input, dimensions):
            return embeddings_response(input[:-1])

        embedder = OpenAIEmbedder(make_client(create), dimensions=DIMS)
        with pytest.raises(EmbeddingError):
            asyncio.run(embedder.embed_many(["a", "b"]))

    def test_failed_batch_is_not_cached(self):
        client = make_client(status_error(openai.InternalServerError, 500))
        embedder = OpenAIEmbedder(client, dimensions=DIMS)
        with pytest.raises(EmbeddingAPIError) as info:
            asyncio.run(embedder.embed("hello"))
        assert info.value.status_code == 500
        assert len(embedder.cache) == 0

    @pytest.mark.parametrize(
        "error,expected",
        [
            (status_error(openai.RateLimitError, 429), EmbeddingRateLimitError),
            (openai.APIConnectionError(request=REQUEST), ProviderConnectionError),
            (openai.APITimeoutError(request=REQUEST), ProviderTimeoutError),
            (RuntimeError("unexpected"), EmbeddingError),
        ],
    )
    def test_provider_errors_are_classified(self, error, expected):
        client = make_client(error)
        embedder = OpenAIEmbedder(client, dimensions=DIMS)
        with pytest.raises(expected) as info:
            asyncio.run(embedder.embed("hello"))
        assert info.value.cause is error

    def test_no_retry_on_failure(self):
        client = make_client(status_error(openai.RateLimitError, 429))
        embedder = OpenAIEmbedder(client, dimensions=DIMS)
        with pytest.raises(EmbeddingRateLimitError):
            asyncio.run(embedder.embed("hello"))
        assert client.embeddings.create.await_count == 1

    def test_slow_request_times_out(self):
        async def create(*, model, input, dimensions):
            await asyncio.sleep(5)

        embedder = OpenAIEmbedder(make_client(create), dimensions=DIMS, timeout=0.05)
        with pytest.raises(ProviderTimeoutError):
            asyncio.run(embedder.embed("hello"))

    def test_cancelled_token(self):
        client = make_client()
        embedder = OpenAIEmbedder(client, dimensions=DIMS)

        async def scenario():
            token = CancellationToken()
            token.cancel()
            await embedder.embed("hello", token=token)

        with pytest.raises(OperationCancelledError):
            asyncio.run(scenario())


class FakeStream:
    """Minimal stand-in for the SDK's async chat stream."""

    def __init__(self, deltas):
        self._chunks = iter(
            SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=d))])
            for d in deltas
        )
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._chunks)
        except StopIteration:
            raise StopAsyncIteration from None

    async def close(self):
        self.closed = True


def chat_client(side_effect) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=side_effect)
    return client


MESSAGES = [ChatMessage(Role.SYSTEM, "be brief"), ChatMessage(Role.USER, "hi")]


class TestOpenAIChatClient:
    """Tests for OpenAIChatClient."""

    def test_complete_sends_defaults(self):
        response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="hello"))])
        client = chat_client([response])
        chat = OpenAIChatClient(client, model="gpt-4-turbo", temperature=0.1, max_tokens=1000)

        assert asyncio.run(chat.complete(MESSAGES)) == "hello"
        client.chat.completions.create.assert_awaited_once_with(
            model="gpt-4-turbo",
            messages=[
                {"role": "system", "content": "be brief"},
                {"role": "user", "content": "hi"},
            ],
            temperature=0.1,
            max_tokens=1000,
        )

    def test_complete_overrides(self):
        response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="ok"))])
        client = chat_client([response])
        asyncio.run(OpenAIChatClient(client).complete(MESSAGES, temperature=0.5, max_tokens=20))
        kwargs = client.chat.completions.create.await_args.kwargs
        assert (kwargs["temperature"], kwargs["max_tokens"]) == (0.5, 20)

    def test_empty_completion(self):
        client = chat_client([SimpleNamespace(choices=[])])
        with pytest.raises(LLMGenerationError):
            asyncio.run(OpenAIChatClient(client).complete(MESSAGES))

    @pytest.mark.parametrize(
        "error,expected",
        [
            (status_error(openai.RateLimitError, 429), LLMRateLimitError),
            (openai.APIConnectionError(request=REQUEST), LLMConnectionError),
            (status_error(openai.BadRequestError, 400), LLMGenerationError),
        ],
    )
    def test_complete_errors_are_classified(self, error, expected):
        client = chat_client(error)
        with pytest.raises(expected):
            asyncio.run(OpenAIChatClient(client).complete(MESSAGES))

    def test_stream_yields_deltas_and_closes(self):
        stream = FakeStream(["Hel", None, "lo", ""])
        client = chat_client([stream])
        chat = OpenAIChatClient(client)

        async def collect():
            return [delta async for delta in chat.stream(MESSAGES)]

        assert asyncio.run(collect()) == ["Hel", "lo"]
        assert stream.closed
        assert client.chat.completions.create.await_args.kwargs["stream"] is True

    def test_stream_stops_when_cancelled(self):
        stream = FakeStream(["one", "two", "three"])
        chat = OpenAIChatClient(chat_client([stream]))

        async def collect():
            token = CancellationToken()
            received = []
            async for delta in chat.stream(MESSAGES, token=token):
                received.append(delta)
                token.cancel("client disconnected")
            return received

        with pytest.raises(OperationCancelledError):
            asyncio.run(collect())
        assert stream.closed

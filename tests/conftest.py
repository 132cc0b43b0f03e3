"""
Pytest configuration and shared fixtures.
"""

import pytest
from qdrant_client import AsyncQdrantClient

from docrag.adapters.outbound.vector_store import QdrantVectorStore
from docrag.core.domain import VectorPayload, VectorPoint, point_id_for
from docrag.core.ports.embedding_port import EmbeddingPort

TEST_VECTOR_SIZE = 4


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (full app wiring)")
    config.addinivalue_line("markers", "slow: Slow tests (network, large data)")


class KeywordEmbedder(EmbeddingPort):
    """Deterministic 4-dimension embedder keyed on a few topic words.

    Texts sharing topics get similar vectors, which is enough to exercise
    similarity thresholds without a real model.
    """

    TOPICS = ("ai", "ml", "python", "cooking")

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    @property
    def dimensions(self) -> int:
        return TEST_VECTOR_SIZE

    def vector_for(self, text: str) -> list[float]:
        words = text.lower().replace(".", " ").split()
        return [1.0 if topic in words else 0.05 for topic in self.TOPICS]

    async def embed(self, text, token=None):
        return (await self.embed_many([text], token=token))[0]

    async def embed_many(self, texts, token=None):
        self.calls.append(list(texts))
        return [self.vector_for(t) for t in texts]


@pytest.fixture
def keyword_embedder():
    """Deterministic embedder for pipeline tests."""
    return KeywordEmbedder()


@pytest.fixture
def memory_store():
    """QdrantVectorStore backed by qdrant-client local in-memory mode."""
    client = AsyncQdrantClient(location=":memory:")
    return QdrantVectorStore(client, collection_name="test_documents", vector_size=TEST_VECTOR_SIZE)


@pytest.fixture
def make_point():
    """Factory for vector points with a consistent payload."""

    def _make(
        vector,
        user_id="user-1",
        document_id="doc-1",
        chunk_index=0,
        content="chunk content",
        filename="notes.txt",
    ):
        return VectorPoint(
            id=point_id_for(document_id, chunk_index),
            vector=list(vector),
            payload=VectorPayload(
                document_id=document_id,
                user_id=user_id,
                chunk_index=chunk_index,
                content=content,
                filename=filename,
                created_at="2025-01-01T00:00:00+00:00",
            ),
        )

    return _make


@pytest.fixture
def sample_text():
    """A short multi-topic document."""
    return (
        "AI systems learn patterns from data. ML models need careful evaluation. "
        "Python is a popular language for ML work. Cooking pasta takes ten minutes."
    )

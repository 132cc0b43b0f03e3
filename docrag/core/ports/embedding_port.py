"""Embedding Port Interface."""

from abc import ABC, abstractmethod

from ...common.cancellation import CancellationToken


class EmbeddingPort(ABC):
    """Abstract interface for embedding providers."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of every vector this provider returns."""
        ...

    @abstractmethod
    async def embed(self, text: str, token: CancellationToken | None = None) -> list[float]: ...

    @abstractmethod
    async def embed_many(
        self, texts: list[str], token: CancellationToken | None = None
    ) -> list[list[float]]:
        """Embed ``texts``, returning vectors in input order."""
        ...

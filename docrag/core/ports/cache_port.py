"""Embedding Cache Port Interface."""

from abc import ABC, abstractmethod


class EmbeddingCachePort(ABC):
    """Abstract interface for an embedding cache keyed by content hash."""

    @abstractmethod
    def get(self, key: str) -> list[float] | None: ...

    @abstractmethod
    def set(self, key: str, vector: list[float]) -> None: ...

    @abstractmethod
    def evict(self, key: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def __len__(self) -> int: ...

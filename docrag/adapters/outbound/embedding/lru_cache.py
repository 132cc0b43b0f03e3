"""Bounded in-process LRU cache for embedding vectors."""

import hashlib
from collections import OrderedDict

from ....core.ports.cache_port import EmbeddingCachePort

DEFAULT_MAX_ENTRIES = 1024


def embedding_cache_key(text: str, model: str, dimensions: int) -> str:
    """Content hash identifying one text embedded with one model configuration."""
    return hashlib.sha256(f"{model}:{dimensions}:{text}".encode()).hexdigest()


class LRUEmbeddingCache(EmbeddingCachePort):
    """Least-recently-used cache backed by an ``OrderedDict``.

    All access happens on the event loop thread, so no locking is needed;
    reads refresh recency and writes evict the oldest entries beyond
    ``max_entries``.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> list[float] | None:
        vector = self._entries.get(key)
        if vector is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return vector

    def set(self, key: str, vector: list[float]) -> None:
        self._entries[key] = vector
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

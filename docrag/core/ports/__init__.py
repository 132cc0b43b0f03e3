"""Port interfaces (hexagonal architecture).

Core services depend only on these abstractions; adapters implement them.
"""

from .cache_port import EmbeddingCachePort
from .chat_port import ChatPort
from .embedding_port import EmbeddingPort
from .vector_store_port import VectorStorePort

__all__ = [
    "EmbeddingCachePort",
    "EmbeddingPort",
    "ChatPort",
    "VectorStorePort",
]

"""Embedding adapters."""

from .lru_cache import LRUEmbeddingCache, embedding_cache_key
from .openai_embedder import OpenAIEmbedder

__all__ = ["LRUEmbeddingCache", "OpenAIEmbedder", "embedding_cache_key"]

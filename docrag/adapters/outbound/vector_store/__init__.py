"""Vector store adapters."""

from .qdrant_adapter import QdrantVectorStore, StoreState, classify_store_error, create_qdrant_client

__all__ = ["QdrantVectorStore", "StoreState", "classify_store_error", "create_qdrant_client"]

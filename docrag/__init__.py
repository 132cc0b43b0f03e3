"""docrag: document chunking, embedding, vector search and context assembly for RAG chat."""

__version__ = "1.0.0"

"""Composition root wiring adapters to the application services."""

from __future__ import annotations

import logging
from functools import lru_cache

from openai import AsyncOpenAI

from ..adapters.outbound.embedding import LRUEmbeddingCache, OpenAIEmbedder
from ..adapters.outbound.llm import OpenAIChatClient
from ..adapters.outbound.vector_store import QdrantVectorStore, create_qdrant_client
from ..common.rate_limiter import RateLimiter
from ..config import settings
from ..core.services import (
    ChatService,
    ContextAssembler,
    IngestionService,
    RetrievalService,
)

logger = logging.getLogger(__name__)


@lru_cache
def get_openai_client() -> AsyncOpenAI:
    # Retries are left to callers; a failed request surfaces immediately.
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        max_retries=0,
        timeout=settings.openai_timeout_seconds,
    )


@lru_cache
def get_vector_store() -> QdrantVectorStore:
    logger.info("Initializing QdrantVectorStore (composition root)...")
    client = create_qdrant_client(
        settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        timeout=settings.qdrant_timeout_seconds,
    )
    return QdrantVectorStore(
        client,
        collection_name=settings.qdrant_collection_name,
        vector_size=settings.vector_size,
        timeout=settings.qdrant_timeout_seconds,
    )


@lru_cache
def get_embedder() -> OpenAIEmbedder:
    logger.info("Initializing OpenAIEmbedder...")
    return OpenAIEmbedder(
        get_openai_client(),
        model=settings.embedding_model,
        dimensions=settings.vector_size,
        cache=LRUEmbeddingCache(settings.embedding_cache_size),
        batch_size=settings.embedding_batch_size,
        max_concurrency=settings.embedding_max_concurrency,
        rate_limiter=RateLimiter(settings.embedding_requests_per_minute),
        timeout=settings.openai_timeout_seconds,
    )


@lru_cache
def get_chat_client() -> OpenAIChatClient:
    logger.info("Initializing OpenAIChatClient...")
    return OpenAIChatClient(
        get_openai_client(),
        model=settings.chat_model,
        temperature=settings.chat_temperature,
        max_tokens=settings.chat_max_tokens,
        timeout=settings.openai_timeout_seconds,
    )


@lru_cache
def get_retrieval_service() -> RetrievalService:
    return RetrievalService(get_embedder(), get_vector_store(), rerank=True)


@lru_cache
def get_ingestion_service() -> IngestionService:
    return IngestionService(
        get_embedder(),
        get_vector_store(),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        max_upload_bytes=settings.max_upload_bytes,
    )


@lru_cache
def get_chat_service() -> ChatService:
    logger.info("Initializing ChatService...")
    assembler = ContextAssembler(
        max_tokens=settings.max_context_tokens,
        reserve_tokens=settings.system_prompt_reserve_tokens,
    )
    return ChatService(
        get_chat_client(),
        get_retrieval_service(),
        assembler,
        top_k=settings.search_top_k,
        threshold=settings.similarity_threshold,
        history_limit=settings.conversation_history_limit,
    )

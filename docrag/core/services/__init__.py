"""Core services (application logic)."""

from .chat_service import ChatService, ChatStream
from .chunker import MAX_CHUNK_SIZE, chunk_document, chunk_text
from .context_assembler import ContextAssembler
from .ingestion_service import IngestionService
from .retrieval_service import RetrievalService
from .text_extractor import extract_text
from .token_counter import count_tokens, fit_items_to_budget, fit_to_budget

__all__ = [
    "ChatService",
    "ChatStream",
    "ContextAssembler",
    "IngestionService",
    "RetrievalService",
    "MAX_CHUNK_SIZE",
    "chunk_text",
    "chunk_document",
    "extract_text",
    "count_tokens",
    "fit_to_budget",
    "fit_items_to_budget",
]

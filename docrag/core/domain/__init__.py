"""Domain models for docrag.

Models are organized by area:

- document: Document lifecycle and Chunk windows
- vector: VectorPoint, VectorPayload, SearchOptions and SearchResult
- chat: ChatMessage, AssembledContext, ChatAnswer and IngestionReport

All models are re-exported here for convenient importing:

    from docrag.core.domain import Chunk, SearchOptions, SearchResult
"""

from .chat import (
    AssembledContext,
    ChatAnswer,
    ChatMessage,
    IngestionReport,
    Role,
    SourceCitation,
)
from .document import Chunk, Document, DocumentStatus
from .vector import (
    DEFAULT_THRESHOLD,
    DEFAULT_TOP_K,
    FILTERABLE_FIELDS,
    MAX_TOP_K,
    CollectionInfo,
    PayloadFilter,
    SearchOptions,
    SearchResult,
    VectorPayload,
    VectorPoint,
    point_id_for,
)

__all__ = [
    # Document models
    "Document",
    "DocumentStatus",
    "Chunk",
    # Vector models
    "VectorPayload",
    "VectorPoint",
    "SearchOptions",
    "SearchResult",
    "PayloadFilter",
    "CollectionInfo",
    "point_id_for",
    "MAX_TOP_K",
    "DEFAULT_TOP_K",
    "DEFAULT_THRESHOLD",
    "FILTERABLE_FIELDS",
    # Chat models
    "Role",
    "ChatMessage",
    "AssembledContext",
    "SourceCitation",
    "ChatAnswer",
    "IngestionReport",
]

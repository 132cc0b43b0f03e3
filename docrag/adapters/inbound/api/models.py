"""Pydantic models for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field


class ChatMessageModel(BaseModel):
    """A single message in the conversation."""

    role: Literal["system", "user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Content of the message")


class ChatRequest(BaseModel):
    """Request model for a chat turn."""

    messages: list[ChatMessageModel] = Field(
        ...,
        description="Conversation so far; the last message must be from the user",
        json_schema_extra={
            "example": [{"role": "user", "content": "What does the onboarding guide say?"}]
        },
    )
    stream: bool = Field(False, description="Stream the answer as server-sent events")


class SourceInfo(BaseModel):
    """A document chunk the answer was grounded on."""

    document_id: str = Field(..., description="Source document id")
    filename: str = Field(..., description="Original file name")
    chunk_index: int = Field(..., description="Position of the chunk in the document")
    score: float = Field(..., description="Similarity score from retrieval")


class ChatResponse(BaseModel):
    """Response model for a completed chat answer."""

    message: str = Field(..., description="The AI-generated answer")
    sources: list[SourceInfo] = Field(default_factory=list)
    context_tokens: int = Field(..., description="Estimated tokens of retrieved context")
    model: str = Field(..., description="Chat model used")


class SearchRequest(BaseModel):
    """Request model for semantic search over the user's documents."""

    query: str = Field("", description="Natural-language query, or chunk text for similar mode")
    mode: Literal["semantic", "hybrid", "similar", "related"] = Field(
        "semantic", description="Search strategy"
    )
    document_id: str | None = Field(None, description="Source document for related mode")
    top_k: int = Field(5, description="Maximum number of results (1-50)")
    threshold: float = Field(0.7, description="Minimum similarity score (0-1)")
    document_ids: list[str] = Field(default_factory=list, description="Restrict to these documents")
    rerank: bool = Field(True, description="Apply lexical reranking")


class SearchHit(BaseModel):
    """A single search result."""

    id: str
    document_id: str
    filename: str
    chunk_index: int
    content: str
    score: float
    relevance_score: float | None = None


class SearchResponse(BaseModel):
    """Response model for search."""

    results: list[SearchHit] = Field(default_factory=list)
    total: int = 0


class IngestionResponse(BaseModel):
    """Outcome of a document upload."""

    document_id: str
    filename: str
    status: str
    chunk_count: int
    embedded_count: int


class DocumentListResponse(BaseModel):
    """The user's indexed documents."""

    document_ids: list[str] = Field(default_factory=list)
    vector_count: int = 0


class DeleteResponse(BaseModel):
    """Outcome of a document deletion."""

    document_id: str
    deleted_vectors: int


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    vector_store: str = Field(..., description="Vector store backend status")


class ErrorDetail(BaseModel):
    """Client-facing error information."""

    code: str = Field(..., description="Error code (e.g., RAG_VAL_001)")
    message: str = Field(..., description="Human-readable error message")
    report_id: str | None = Field(None, description="Reference for server-side logs")


class ErrorResponse(BaseModel):
    """Error response body."""

    error: ErrorDetail

"""Document and chunk models for the ingestion pipeline."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class DocumentStatus(str, Enum):
    """Lifecycle of an uploaded document."""

    UPLOADED = "uploaded"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    READY = "ready"
    FAILED = "failed"


@dataclass
class Document:
    """A user-owned document moving through the ingestion pipeline.

    Attributes:
        id: Unique identifier of the document.
        owner_id: Id of the user that uploaded the document.
        filename: Original file name, used for source attribution.
        content: Raw extracted text.
        status: Current lifecycle stage.
        error: Failure message when ``status`` is ``FAILED``.
        created_at: Upload timestamp (UTC).
    """

    id: str
    owner_id: str
    filename: str
    content: str
    status: DocumentStatus = DocumentStatus.UPLOADED
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def mark(self, status: DocumentStatus, error: str | None = None) -> None:
        """Move the document to ``status``, recording ``error`` on failure."""
        self.status = status
        self.error = error


@dataclass(frozen=True)
class Chunk:
    """A contiguous window ``content[start:end]`` of a document.

    Attributes:
        document_id: Owning document.
        chunk_index: 0-based position among the document's chunks.
        start: Inclusive start offset into the document text.
        end: Exclusive end offset into the document text.
        content: The substring covered by the window.
    """

    document_id: str
    chunk_index: int
    start: int
    end: int
    content: str

    @property
    def length(self) -> int:
        return self.end - self.start

"""Chat, context and ingestion result models."""

from dataclasses import dataclass, field
from enum import Enum

from .document import DocumentStatus
from .vector import SearchResult


class Role(str, Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single role-tagged message."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class AssembledContext:
    """Prompt context built from ranked search results under a token budget.

    Attributes:
        text: The joined context blocks.
        sources: Results whose content made it into ``text``, in order.
        token_count: Estimated tokens of ``text``.
        dropped: Number of lower-ranked results left out for budget.
    """

    text: str
    sources: list[SearchResult] = field(default_factory=list)
    token_count: int = 0
    dropped: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.sources


@dataclass(frozen=True)
class SourceCitation:
    """A retrieved chunk cited in an answer."""

    document_id: str
    filename: str
    chunk_index: int
    score: float


@dataclass
class ChatAnswer:
    """Completed answer with the context it was grounded on."""

    text: str
    sources: list[SourceCitation]
    context_tokens: int
    model: str


@dataclass
class IngestionReport:
    """Outcome of processing one document."""

    document_id: str
    status: DocumentStatus
    chunk_count: int = 0
    embedded_count: int = 0
    error: str | None = None

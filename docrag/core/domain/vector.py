"""Vector point, payload and search models.

Payloads and filters are closed structures: the owning ``user_id`` is a
required field on every payload and on every search, so the user scope can
never be dropped by a caller building an ad hoc filter map.
"""

import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

from .exceptions import InvalidSearchOptionsError, ValidationError

# Namespace for deterministic point ids (document id + chunk index).
POINT_ID_NAMESPACE = uuid.UUID("6f1c2a7e-3b8d-4f51-9a0e-5d2c8b7a4e13")

MAX_TOP_K = 50
DEFAULT_TOP_K = 5
DEFAULT_THRESHOLD = 0.7

# Payload fields callers may filter on besides the mandatory user scope.
FILTERABLE_FIELDS = frozenset({"document_id", "filename", "chunk_index"})

FilterValue = str | int


def point_id_for(document_id: str, chunk_index: int) -> str:
    """Derive the stable point id of a document chunk."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, f"{document_id}:{chunk_index}"))


@dataclass(frozen=True)
class VectorPayload:
    """Payload stored alongside each vector."""

    document_id: str
    user_id: str
    chunk_index: int
    content: str
    filename: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VectorPayload":
        return cls(
            document_id=str(data.get("document_id", "")),
            user_id=str(data.get("user_id", "")),
            chunk_index=int(data.get("chunk_index", 0)),
            content=str(data.get("content", "")),
            filename=str(data.get("filename", "")),
            created_at=str(data.get("created_at", "")),
        )


@dataclass(frozen=True)
class VectorPoint:
    """A vector with its id and payload, ready for upsert."""

    id: str
    vector: list[float]
    payload: VectorPayload


@dataclass
class SearchResult:
    """A scored hit returned by vector search.

    Attributes:
        id: Point id.
        score: Similarity score (cosine).
        payload: Stored payload of the point.
        relevance_score: Score assigned by reranking, if any.
    """

    id: str
    score: float
    payload: VectorPayload
    relevance_score: float | None = None

    @property
    def ranking_score(self) -> float:
        """Score used for ordering: relevance when reranked, else similarity."""
        return self.relevance_score if self.relevance_score is not None else self.score


@dataclass(frozen=True)
class SearchOptions:
    """Options for a user-scoped similarity search.

    Attributes:
        user_id: Requesting user; always applied as an equality filter.
        top_k: Maximum number of results (1..MAX_TOP_K).
        threshold: Minimum similarity score (0..1).
        filters: Extra equality matches on payload fields, ANDed together.
        document_ids: Optional restriction to any of these documents.
    """

    user_id: str
    top_k: int = DEFAULT_TOP_K
    threshold: float = DEFAULT_THRESHOLD
    filters: dict[str, FilterValue] = field(default_factory=dict)
    document_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.user_id, str) or not self.user_id.strip():
            raise InvalidSearchOptionsError("User ID is required")
        if isinstance(self.top_k, bool) or not isinstance(self.top_k, int):
            raise InvalidSearchOptionsError("top_k must be an integer")
        if self.top_k < 1 or self.top_k > MAX_TOP_K:
            raise InvalidSearchOptionsError(f"top_k must be between 1 and {MAX_TOP_K}")
        if not 0.0 <= float(self.threshold) <= 1.0:
            raise InvalidSearchOptionsError("threshold must be between 0 and 1")
        unknown = set(self.filters) - FILTERABLE_FIELDS
        if unknown:
            raise InvalidSearchOptionsError(
                f"Unsupported filter fields: {', '.join(sorted(unknown))}",
                context={"allowed": sorted(FILTERABLE_FIELDS)},
            )
        object.__setattr__(self, "document_ids", tuple(self.document_ids))


@dataclass(frozen=True)
class PayloadFilter:
    """Equality filter for bulk deletes. At least one condition is required."""

    user_id: str | None = None
    document_id: str | None = None
    filename: str | None = None

    def conditions(self) -> dict[str, str]:
        conditions = {key: value for key, value in asdict(self).items() if value is not None}
        if not conditions:
            raise ValidationError("Refusing to delete with an empty filter")
        return conditions


@dataclass(frozen=True)
class CollectionInfo:
    """Summary of the vector collection."""

    name: str
    points_count: int
    status: str

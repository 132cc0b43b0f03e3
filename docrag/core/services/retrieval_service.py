"""User-scoped semantic search with deduplication and lexical reranking.

Besides plain query search the service offers hybrid scoring (similarity,
keyword coverage and document age), near-duplicate lookup for a chunk, and
documents related to one the user already has.
"""

import logging
from datetime import UTC, datetime

from ...common.cancellation import CancellationToken
from ..domain import SearchOptions, SearchResult
from ..domain.exceptions import (
    EmptyQueryError,
    InvalidSearchOptionsError,
    NotFoundError,
    QueryTooLongError,
)
from ..domain.utils import clean_text, query_terms
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_store_port import VectorStorePort

logger = logging.getLogger(__name__)


class RetrievalService:
    """Retrieves the requesting user's most relevant chunks for a query."""

    MAX_QUERY_LENGTH = 1000

    # Relevance weights: similarity, query-term coverage, chunk length.
    SEMANTIC_WEIGHT = 0.7
    TERM_WEIGHT = 0.2
    LENGTH_WEIGHT = 0.1
    LENGTH_NORMALIZER = 1000

    # Hybrid scoring: recency fades linearly to zero over a year.
    RECENCY_WINDOW_DAYS = 365

    SIMILAR_TOP_K = 10
    SIMILAR_THRESHOLD = 0.8
    RELATED_TOP_K = 20
    RELATED_THRESHOLD = 0.6

    def __init__(
        self,
        embedder: EmbeddingPort,
        vector_store: VectorStorePort,
        rerank: bool = True,
    ) -> None:
        """Initialize the retriever.

        Args:
            embedder: Embedding client for query vectors.
            vector_store: Vector store to search.
            rerank: Whether to rerank results lexically by default.
        """
        self.embedder = embedder
        self.vector_store = vector_store
        self.rerank_by_default = rerank

    def validate_query(self, query: str) -> str:
        """Clean ``query`` and check it is non-empty and not too long."""
        cleaned = clean_text(query or "").strip()
        if not cleaned:
            raise EmptyQueryError("Search query cannot be empty")
        if len(cleaned) > self.MAX_QUERY_LENGTH:
            raise QueryTooLongError(
                f"Search query cannot exceed {self.MAX_QUERY_LENGTH} characters",
                context={"length": len(cleaned)},
            )
        return cleaned

    @staticmethod
    def deduplicate(results: list[SearchResult]) -> list[SearchResult]:
        """Keep the first result for each (document_id, chunk_index)."""
        seen: set[tuple[str, int]] = set()
        deduplicated = []
        for result in results:
            key = (result.payload.document_id, result.payload.chunk_index)
            if key in seen:
                continue
            seen.add(key)
            deduplicated.append(result)
        return deduplicated

    @staticmethod
    def term_coverage(content: str, terms: list[str]) -> float:
        """Fraction of ``terms`` found in ``content`` (case-insensitive)."""
        if not terms:
            return 0.0
        lowered = content.lower()
        return sum(1 for term in terms if term in lowered) / len(terms)

    def relevance_score(self, result: SearchResult, terms: list[str]) -> float:
        coverage = self.term_coverage(result.payload.content, terms)
        length_score = min(len(result.payload.content) / self.LENGTH_NORMALIZER, 1.0)
        return (
            self.SEMANTIC_WEIGHT * result.score
            + self.TERM_WEIGHT * coverage
            + self.LENGTH_WEIGHT * length_score
        )

    def rerank(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        """Score results by relevance and sort them, highest first."""
        terms = query_terms(query)
        for result in results:
            result.relevance_score = self.relevance_score(result, terms)
        return sorted(results, key=lambda r: r.ranking_score, reverse=True)

    async def search(
        self,
        query: str,
        options: SearchOptions,
        token: CancellationToken | None = None,
        rerank: bool | None = None,
    ) -> list[SearchResult]:
        """Embed ``query`` and search the user's vectors.

        Args:
            query: Natural-language query.
            options: Validated search options (user scope, top_k, threshold).
            token: Optional cancellation token.
            rerank: Override the default reranking behaviour.

        Returns:
            Deduplicated results, reranked when enabled.
        """
        cleaned = self.validate_query(query)
        vector = await self.embedder.embed(cleaned, token=token)
        results = await self.vector_store.search(vector, options, token=token)
        results = self.deduplicate(results)

        if self.rerank_by_default if rerank is None else rerank:
            results = self.rerank(cleaned, results)

        logger.info(f"Search for user {options.user_id} returned {len(results)} results")
        return results

    @classmethod
    def recency_score(cls, created_at: str, now: datetime | None = None) -> float:
        """1.0 for a chunk stored just now, falling linearly to 0 after a year.

        Missing or unparseable timestamps score 0.
        """
        try:
            created = datetime.fromisoformat(created_at)
        except (TypeError, ValueError):
            return 0.0
        if created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        age_days = ((now or datetime.now(UTC)) - created).total_seconds() / 86400
        return min(1.0, max(0.0, 1.0 - age_days / cls.RECENCY_WINDOW_DAYS))

    async def hybrid_search(
        self,
        query: str,
        options: SearchOptions,
        token: CancellationToken | None = None,
        keyword_weight: float = 0.3,
        semantic_weight: float = 0.7,
        recency_weight: float = 0.1,
        now: datetime | None = None,
    ) -> list[SearchResult]:
        """Semantic search rescored by keyword coverage and document age.

        Each result gets ``relevance_score = semantic_weight * similarity +
        keyword_weight * coverage + recency_weight * recency`` and the list
        is sorted on it, highest first.
        """
        if min(keyword_weight, semantic_weight, recency_weight) < 0:
            raise InvalidSearchOptionsError("Hybrid search weights cannot be negative")

        results = await self.search(query, options, token=token, rerank=False)
        terms = query_terms(self.validate_query(query))
        current = now or datetime.now(UTC)
        for result in results:
            result.relevance_score = (
                semantic_weight * result.score
                + keyword_weight * self.term_coverage(result.payload.content, terms)
                + recency_weight * self.recency_score(result.payload.created_at, current)
            )
        return sorted(results, key=lambda r: r.ranking_score, reverse=True)

    async def similar_chunks(
        self,
        content: str,
        user_id: str,
        token: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Find the user's chunks closest to ``content`` (near duplicates)."""
        cleaned = clean_text(content or "").strip()
        if not cleaned:
            raise EmptyQueryError("Chunk content cannot be empty")

        options = SearchOptions(
            user_id=user_id, top_k=self.SIMILAR_TOP_K, threshold=self.SIMILAR_THRESHOLD
        )
        vector = await self.embedder.embed(cleaned, token=token)
        return self.deduplicate(await self.vector_store.search(vector, options, token=token))

    async def related_documents(
        self,
        document_id: str,
        user_id: str,
        token: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Other documents of the user that resemble ``document_id``.

        The document's first chunk is used as the query. The best hit of each
        other document is returned, highest similarity first.

        Raises:
            NotFoundError: If the user has no chunks for ``document_id``.
        """
        chunks = await self.vector_store.document_chunks(user_id, document_id, token=token)
        if not chunks:
            raise NotFoundError("Document not found", context={"document_id": document_id})

        options = SearchOptions(
            user_id=user_id, top_k=self.RELATED_TOP_K, threshold=self.RELATED_THRESHOLD
        )
        vector = await self.embedder.embed(chunks[0].content, token=token)
        results = await self.vector_store.search(vector, options, token=token)

        best: dict[str, SearchResult] = {}
        for result in sorted(results, key=lambda r: r.score, reverse=True):
            related_id = result.payload.document_id
            if related_id != document_id and related_id not in best:
                best[related_id] = result
        return list(best.values())

"""Qdrant vector store for user-scoped document chunks.

Every point carries the owning ``user_id`` in its payload and every search
filters on it; results are checked again client-side so a misconfigured
filter can never leak another user's chunks.

The adapter is constructed with an explicit ``AsyncQdrantClient`` (a remote
server in production, ``location=":memory:"`` in tests) and initializes the
collection lazily on first use.
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterator
from enum import Enum
from typing import TypeVar

import httpx
from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import UnexpectedResponse

from ....common.cancellation import CancellationToken, guarded_call
from ....core.domain import (
    CollectionInfo,
    PayloadFilter,
    SearchOptions,
    SearchResult,
    VectorPayload,
    VectorPoint,
)
from ....core.domain.exceptions import (
    CollectionConfigError,
    DocRagError,
    StoreAPIError,
    StoreConnectionRefusedError,
    StoreTimeoutError,
    ValidationError,
    VectorStoreError,
)
from ....core.ports.vector_store_port import VectorStorePort

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Constants
DEFAULT_COLLECTION = "documents"
DEFAULT_VECTOR_SIZE = 1536  # text-embedding-3-small
DEFAULT_TIMEOUT_SECONDS = 30.0
UPSERT_BATCH_SIZE = 100
SCROLL_PAGE_SIZE = 256
INDEXED_FIELDS = ("user_id", "document_id")

OPTIMIZERS_CONFIG = models.OptimizersConfigDiff(
    default_segment_number=2,
    max_segment_size=20000,
    memmap_threshold=20000,
    indexing_threshold=20000,
    flush_interval_sec=5,
    max_optimization_threads=1,
)
REPLICATION_FACTOR = 1
WRITE_CONSISTENCY_FACTOR = 1


class StoreState(str, Enum):
    """Initialization state of the vector store."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


def create_qdrant_client(
    url: str,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> AsyncQdrantClient:
    """Build an async Qdrant client for ``url`` (or ``":memory:"``)."""
    if url == ":memory:":
        return AsyncQdrantClient(location=":memory:")
    return AsyncQdrantClient(url=url, api_key=api_key or None, timeout=int(timeout))


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and the exceptions it wraps, outermost first."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        source = getattr(current, "source", None)
        if isinstance(source, BaseException):
            current = source
        else:
            current = current.__cause__ or current.__context__


def classify_store_error(exc: BaseException, operation: str, collection: str) -> VectorStoreError:
    """Map a raw client failure to a typed vector store error."""
    context = {"operation": operation, "collection": collection}
    for error in _exception_chain(exc):
        if isinstance(error, TimeoutError | httpx.TimeoutException):
            return StoreTimeoutError(
                f"Qdrant {operation} timed out", cause=error, context=context
            )
        if isinstance(error, ConnectionRefusedError | httpx.ConnectError):
            return StoreConnectionRefusedError(
                f"Cannot connect to Qdrant for {operation}", cause=error, context=context
            )
        if isinstance(error, UnexpectedResponse):
            return StoreAPIError(
                f"Qdrant {operation} failed with HTTP {error.status_code}",
                status_code=error.status_code,
                cause=error,
                context=context,
            )
    return VectorStoreError(f"Qdrant {operation} failed: {exc}", cause=exc, context=context)


def _is_conflict(error: VectorStoreError) -> bool:
    if isinstance(error, StoreAPIError) and error.status_code == 409:
        return True
    return "already exists" in str(error.cause or "").lower()


def _is_missing(error: VectorStoreError) -> bool:
    if isinstance(error, StoreAPIError) and error.status_code == 404:
        return True
    return "not found" in str(error.cause or "").lower()


def _user_condition(user_id: str) -> models.FieldCondition:
    return models.FieldCondition(key="user_id", match=models.MatchValue(value=user_id))


def _document_filter(user_id: str, document_id: str) -> models.Filter:
    return models.Filter(
        must=[
            _user_condition(user_id),
            models.FieldCondition(key="document_id", match=models.MatchValue(value=document_id)),
        ]
    )


class QdrantVectorStore(VectorStorePort):
    """Qdrant-backed vector store with lazy, race-safe collection setup.

    The first operation connects, creates the collection if needed (cosine
    distance, fixed vector size) and ensures keyword indexes on ``user_id``
    and ``document_id``. Concurrent first callers share one initialization.
    A failed initialization leaves the store ``UNINITIALIZED`` so the next
    call tries again.
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str = DEFAULT_COLLECTION,
        vector_size: int = DEFAULT_VECTOR_SIZE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the vector store.

        Args:
            client: Connected (or local) async Qdrant client.
            collection_name: Collection holding all users' chunks.
            vector_size: Dimensionality of stored vectors.
            timeout: Per-call timeout in seconds.
        """
        self.client = client
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.timeout = timeout
        self.state = StoreState.UNINITIALIZED
        self._init_lock = asyncio.Lock()

    async def close(self) -> None:
        await self.client.close()

    async def _call(
        self,
        operation: str,
        awaitable: Awaitable[T],
        token: CancellationToken | None = None,
    ) -> T:
        """Run one remote call under the timeout policy, classifying failures."""
        try:
            return await guarded_call(awaitable, timeout=self.timeout, token=token)
        except DocRagError:
            raise
        except Exception as e:
            error = classify_store_error(e, operation, self.collection_name)
            logger.error(f"Qdrant {operation} failed [{error.failure_kind.value}]: {e}")
            raise error from e

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def _ensure_ready(self, token: CancellationToken | None = None) -> None:
        if self.state is StoreState.READY:
            return
        async with self._init_lock:
            if self.state is StoreState.READY:
                return
            self.state = StoreState.INITIALIZING
            try:
                await self._initialize(token)
            except BaseException:
                self.state = StoreState.UNINITIALIZED
                raise
            self.state = StoreState.READY
            logger.info(f"Qdrant collection '{self.collection_name}' ready")

    async def _initialize(self, token: CancellationToken | None) -> None:
        await self._call("get_collections", self.client.get_collections(), token)
        exists = await self._call(
            "collection_exists", self.client.collection_exists(self.collection_name), token
        )
        if exists:
            await self._verify_vector_size(token)
        else:
            await self._create_collection(token)
        await self._ensure_indexes(token)

    async def _create_collection(self, token: CancellationToken | None) -> None:
        logger.info(f"Creating collection {self.collection_name}")
        try:
            await guarded_call(
                self.client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=models.VectorParams(
                        size=self.vector_size,
                        distance=models.Distance.COSINE,
                    ),
                    optimizers_config=OPTIMIZERS_CONFIG,
                    replication_factor=REPLICATION_FACTOR,
                    write_consistency_factor=WRITE_CONSISTENCY_FACTOR,
                ),
                timeout=self.timeout,
                token=token,
            )
        except DocRagError:
            raise
        except Exception as e:
            error = classify_store_error(e, "create_collection", self.collection_name)
            if not _is_conflict(error):
                logger.error(f"Qdrant create_collection failed [{error.failure_kind.value}]: {e}")
                raise error from e
            # Another process created it first.
            logger.info(f"Collection {self.collection_name} already exists")
            await self._verify_vector_size(token)

    async def _verify_vector_size(self, token: CancellationToken | None) -> None:
        info = await self._call(
            "get_collection", self.client.get_collection(self.collection_name), token
        )
        vectors = info.config.params.vectors
        size = vectors.size if isinstance(vectors, models.VectorParams) else None
        if size != self.vector_size:
            raise CollectionConfigError(
                f"Collection '{self.collection_name}' has vector size {size}, "
                f"expected {self.vector_size}",
                context={"collection": self.collection_name, "actual": size},
            )

    async def _ensure_indexes(self, token: CancellationToken | None) -> None:
        for field_name in INDEXED_FIELDS:
            await self._call(
                "create_payload_index",
                self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=models.PayloadSchemaType.KEYWORD,
                    wait=True,
                ),
                token,
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _check_dimensions(self, vector: list[float], what: str) -> None:
        if len(vector) != self.vector_size:
            raise ValidationError(
                f"{what} has {len(vector)} dimensions, expected {self.vector_size}"
            )

    async def upsert(self, points: list[VectorPoint], token: CancellationToken | None = None) -> None:
        """Insert or replace points by id, in batches, waiting for each write."""
        if not points:
            return
        for point in points:
            self._check_dimensions(point.vector, f"Vector for point {point.id}")

        await self._ensure_ready(token)

        structs = [
            models.PointStruct(id=p.id, vector=p.vector, payload=p.payload.to_dict())
            for p in points
        ]
        for i in range(0, len(structs), UPSERT_BATCH_SIZE):
            batch = structs[i : i + UPSERT_BATCH_SIZE]
            await self._call(
                "upsert",
                self.client.upsert(collection_name=self.collection_name, points=batch, wait=True),
                token,
            )

        logger.info(f"Upserted {len(points)} points to {self.collection_name}")

    async def delete(self, point_ids: list[str], token: CancellationToken | None = None) -> None:
        if not point_ids:
            return
        await self._ensure_ready(token)
        await self._call(
            "delete",
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.PointIdsList(points=list(point_ids)),
                wait=True,
            ),
            token,
        )

    async def delete_by_filter(
        self, payload_filter: PayloadFilter, token: CancellationToken | None = None
    ) -> None:
        """Delete every point matching all conditions of ``payload_filter``.

        Raises:
            ValidationError: If the filter has no conditions.
        """
        conditions = payload_filter.conditions()
        await self._ensure_ready(token)
        qdrant_filter = models.Filter(
            must=[
                models.FieldCondition(key=key, match=models.MatchValue(value=value))
                for key, value in conditions.items()
            ]
        )
        await self._call(
            "delete_by_filter",
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.FilterSelector(filter=qdrant_filter),
                wait=True,
            ),
            token,
        )

    async def delete_document(
        self, user_id: str, document_id: str, token: CancellationToken | None = None
    ) -> int:
        await self._ensure_ready(token)
        qdrant_filter = _document_filter(user_id, document_id)
        result = await self._call(
            "count",
            self.client.count(
                collection_name=self.collection_name, count_filter=qdrant_filter, exact=True
            ),
            token,
        )
        if result.count == 0:
            return 0
        await self._call(
            "delete_document",
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.FilterSelector(filter=qdrant_filter),
                wait=True,
            ),
            token,
        )
        return result.count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def search(
        self,
        query_vector: list[float],
        options: SearchOptions,
        token: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Search the requesting user's chunks.

        Args:
            query_vector: Query embedding.
            options: User scope, limit, threshold and extra filters.
            token: Optional cancellation token.

        Returns:
            Results sorted by descending score, all at or above the threshold,
            at most ``top_k``, all owned by ``options.user_id``.
        """
        self._check_dimensions(query_vector, "Query vector")
        await self._ensure_ready(token)

        must: list[models.Condition] = [_user_condition(options.user_id)]
        for key, value in sorted(options.filters.items()):
            must.append(models.FieldCondition(key=key, match=models.MatchValue(value=value)))
        if options.document_ids:
            must.append(
                models.FieldCondition(
                    key="document_id", match=models.MatchAny(any=list(options.document_ids))
                )
            )

        response = await self._call(
            "search",
            self.client.query_points(
                collection_name=self.collection_name,
                query=query_vector,
                query_filter=models.Filter(must=must),
                limit=options.top_k,
                score_threshold=options.threshold,
                with_payload=True,
            ),
            token,
        )

        results = []
        for point in response.points:
            payload = point.payload or {}
            if payload.get("user_id") != options.user_id:
                logger.warning(f"Dropping search hit {point.id} owned by another user")
                continue
            if point.score < options.threshold:
                continue
            results.append(
                SearchResult(
                    id=str(point.id),
                    score=point.score,
                    payload=VectorPayload.from_dict(payload),
                )
            )

        results.sort(key=lambda r: r.score, reverse=True)
        return results[: options.top_k]

    async def count_by_user(self, user_id: str, token: CancellationToken | None = None) -> int:
        await self._ensure_ready(token)
        result = await self._call(
            "count",
            self.client.count(
                collection_name=self.collection_name,
                count_filter=models.Filter(must=[_user_condition(user_id)]),
                exact=True,
            ),
            token,
        )
        return result.count

    async def list_document_ids_by_user(
        self, user_id: str, token: CancellationToken | None = None
    ) -> set[str]:
        """Collect the distinct document ids a user has vectors for."""
        await self._ensure_ready(token)
        document_ids: set[str] = set()
        offset = None
        while True:
            records, offset = await self._call(
                "scroll",
                self.client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=models.Filter(must=[_user_condition(user_id)]),
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                ),
                token,
            )
            for record in records:
                document_id = (record.payload or {}).get("document_id")
                if document_id:
                    document_ids.add(str(document_id))
            if offset is None:
                break
        return document_ids

    async def document_chunks(
        self, user_id: str, document_id: str, token: CancellationToken | None = None
    ) -> list[VectorPayload]:
        """Scroll every chunk of one of the user's documents."""
        await self._ensure_ready(token)
        payloads: list[VectorPayload] = []
        offset = None
        while True:
            records, offset = await self._call(
                "scroll",
                self.client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=_document_filter(user_id, document_id),
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                ),
                token,
            )
            for record in records:
                payload = record.payload or {}
                if payload.get("user_id") != user_id:
                    continue
                payloads.append(VectorPayload.from_dict(payload))
            if offset is None:
                break
        payloads.sort(key=lambda p: p.chunk_index)
        return payloads

    async def collection_info(self, token: CancellationToken | None = None) -> CollectionInfo:
        await self._ensure_ready(token)
        info = await self._call(
            "get_collection", self.client.get_collection(self.collection_name), token
        )
        status = info.status.value if isinstance(info.status, Enum) else str(info.status)
        return CollectionInfo(
            name=self.collection_name,
            points_count=info.points_count or 0,
            status=status,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def recreate_collection(self, token: CancellationToken | None = None) -> None:
        """Drop the collection (if present) and create it again, empty."""
        async with self._init_lock:
            self.state = StoreState.INITIALIZING
            try:
                try:
                    await self._call(
                        "delete_collection",
                        self.client.delete_collection(self.collection_name),
                        token,
                    )
                except VectorStoreError as e:
                    if not _is_missing(e):
                        raise
                    logger.debug(f"Collection {self.collection_name} did not exist")
                await self._create_collection(token)
                await self._ensure_indexes(token)
            except BaseException:
                self.state = StoreState.UNINITIALIZED
                raise
            self.state = StoreState.READY
        logger.info(f"Recreated collection {self.collection_name}")

    async def health_check(self) -> bool:
        """Check connectivity. Never raises."""
        try:
            await guarded_call(self.client.get_collections(), timeout=self.timeout)
            return True
        except Exception as e:
            logger.warning(f"Qdrant health check failed: {e}")
            return False

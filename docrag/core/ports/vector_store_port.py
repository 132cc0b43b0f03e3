"""Vector Store Port Interface."""

from abc import ABC, abstractmethod

from ...common.cancellation import CancellationToken
from ..domain import (
    CollectionInfo,
    PayloadFilter,
    SearchOptions,
    SearchResult,
    VectorPayload,
    VectorPoint,
)


class VectorStorePort(ABC):
    """Abstract interface for user-scoped vector stores."""

    DEFAULT_COLLECTION = "documents"

    @abstractmethod
    async def upsert(self, points: list[VectorPoint], token: CancellationToken | None = None) -> None:
        """Insert or replace points by id."""
        ...

    @abstractmethod
    async def search(
        self,
        query_vector: list[float],
        options: SearchOptions,
        token: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Search the requesting user's vectors."""
        ...

    @abstractmethod
    async def delete(self, point_ids: list[str], token: CancellationToken | None = None) -> None: ...

    @abstractmethod
    async def delete_by_filter(
        self, payload_filter: PayloadFilter, token: CancellationToken | None = None
    ) -> None: ...

    @abstractmethod
    async def delete_document(
        self, user_id: str, document_id: str, token: CancellationToken | None = None
    ) -> int:
        """Remove every point of a user's document and return how many were removed."""
        ...

    @abstractmethod
    async def count_by_user(self, user_id: str, token: CancellationToken | None = None) -> int: ...

    @abstractmethod
    async def list_document_ids_by_user(
        self, user_id: str, token: CancellationToken | None = None
    ) -> set[str]: ...

    @abstractmethod
    async def document_chunks(
        self, user_id: str, document_id: str, token: CancellationToken | None = None
    ) -> list[VectorPayload]:
        """Payloads of a user's document, ordered by chunk index."""
        ...

    @abstractmethod
    async def collection_info(self, token: CancellationToken | None = None) -> CollectionInfo: ...

    @abstractmethod
    async def recreate_collection(self, token: CancellationToken | None = None) -> None: ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Report whether the store is reachable. Never raises."""
        ...

"""Document ingestion: extract, chunk, embed and index user documents."""

import logging
import uuid

from ...common.cancellation import CancellationToken
from ..domain import (
    Document,
    DocumentStatus,
    IngestionReport,
    VectorPayload,
    VectorPoint,
    point_id_for,
)
from ..domain.exceptions import NotFoundError
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_store_port import VectorStorePort
from .chunker import chunk_document
from .text_extractor import DEFAULT_MAX_BYTES, extract_text

logger = logging.getLogger(__name__)


class IngestionService:
    """Moves documents through ``uploaded -> chunked -> embedded -> ready``.

    Any failure along the way marks the document ``failed`` with the error
    message and re-raises the original error.
    """

    def __init__(
        self,
        embedder: EmbeddingPort,
        vector_store: VectorStorePort,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        max_upload_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self.embedder = embedder
        self.vector_store = vector_store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_upload_bytes = max_upload_bytes

    def create_document(self, user_id: str, filename: str, data: bytes) -> Document:
        """Extract text from an upload and wrap it as a new document."""
        content = extract_text(filename, data, max_bytes=self.max_upload_bytes)
        return Document(id=str(uuid.uuid4()), owner_id=user_id, filename=filename, content=content)

    async def ingest(
        self, document: Document, token: CancellationToken | None = None
    ) -> IngestionReport:
        """Chunk, embed and upsert ``document``.

        Returns:
            IngestionReport for the completed document.

        Raises:
            DocRagError: Whatever failed; the document is marked failed first.
        """
        report = IngestionReport(document_id=document.id, status=document.status)
        try:
            chunks = chunk_document(document, self.chunk_size, self.chunk_overlap)
            document.mark(DocumentStatus.CHUNKED)
            report.chunk_count = len(chunks)

            vectors = await self.embedder.embed_many([c.content for c in chunks], token=token)
            document.mark(DocumentStatus.EMBEDDED)
            report.embedded_count = len(vectors)

            created_at = document.created_at.isoformat()
            points = [
                VectorPoint(
                    id=point_id_for(document.id, chunk.chunk_index),
                    vector=vector,
                    payload=VectorPayload(
                        document_id=document.id,
                        user_id=document.owner_id,
                        chunk_index=chunk.chunk_index,
                        content=chunk.content,
                        filename=document.filename,
                        created_at=created_at,
                    ),
                )
                for chunk, vector in zip(chunks, vectors, strict=True)
            ]
            await self.vector_store.upsert(points, token=token)
            document.mark(DocumentStatus.READY)
        except Exception as e:
            document.mark(DocumentStatus.FAILED, str(e))
            logger.error(f"Ingestion of {document.filename} ({document.id}) failed: {e}")
            raise

        report.status = document.status
        logger.info(
            f"Ingested {document.filename}: {report.chunk_count} chunks, "
            f"{report.embedded_count} vectors"
        )
        return report

    async def ingest_file(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        token: CancellationToken | None = None,
    ) -> IngestionReport:
        """Extract text from an uploaded file and ingest it as a new document."""
        document = self.create_document(user_id, filename, data)
        return await self.ingest(document, token=token)

    async def delete_document(
        self, user_id: str, document_id: str, token: CancellationToken | None = None
    ) -> int:
        """Delete a user's document vectors.

        Raises:
            NotFoundError: If the user has no vectors for ``document_id``.
        """
        removed = await self.vector_store.delete_document(user_id, document_id, token=token)
        if removed == 0:
            raise NotFoundError(
                "Document not found", context={"document_id": document_id}
            )
        logger.info(f"Deleted document {document_id}: {removed} vectors removed")
        return removed

    async def list_documents(
        self, user_id: str, token: CancellationToken | None = None
    ) -> tuple[list[str], int]:
        """Return the user's document ids (sorted) and their total vector count."""
        document_ids = await self.vector_store.list_document_ids_by_user(user_id, token=token)
        vector_count = await self.vector_store.count_by_user(user_id, token=token)
        return sorted(document_ids), vector_count

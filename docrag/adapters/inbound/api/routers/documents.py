"""Document upload, listing and deletion."""

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from .....common.cancellation import CancellationToken
from .....core.services import IngestionService
from ..auth import get_current_user_id
from ..deps import get_ingestion_service
from ..models import DeleteResponse, DocumentListResponse, ErrorResponse, IngestionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post(
    "/upload",
    response_model=IngestionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Unsupported or empty file"}},
)
async def upload_document(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestionResponse:
    """Upload a document and index it for search."""
    filename = file.filename or "upload.txt"
    data = await file.read()
    logger.info(f"Received upload {filename} ({len(data)} bytes) from user {user_id}")

    report = await service.ingest_file(user_id, filename, data, token=CancellationToken())
    return IngestionResponse(
        document_id=report.document_id,
        filename=filename,
        status=report.status.value,
        chunk_count=report.chunk_count,
        embedded_count=report.embedded_count,
    )


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    user_id: str = Depends(get_current_user_id),
    service: IngestionService = Depends(get_ingestion_service),
) -> DocumentListResponse:
    document_ids, vector_count = await service.list_documents(user_id)
    return DocumentListResponse(document_ids=document_ids, vector_count=vector_count)


@router.delete(
    "/{document_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse, "description": "Document not found"}},
)
async def delete_document(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    service: IngestionService = Depends(get_ingestion_service),
) -> DeleteResponse:
    removed = await service.delete_document(user_id, document_id)
    return DeleteResponse(document_id=document_id, deleted_vectors=removed)

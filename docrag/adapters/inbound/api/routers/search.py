"""Search over the user's documents.

``mode`` selects the strategy: ``semantic`` (default), ``hybrid`` (keyword
and recency rescoring), ``similar`` (chunks close to the given text) or
``related`` (other documents resembling ``document_id``). ``top_k`` and
``threshold`` apply to the semantic and hybrid modes only.
"""

from fastapi import APIRouter, Depends

from .....common.cancellation import CancellationToken
from .....core.domain import SearchOptions
from .....core.domain.exceptions import ValidationError
from .....core.services import RetrievalService
from ..auth import get_current_user_id
from ..deps import get_retrieval_service
from ..models import ErrorResponse, SearchHit, SearchRequest, SearchResponse

router = APIRouter(prefix="/api", tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid query or options"},
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        404: {"model": ErrorResponse, "description": "Related-mode document not found"},
    },
)
async def search(
    request: SearchRequest,
    user_id: str = Depends(get_current_user_id),
    service: RetrievalService = Depends(get_retrieval_service),
) -> SearchResponse:
    token = CancellationToken()
    if request.mode == "related":
        if not request.document_id:
            raise ValidationError("document_id is required for related search")
        results = await service.related_documents(request.document_id, user_id, token=token)
    elif request.mode == "similar":
        results = await service.similar_chunks(request.query, user_id, token=token)
    else:
        options = SearchOptions(
            user_id=user_id,
            top_k=request.top_k,
            threshold=request.threshold,
            document_ids=tuple(request.document_ids),
        )
        if request.mode == "hybrid":
            results = await service.hybrid_search(request.query, options, token=token)
        else:
            results = await service.search(
                request.query, options, token=token, rerank=request.rerank
            )

    hits = [
        SearchHit(
            id=r.id,
            document_id=r.payload.document_id,
            filename=r.payload.filename,
            chunk_index=r.payload.chunk_index,
            content=r.payload.content,
            score=r.score,
            relevance_score=r.relevance_score,
        )
        for r in results
    ]
    return SearchResponse(results=hits, total=len(hits))

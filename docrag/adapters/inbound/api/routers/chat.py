"""Chat endpoint for document-grounded answers."""

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from .....common.cancellation import CancellationToken
from .....common.exception_handler import handle_exception
from .....core.domain import ChatMessage, Role, SourceCitation
from .....core.domain.exceptions import DocRagError
from .....core.domain.utils import clean_text
from .....core.services import ChatService, ChatStream
from ..auth import get_current_user_id
from ..deps import get_chat_service
from ..models import ChatRequest, ChatResponse, ErrorResponse, SourceInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def _source_info(source: SourceCitation) -> SourceInfo:
    return SourceInfo(
        document_id=source.document_id,
        filename=source.filename,
        chunk_index=source.chunk_index,
        score=source.score,
    )


def _event(data: dict | str) -> str:
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    return f"data: {payload}\n\n"


async def _event_stream(result: ChatStream, token: CancellationToken) -> AsyncIterator[str]:
    """Server-sent events: deltas, then sources, then ``[DONE]``."""
    completed = False
    try:
        async for delta in result.deltas:
            yield _event({"delta": delta})
        sources = [_source_info(s).model_dump() for s in result.sources]
        yield _event({"sources": sources, "context_tokens": result.context_tokens})
        yield _event("[DONE]")
        completed = True
    except DocRagError as e:
        _, body = handle_exception(e, context={"operation": "chat_stream"}, log=logger)
        yield _event(body)
    finally:
        if not completed:
            # Client went away (or the stream failed); stop upstream work.
            token.cancel("stream ended early")


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid messages"},
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        500: {"model": ErrorResponse, "description": "Upstream failure"},
    },
)
async def chat(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    """Answer the last user message from the user's uploaded documents.

    Returns a JSON answer, or a ``text/event-stream`` when ``stream`` is set.
    """
    messages = [ChatMessage(Role(m.role), clean_text(m.content)) for m in request.messages]
    token = CancellationToken()

    if request.stream:
        result = await service.answer(messages, user_id, stream=True, token=token)
        return StreamingResponse(
            _event_stream(result, token),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    answer = await service.answer(messages, user_id, token=token)
    return ChatResponse(
        message=answer.text,
        sources=[_source_info(s) for s in answer.sources],
        context_tokens=answer.context_tokens,
        model=answer.model,
    )

"""Split document text into overlapping fixed-size windows."""

import logging

from ..domain import Chunk, Document
from ..domain.exceptions import EmptyContentError, InvalidChunkParametersError

logger = logging.getLogger(__name__)

# Upper bound on window size, in characters; keeps chunks well under the
# embedding model's input limit.
MAX_CHUNK_SIZE = 8000


def _validate(content: str, chunk_size: int, overlap: int) -> None:
    if not isinstance(content, str) or not content.strip():
        raise EmptyContentError("Document content is empty")
    for name, value in (("chunk_size", chunk_size), ("overlap", overlap)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidChunkParametersError(
                f"{name} must be an integer", context={name: repr(value)}
            )
    if chunk_size <= 0 or chunk_size > MAX_CHUNK_SIZE:
        raise InvalidChunkParametersError(
            f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}",
            context={"chunk_size": chunk_size},
        )
    if overlap < 0 or overlap >= chunk_size:
        raise InvalidChunkParametersError(
            "overlap must be non-negative and smaller than chunk_size",
            context={"chunk_size": chunk_size, "overlap": overlap},
        )


def chunk_text(
    content: str,
    chunk_size: int,
    overlap: int,
    document_id: str = "",
) -> list[Chunk]:
    """Split ``content`` into windows of at most ``chunk_size`` characters.

    Each window starts ``overlap`` characters before the end of the previous
    one. Windows containing only whitespace are skipped, and the remaining
    chunks are numbered contiguously from 0.

    Example:
        >>> [(c.start, c.end) for c in chunk_text("AI and ML content..", 10, 2)]
        [(0, 10), (8, 18), (16, 19)]

    Raises:
        EmptyContentError: If ``content`` is empty or whitespace only.
        InvalidChunkParametersError: If the sizes are not integers or out of range.
    """
    _validate(content, chunk_size, overlap)

    length = len(content)
    chunks: list[Chunk] = []
    cursor = 0
    while True:
        end = min(cursor + chunk_size, length)
        window = content[cursor:end]
        if window.strip():
            chunks.append(
                Chunk(
                    document_id=document_id,
                    chunk_index=len(chunks),
                    start=cursor,
                    end=end,
                    content=window,
                )
            )
        if end >= length:
            break
        cursor = end - overlap

    logger.debug(f"Split {length} characters into {len(chunks)} chunks")
    return chunks


def chunk_document(document: Document, chunk_size: int, overlap: int) -> list[Chunk]:
    """Chunk a document's content, tagging each chunk with the document id."""
    return chunk_text(document.content, chunk_size, overlap, document_id=document.id)

"""Validation exceptions for docrag.

Validation errors are always caller-fixable and never retried.
"""

from .base import DocRagError


class ValidationError(DocRagError):
    """Input validation failed."""

    error_code = "RAG_VAL_001"
    client_safe = True


class EmptyContentError(ValidationError):
    """Document content cannot be empty or whitespace only."""

    error_code = "RAG_VAL_002"


class InvalidChunkParametersError(ValidationError):
    """Chunk size or overlap is out of range."""

    error_code = "RAG_VAL_003"


class InvalidSearchOptionsError(ValidationError):
    """Search options (user id, top-k, threshold, filters) are invalid."""

    error_code = "RAG_VAL_004"


class EmptyQueryError(ValidationError):
    """Query cannot be empty or whitespace only."""

    error_code = "RAG_VAL_005"


class QueryTooLongError(ValidationError):
    """Query exceeds maximum allowed length."""

    error_code = "RAG_VAL_006"


class UnsupportedDocumentError(ValidationError):
    """Uploaded file type, size, or content cannot be processed."""

    error_code = "RAG_VAL_007"

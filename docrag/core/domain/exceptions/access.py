"""Resource, authentication and cancellation exceptions for docrag."""

from .base import DocRagError


class NotFoundError(DocRagError):
    """Requested document or resource does not exist for this user."""

    error_code = "RAG_NF_001"
    client_safe = True


class AuthenticationError(DocRagError):
    """Missing, expired or invalid access token."""

    error_code = "RAG_AUTH_001"
    client_safe = True


class OperationCancelledError(DocRagError):
    """The caller cancelled the operation before it completed."""

    error_code = "RAG_CAN_001"

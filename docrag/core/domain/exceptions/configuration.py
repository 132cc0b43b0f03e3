"""Startup configuration failures.

``Settings.validate_for_runtime`` raises these before the API or CLI touches
OpenAI or Qdrant, so a bad deployment fails at boot rather than on the first
user request. Neither is shown to API clients.
"""

from .base import DocRagError


class ConfigurationError(DocRagError):
    """docrag cannot run with the current environment / ``.env`` settings."""

    error_code = "RAG_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """``OPENAI_API_KEY`` or ``QDRANT_URL`` is unset or blank after sanitizing."""

    error_code = "RAG_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Settings that contradict each other.

    For example a ``CHUNK_OVERLAP`` not smaller than ``CHUNK_SIZE``, a
    similarity threshold outside 0..1, or a prompt reserve that leaves no
    room for retrieved context. ``extra_context`` carries the offending values.
    """

    error_code = "RAG_CFG_003"

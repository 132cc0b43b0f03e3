"""Configuration management for docrag."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain.exceptions import InvalidConfigurationError, MissingAPIKeyError


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets copied from dashboards or mounted from secret managers may carry
    BOM characters that break HTTP headers.
    """
    if not value:
        return value
    return value.replace("\ufeff", "").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str = ""
    openai_timeout_seconds: float = 30.0

    # Qdrant
    qdrant_url: str = ""
    qdrant_api_key: str = ""
    qdrant_collection_name: str = "documents"
    qdrant_timeout_seconds: float = 30.0
    vector_size: int = 1536  # text-embedding-3-small

    # Supabase auth (token verification only)
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"

    @field_validator(
        "openai_api_key", "qdrant_api_key", "qdrant_url", "supabase_jwt_secret", mode="after"
    )
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Embeddings
    embedding_model: str = "text-embedding-3-small"
    embedding_batch_size: int = 100
    embedding_max_concurrency: int = 4
    embedding_requests_per_minute: int | None = 3000
    embedding_cache_size: int = 1024

    # Chat
    chat_model: str = "gpt-4-turbo"
    chat_temperature: float = 0.1
    chat_max_tokens: int = 1000

    # RAG settings
    chunk_size: int = 1000
    chunk_overlap: int = 200
    search_top_k: int = 5
    similarity_threshold: float = 0.7
    max_context_tokens: int = 3000
    system_prompt_reserve_tokens: int = 200
    conversation_history_limit: int = 10

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False

    def validate_for_runtime(self) -> None:
        """Fail fast on configuration the pipeline cannot run without.

        Raises:
            MissingAPIKeyError: If a required credential is not set.
            InvalidConfigurationError: If numeric settings are inconsistent.
        """
        if not self.openai_api_key:
            raise MissingAPIKeyError(
                "OPENAI_API_KEY is not set. Add it to your environment or .env file."
            )
        if not self.qdrant_url:
            raise MissingAPIKeyError("QDRANT_URL is not set. Add it to your environment or .env file.")
        if self.vector_size <= 0:
            raise InvalidConfigurationError("VECTOR_SIZE must be positive")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise InvalidConfigurationError(
                "CHUNK_OVERLAP must be non-negative and smaller than CHUNK_SIZE",
                context={"chunk_size": self.chunk_size, "chunk_overlap": self.chunk_overlap},
            )
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise InvalidConfigurationError("SIMILARITY_THRESHOLD must be between 0 and 1")
        if self.system_prompt_reserve_tokens >= self.max_context_tokens:
            raise InvalidConfigurationError(
                "SYSTEM_PROMPT_RESERVE_TOKENS must be smaller than MAX_CONTEXT_TOKENS"
            )


# Global settings instance
settings = Settings()

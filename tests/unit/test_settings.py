"""Tests for settings and logging configuration."""

import json
import logging
import sys

import pytest

from docrag.common.exception_handler import GENERIC_ERROR_MESSAGE, client_error_body
from docrag.config import Settings, get_logger, setup_logging
from docrag.config.logging import JSONExceptionFormatter
from docrag.core.domain.exceptions import InvalidConfigurationError, MissingAPIKeyError

pytestmark = pytest.mark.unit


def make_settings(**overrides):
    values = {"openai_api_key": "sk-test", "qdrant_url": "http://localhost:6333"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("CHUNK_SIZE", "SEARCH_TOP_K", "SIMILARITY_THRESHOLD", "EMBEDDING_MODEL"):
            monkeypatch.delenv(name, raising=False)
        settings = make_settings()
        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.search_top_k == 5
        assert settings.similarity_threshold == 0.7
        assert settings.max_context_tokens == 3000
        assert settings.embedding_model == "text-embedding-3-small"
        assert settings.vector_size == 1536

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("QDRANT_COLLECTION_NAME", "team_docs")
        monkeypatch.setenv("CHUNK_SIZE", "500")
        settings = make_settings()
        assert settings.qdrant_collection_name == "team_docs"
        assert settings.chunk_size == 500

    def test_secrets_are_sanitized(self):
        settings = make_settings(openai_api_key="\ufeff sk-abc \n", supabase_jwt_secret=" s3cret ")
        assert settings.openai_api_key == "sk-abc"
        assert settings.supabase_jwt_secret == "s3cret"

    def test_valid_runtime_configuration(self):
        make_settings().validate_for_runtime()

    @pytest.mark.parametrize("missing", ["openai_api_key", "qdrant_url"])
    def test_missing_credentials(self, missing):
        with pytest.raises(MissingAPIKeyError):
            make_settings(**{missing: ""}).validate_for_runtime()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chunk_size": 100, "chunk_overlap": 100},
            {"chunk_overlap": -1},
            {"similarity_threshold": 1.2},
            {"vector_size": 0},
            {"max_context_tokens": 200, "system_prompt_reserve_tokens": 200},
        ],
    )
    def test_inconsistent_values(self, overrides):
        with pytest.raises(InvalidConfigurationError):
            make_settings(**overrides).validate_for_runtime()

    def test_chunk_error_reports_values_but_stays_internal(self):
        with pytest.raises(InvalidConfigurationError) as info:
            make_settings(chunk_size=100, chunk_overlap=100).validate_for_runtime()

        assert info.value.extra_context == {"chunk_size": 100, "chunk_overlap": 100}
        assert client_error_body(info.value)["error"]["message"] == GENERIC_ERROR_MESSAGE


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_configures_package_logger(self, tmp_path):
        logger = logging.getLogger("docrag")
        saved = (logger.level, list(logger.handlers))
        try:
            log_file = tmp_path / "logs" / "docrag.log"
            configured = setup_logging("debug", log_file=log_file)
            assert configured is logger
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 2

            get_logger("tests").info("written to file")
            for handler in logger.handlers:
                handler.flush()
            assert "written to file" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.setLevel(saved[0])
            logger.handlers[:] = saved[1]

    def test_json_formatter_includes_report_id_and_exception(self):
        try:
            raise ValueError("broken")
        except ValueError:
            record = logging.getLogger("docrag.test").makeRecord(
                "docrag.test",
                logging.ERROR,
                __file__,
                10,
                "failed",
                None,
                sys.exc_info(),
                extra={"report_id": "abc123"},
            )
        entry = json.loads(JSONExceptionFormatter().format(record))
        assert entry["level"] == "ERROR"
        assert entry["message"] == "failed"
        assert entry["report_id"] == "abc123"
        assert entry["exception"]["type"] == "ValueError"

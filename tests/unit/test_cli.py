"""Tests for the typer CLI with the composition root patched out."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from docrag.adapters.inbound.cli import commands
from docrag.core.domain import (
    ChatAnswer,
    CollectionInfo,
    DocumentStatus,
    IngestionReport,
    SearchResult,
    SourceCitation,
    VectorPayload,
)
from docrag.core.domain.exceptions import NotFoundError

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch):
    monkeypatch.setattr(commands, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(commands.settings, "openai_api_key", "sk-test")
    monkeypatch.setattr(commands.settings, "qdrant_url", ":memory:")
    monkeypatch.setattr(commands.settings, "debug", False)


@pytest.fixture
def store(monkeypatch):
    store = MagicMock()
    store.close = AsyncMock()
    store.health_check = AsyncMock(return_value=True)
    store.recreate_collection = AsyncMock()
    store.collection_info = AsyncMock(return_value=CollectionInfo("documents", 12, "green"))
    store.count_by_user = AsyncMock(return_value=5)
    store.list_document_ids_by_user = AsyncMock(return_value={"doc-b", "doc-a"})
    factory = MagicMock(return_value=store)
    factory.cache_info.return_value.currsize = 1
    monkeypatch.setattr(commands.container, "get_vector_store", factory)
    return store


@pytest.fixture
def ingestion(monkeypatch):
    service = MagicMock()
    service.ingest_file = AsyncMock(
        return_value=IngestionReport("doc-1", DocumentStatus.READY, chunk_count=2, embedded_count=2)
    )
    service.delete_document = AsyncMock(return_value=3)
    monkeypatch.setattr(commands.container, "get_ingestion_service", lambda: service)
    return service


class TestCLI:
    def test_ingest(self, tmp_path, ingestion, store):
        path = tmp_path / "notes.txt"
        path.write_text("AI notes", encoding="utf-8")

        result = runner.invoke(commands.app, ["ingest", str(path), "--user", "user-1"])

        assert result.exit_code == 0, result.output
        assert "2 chunks" in result.output
        ingestion.ingest_file.assert_awaited_once()
        assert ingestion.ingest_file.await_args.args == ("user-1", "notes.txt", b"AI notes")

    def test_user_from_environment(self, tmp_path, ingestion, store):
        path = tmp_path / "notes.md"
        path.write_text("# Notes", encoding="utf-8")
        result = runner.invoke(commands.app, ["ingest", str(path)], env={"DOCRAG_USER_ID": "env-user"})
        assert result.exit_code == 0, result.output
        assert ingestion.ingest_file.await_args.args[0] == "env-user"

    def test_search_table(self, monkeypatch, store):
        service = MagicMock()
        service.search = AsyncMock(
            return_value=[
                SearchResult(
                    id="p1",
                    score=0.9,
                    payload=VectorPayload("doc-1", "user-1", 0, "AI is everywhere", "ai.txt", ""),
                )
            ]
        )
        monkeypatch.setattr(commands.container, "get_retrieval_service", lambda: service)

        result = runner.invoke(commands.app, ["search", "AI", "-u", "user-1", "-k", "3"])

        assert result.exit_code == 0, result.output
        assert "ai.txt" in result.output
        options = service.search.await_args.args[1]
        assert (options.user_id, options.top_k) == ("user-1", 3)

    def test_search_hybrid(self, monkeypatch, store):
        service = MagicMock()
        service.hybrid_search = AsyncMock(return_value=[])
        service.search = AsyncMock(return_value=[])
        monkeypatch.setattr(commands.container, "get_retrieval_service", lambda: service)

        result = runner.invoke(commands.app, ["search", "AI", "-u", "user-1", "--hybrid"])

        assert result.exit_code == 0, result.output
        assert "No results" in result.output
        service.hybrid_search.assert_awaited_once()
        service.search.assert_not_awaited()

    def test_similar(self, monkeypatch, store):
        service = MagicMock()
        service.similar_chunks = AsyncMock(
            return_value=[
                SearchResult(
                    id="p1",
                    score=0.93,
                    payload=VectorPayload("doc-2", "user-1", 4, "AI is everywhere", "copy.txt", ""),
                )
            ]
        )
        monkeypatch.setattr(commands.container, "get_retrieval_service", lambda: service)

        result = runner.invoke(commands.app, ["similar", "AI is everywhere", "-u", "user-1"])

        assert result.exit_code == 0, result.output
        assert "copy.txt" in result.output
        assert service.similar_chunks.await_args.args == ("AI is everywhere", "user-1")

    def test_related_unknown_document(self, monkeypatch, store):
        service = MagicMock()
        service.related_documents = AsyncMock(side_effect=NotFoundError("Document not found"))
        monkeypatch.setattr(commands.container, "get_retrieval_service", lambda: service)

        result = runner.invoke(commands.app, ["related", "doc-404", "-u", "user-1"])

        assert result.exit_code == 1
        assert "RAG_NF_001" in result.output

    def test_ask(self, monkeypatch, store):
        service = MagicMock()
        service.answer = AsyncMock(
            return_value=ChatAnswer(
                "It is about AI.", [SourceCitation("doc-1", "ai.txt", 0, 0.9)], 10, "gpt-4-turbo"
            )
        )
        monkeypatch.setattr(commands.container, "get_chat_service", lambda: service)

        result = runner.invoke(commands.app, ["ask", "What is it about?", "-u", "user-1"])

        assert result.exit_code == 0, result.output
        assert "It is about AI." in result.output
        assert "ai.txt" in result.output

    def test_delete_missing_document_exits_with_error(self, ingestion, store):
        ingestion.delete_document.side_effect = NotFoundError("Document not found")
        result = runner.invoke(commands.app, ["delete", "doc-404", "-u", "user-1"])
        assert result.exit_code == 1
        assert "RAG_NF_001" in result.output

    def test_stats_for_user(self, store):
        result = runner.invoke(commands.app, ["stats", "-u", "user-1"])
        assert result.exit_code == 0, result.output
        assert "12 vectors" in result.output
        assert "doc-a" in result.output
        store.close.assert_awaited()

    def test_reset_requires_confirmation(self, store):
        result = runner.invoke(commands.app, ["reset"], input="n\n")
        assert result.exit_code == 1
        store.recreate_collection.assert_not_awaited()

        result = runner.invoke(commands.app, ["reset", "--yes"])
        assert result.exit_code == 0, result.output
        store.recreate_collection.assert_awaited_once()

    def test_health_unreachable(self, store):
        store.health_check.return_value = False
        result = runner.invoke(commands.app, ["health"])
        assert result.exit_code == 1

    def test_missing_configuration(self, monkeypatch, store):
        monkeypatch.setattr(commands.settings, "openai_api_key", "")
        result = runner.invoke(commands.app, ["stats"])
        assert result.exit_code == 1
        assert "RAG_CFG" in result.output or "OPENAI_API_KEY" in result.output
        store.collection_info.assert_not_awaited()

"""FastAPI dependency injection for docrag.

Each dependency returns the singleton built by the composition root, so
tests can swap any of them through ``app.dependency_overrides``.
"""

from ....composition import container
from ....config.settings import Settings, settings
from ....core.ports.vector_store_port import VectorStorePort
from ....core.services import ChatService, IngestionService, RetrievalService


def get_settings() -> Settings:
    return settings


def get_vector_store() -> VectorStorePort:
    return container.get_vector_store()


def get_retrieval_service() -> RetrievalService:
    return container.get_retrieval_service()


def get_ingestion_service() -> IngestionService:
    return container.get_ingestion_service()


def get_chat_service() -> ChatService:
    return container.get_chat_service()

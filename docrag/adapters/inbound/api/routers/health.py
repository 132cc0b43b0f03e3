"""Health check endpoints."""

from fastapi import APIRouter, Depends, Response, status

from ..... import __version__
from .....core.ports.vector_store_port import VectorStorePort
from ..deps import get_vector_store
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check; does not touch dependencies."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        vector_store="not_checked",
    )


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(
    response: Response,
    vector_store: VectorStorePort = Depends(get_vector_store),
) -> HealthResponse:
    """Readiness check.

    Checks that the vector store is reachable; answers 503 when it is not.
    """
    if await vector_store.health_check():
        return HealthResponse(status="ready", version=__version__, vector_store="connected")

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="not_ready", version=__version__, vector_store="unreachable")

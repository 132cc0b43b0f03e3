"""FastAPI application for the docrag API."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....common.exception_handler import handle_exception, log_exception
from ....composition import container
from ....config import settings, setup_logging
from ....core.domain.exceptions import DocRagError, ValidationError
from .routers import chat, documents, health, search

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="docrag API",
    description=(
        "Retrieval-augmented chat over your own documents: upload files, "
        "search them semantically, and ask questions grounded in their content."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Local dev
        "http://localhost:5173",  # Vite dev server
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(chat.router)
app.include_router(search.router)
app.include_router(documents.router)


# =============================================================================
# Global Exception Handlers
# =============================================================================


def _request_context(request: Request) -> dict[str, str]:
    return {"path": str(request.url.path), "method": request.method}


@app.exception_handler(DocRagError)
async def docrag_error_handler(request: Request, exc: DocRagError) -> JSONResponse:
    """Handle all DocRagError exceptions with a client-safe JSON response."""
    status_code, body = handle_exception(exc, context=_request_context(request), log=logger)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with the offending fields."""
    log_exception(exc, log=logger, level=logging.WARNING, extra_context=_request_context(request))
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": ValidationError.error_code,
                "message": "Invalid request body",
                "details": jsonable_encoder(exc.errors()),
            }
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions without leaking internals."""
    status_code, body = handle_exception(exc, context=_request_context(request), log=logger)
    return JSONResponse(status_code=status_code, content=body)


# =============================================================================
# Lifecycle Events
# =============================================================================


@app.on_event("startup")
async def startup_event():
    """Validate configuration on startup."""
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    settings.validate_for_runtime()

    logger.info("docrag API starting up...")
    logger.info("API docs available at /docs")
    logger.info("Debug mode: %s", "ENABLED" if settings.debug else "DISABLED")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup resources on shutdown."""
    if container.get_vector_store.cache_info().currsize:
        await container.get_vector_store().close()
    logger.info("docrag API shutting down...")


# Export for uvicorn
__all__ = ["app"]

"""Turn exceptions into log records and HTTP error bodies.

Server-side, every failure is logged as structured JSON with its location
and cause chain. Client-side, only ``client_safe`` errors keep their
message; anything else becomes a generic message plus a ``report_id`` that
points operators at the matching log record.
"""

import json
import logging
import traceback
import uuid
from typing import Any

from ..core.domain.exceptions import (
    AuthenticationError,
    DocRagError,
    EmbeddingRateLimitError,
    LLMRateLimitError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong while processing your request. Please try again."
RATE_LIMIT_MESSAGE = "The service is busy right now. Please try again in a moment."

_STATUS_BY_TYPE: tuple[tuple[type[BaseException] | tuple[type[BaseException], ...], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    ((LLMRateLimitError, EmbeddingRateLimitError), 429),
)


def _plain_location(exc: BaseException) -> dict[str, Any]:
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    if not frames:
        return {"class": "<unknown>", "method": "<unknown>", "file": "<unknown>", "line": 0}
    last = frames[-1]
    return {
        "class": "<unknown>",
        "method": last.name,
        "file": last.filename.replace("\\", "/").rsplit("/", 1)[-1],
        "line": last.lineno,
    }


def format_exception_json(
    exc: BaseException,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Structured dict for any exception, docrag or not.

    Non-docrag exceptions get the code ``PYTHON_ERR`` and the location of
    the innermost traceback frame.
    """
    if isinstance(exc, DocRagError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result.setdefault("context", {}).update(extra_context)
        return result

    result: dict[str, Any] = {
        "error": {"type": type(exc).__name__, "code": "PYTHON_ERR", "message": str(exc)},
        "location": _plain_location(exc),
    }
    if extra_context:
        result["context"] = extra_context
    if include_trace:
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        result["stack_trace"] = [line.strip() for line in lines if line.strip()]
    return result


def log_exception(
    exc: BaseException,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
    report_id: str | None = None,
) -> None:
    """Write ``exc`` to the log as indented JSON, tagged with ``report_id``."""
    payload = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    extra = None
    if report_id:
        payload["report_id"] = report_id
        extra = {"report_id": report_id}
    (log or logger).log(level, json.dumps(payload, indent=2, default=str), extra=extra)


def get_error_code(exc: BaseException) -> str:
    """``error_code`` of a docrag error, ``PYTHON_ERR`` for anything else."""
    return exc.error_code if isinstance(exc, DocRagError) else "PYTHON_ERR"


def get_http_status_code(exc: BaseException) -> int:
    """HTTP status for ``exc``; unmapped exceptions are 500."""
    for types, status in _STATUS_BY_TYPE:
        if isinstance(exc, types):
            return status
    return 500


def client_error_body(exc: BaseException, report_id: str | None = None) -> dict[str, Any]:
    """Build the error body sent to API clients.

    Client-safe errors carry their own message. Anything else gets a generic
    message so internal details never leak, plus the report id.
    """
    error: dict[str, Any] = {"code": get_error_code(exc)}
    if isinstance(exc, DocRagError) and exc.client_safe:
        error["message"] = exc.message
    else:
        status = get_http_status_code(exc)
        error["message"] = RATE_LIMIT_MESSAGE if status == 429 else GENERIC_ERROR_MESSAGE
        if report_id:
            error["report_id"] = report_id
    return {"error": error}


def handle_exception(
    exc: BaseException,
    context: dict[str, Any] | None = None,
    log: logging.Logger | None = None,
) -> tuple[int, dict[str, Any]]:
    """Log an exception and produce the HTTP status and client body for it.

    Client-safe errors are logged at WARNING without a report id. Other
    errors are logged at ERROR with full details under a fresh report id.

    Returns:
        Tuple of (status_code, client-safe body).
    """
    status = get_http_status_code(exc)
    if isinstance(exc, DocRagError) and exc.client_safe:
        log_exception(exc, log=log, level=logging.WARNING, extra_context=context)
        return status, client_error_body(exc)

    report_id = uuid.uuid4().hex
    log_exception(exc, log=log, extra_context=context, report_id=report_id)
    return status, client_error_body(exc, report_id)

"""Root of the docrag exception hierarchy.

Every docrag error carries:
- a stable ``error_code`` used in logs and API bodies
- the place it was raised from (class, function, file, line)
- the underlying ``cause``, if it wraps a library exception
- free-form ``extra_context`` for structured logs

``client_safe`` marks errors whose message may be shown to API clients as-is.
"""

import inspect
import traceback
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from types import FrameType
from typing import Any


@dataclass
class ExceptionContext:
    """Where an exception was raised."""

    class_name: str
    method_name: str
    file_name: str
    line_number: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def from_frame(cls, frame: FrameType | None) -> "ExceptionContext":
        if frame is None:
            return cls("<unknown>", "<unknown>", "<unknown>", 0)
        owner = frame.f_locals.get("self")
        return cls(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=frame.f_code.co_name,
            file_name=frame.f_code.co_filename.replace("\\", "/").rsplit("/", 1)[-1],
            line_number=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "class": data["class_name"],
            "method": data["method_name"],
            "file": data["file_name"],
            "line": data["line_number"],
            "timestamp": data["timestamp"],
        }


class DocRagError(Exception):
    """Base exception for all docrag errors.

    Adapters wrap library failures in a subclass and chain the original:

        try:
            await client.upsert(...)
        except httpx.ConnectError as e:
            raise StoreConnectionRefusedError(
                "Cannot connect to Qdrant for upsert",
                cause=e,
                context={"operation": "upsert"},
            ) from e
    """

    error_code: str = "RAG_ERR_001"
    client_safe: bool = False

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = context or {}
        self.location = ExceptionContext.from_frame(self._raising_frame())
        self.stack_trace = traceback.format_exc() if cause else None

    def _raising_frame(self) -> FrameType | None:
        frame = inspect.currentframe()
        # Walk past this helper and every __init__ in the subclass chain
        while frame is not None and frame.f_locals.get("self") is self:
            frame = frame.f_back
        return frame

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Structured form of the error for server-side logs.

        Args:
            include_trace: Include the formatted traceback of ``cause``.
        """
        result: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            result["context"] = self.extra_context
        if self.cause is not None:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        if include_trace and self.stack_trace:
            result["stack_trace"] = [line for line in self.stack_trace.splitlines() if line.strip()]
        return result

"""Logging setup for the docrag API and CLI.

All docrag modules log under the ``docrag`` logger tree. Records logged by
the exception handler carry a ``report_id`` that clients receive in their
error body, so operators can find the full trace from a user's report.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT_LOGGER = "docrag"
TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s | %(message)s"

# Extra record attributes copied into JSON output when present
STRUCTURED_FIELDS = ("report_id", "user_id", "document_id", "operation")

for _noisy in ("httpx", "httpcore", "openai"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)


class JSONExceptionFormatter(logging.Formatter):
    """One JSON object per line, with exception details when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.filename}:{record.funcName}:{record.lineno}",
        }
        entry.update(
            {name: getattr(record, name) for name in STRUCTURED_FIELDS if getattr(record, name, None)}
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JSONExceptionFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """(Re)configure the ``docrag`` logger.

    Safe to call more than once: previous handlers are replaced.

    Args:
        level: Level name, case-insensitive. Unknown names fall back to INFO.
        log_file: Also write to this file, creating parent directories.
        json_format: Emit JSON lines instead of the human-readable format.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    root.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = _build_formatter(json_format)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the ``docrag`` tree, e.g. ``get_logger("api")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)

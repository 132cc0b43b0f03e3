"""Command-line adapter (typer)."""

from .commands import app

__all__ = ["app"]

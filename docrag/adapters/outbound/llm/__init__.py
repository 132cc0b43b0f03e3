"""Chat-completion adapters."""

from .openai_chat import OpenAIChatClient

__all__ = ["OpenAIChatClient"]

"""Chat Completion Port Interface."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from ...common.cancellation import CancellationToken
from ..domain import ChatMessage


class ChatPort(ABC):
    """Abstract interface for chat-completion providers."""

    model: str

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        token: CancellationToken | None = None,
    ) -> str:
        """Generate a full response for ``messages``."""
        ...

    @abstractmethod
    def stream(
        self,
        messages: list[ChatMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Generate a response as an async iterator of text deltas."""
        ...

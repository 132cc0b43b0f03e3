"""OpenAI chat-completion client."""

import logging
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ....common.cancellation import CancellationToken, guarded_call
from ....core.domain import ChatMessage
from ....core.domain.exceptions import DocRagError, LLMGenerationError
from ....core.ports.chat_port import ChatPort
from ..openai_errors import classify_chat_error

logger = logging.getLogger(__name__)

# Constants
DEFAULT_MODEL = "gpt-4-turbo"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TIMEOUT_SECONDS = 30.0


async def _next_chunk(stream: Any) -> Any | None:
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None


class OpenAIChatClient(ChatPort):
    """Chat client backed by ``AsyncOpenAI.chat.completions``.

    Requests are not retried; failures surface as typed LLM errors.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _request_args(
        self,
        messages: list[ChatMessage],
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }

    def _classify(self, exc: Exception) -> DocRagError:
        error = classify_chat_error(exc, self.model)
        logger.error(f"Chat completion failed [{error.error_code}]: {exc}")
        return error

    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        token: CancellationToken | None = None,
    ) -> str:
        """Generate a full response.

        Raises:
            LLMError: If the provider fails or returns no content.
        """
        try:
            response = await guarded_call(
                self.client.chat.completions.create(
                    **self._request_args(messages, temperature, max_tokens)
                ),
                timeout=self.timeout,
                token=token,
            )
        except DocRagError:
            raise
        except Exception as e:
            raise self._classify(e) from e

        if not response.choices or response.choices[0].message.content is None:
            raise LLMGenerationError("Chat provider returned an empty response")
        return response.choices[0].message.content

    async def stream(
        self,
        messages: list[ChatMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Stream the response as text deltas.

        Each chunk read is subject to the timeout and the cancellation token,
        so a disconnected client stops the upstream stream.
        """
        try:
            stream = await guarded_call(
                self.client.chat.completions.create(
                    **self._request_args(messages, temperature, max_tokens), stream=True
                ),
                timeout=self.timeout,
                token=token,
            )
        except DocRagError:
            raise
        except Exception as e:
            raise self._classify(e) from e

        try:
            while True:
                try:
                    chunk = await guarded_call(_next_chunk(stream), timeout=self.timeout, token=token)
                except DocRagError:
                    raise
                except Exception as e:
                    raise self._classify(e) from e
                if chunk is None:
                    break
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()

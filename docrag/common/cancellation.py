"""Cancellation tokens and the timeout policy for remote calls.

Every call to Qdrant or OpenAI goes through :func:`guarded_call`, which
races the call against the configured timeout and the caller's
:class:`CancellationToken`. Adapters classify the resulting
``TimeoutError`` into their own typed errors.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from ..core.domain.exceptions import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation signal with an optional deadline.

    A token is created per request (or per CLI command) and threaded through
    every remote call made on its behalf. Cancelling it aborts whichever call
    is in flight.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = asyncio.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        """Signal cancellation to every call waiting on this token."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError(
                "Operation was cancelled", context={"reason": self.reason}
            )

    async def wait(self) -> None:
        await self._event.wait()


def effective_timeout(timeout: float | None, token: CancellationToken | None) -> float | None:
    """The tighter of a per-call timeout and the token's remaining time."""
    remaining = token.remaining() if token is not None else None
    if timeout is None:
        return remaining
    if remaining is None:
        return timeout
    return min(timeout, remaining)


async def guarded_call(
    awaitable: Awaitable[T],
    *,
    timeout: float | None = None,
    token: CancellationToken | None = None,
) -> T:
    """Await ``awaitable`` under a timeout and a cancellation token.

    Args:
        awaitable: The remote call to run.
        timeout: Per-call timeout in seconds (None for no limit).
        token: Optional caller cancellation token.

    Returns:
        The result of the call.

    Raises:
        OperationCancelledError: If the token is cancelled before or during the call.
        TimeoutError: If the call does not finish in time.
    """
    if token is not None and token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()

    limit = effective_timeout(timeout, token)
    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait()) if token is not None else None
    futures = {task} if waiter is None else {task, waiter}

    try:
        done, _ = await asyncio.wait(futures, timeout=limit, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for future in futures:
            if not future.done():
                future.cancel()

    if task in done:
        return task.result()

    # The call was abandoned; let it observe its cancellation before we move on.
    await asyncio.gather(task, return_exceptions=True)

    if waiter is not None and waiter in done:
        token.raise_if_cancelled()
    raise TimeoutError(f"Operation timed out after {limit:.1f}s")

"""Heuristic token counting and budget fitting.

Counts are estimates (about 3.5 characters per token) rather than exact
tokenizer output. They only need to be conservative enough to keep prompts
inside the model's context window.
"""

import math
from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")

CHARS_PER_TOKEN = 3.5

# A word-boundary cut is only taken if it keeps at least this share of the prefix.
WORD_BOUNDARY_RATIO = 0.8


def count_tokens(text: str) -> int:
    """Estimate the token count of ``text``. Empty text counts as 0."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def fit_to_budget(text: str, max_tokens: int, ellipsis: str = "...") -> str:
    """Return a prefix of ``text`` whose estimated token count fits ``max_tokens``.

    Text already within budget is returned unchanged. Otherwise the prefix is
    cut at the last space when that space falls in the final 20% of the
    prefix, and ``ellipsis`` is appended only if the result still fits.

    Args:
        text: Text to fit.
        max_tokens: Token budget. Negative budgets are treated as 0.
        ellipsis: Marker appended to truncated text.

    Returns:
        Text with ``count_tokens(result) <= max(max_tokens, 0)``.
    """
    max_tokens = max(max_tokens, 0)
    if count_tokens(text) <= max_tokens:
        return text
    if max_tokens == 0:
        return ""

    max_chars = math.floor(max_tokens * CHARS_PER_TOKEN)
    truncated = text[:max_chars]
    last_space = truncated.rfind(" ")
    if last_space > max_chars * WORD_BOUNDARY_RATIO:
        truncated = truncated[:last_space]

    with_ellipsis = truncated + ellipsis
    if count_tokens(with_ellipsis) <= max_tokens:
        return with_ellipsis
    return truncated


def fit_items_to_budget(
    items: Iterable[T],
    max_tokens: int,
    key: Callable[[T], str],
) -> list[T]:
    """Take items in the given order until the next one would exceed the budget.

    Args:
        items: Items in priority order.
        max_tokens: Total token budget.
        key: Returns the text of an item to count.

    Returns:
        The longest prefix of ``items`` whose summed token count fits.
    """
    fitted: list[T] = []
    used = 0
    for item in items:
        cost = count_tokens(key(item))
        if used + cost > max_tokens:
            break
        fitted.append(item)
        used += cost
    return fitted

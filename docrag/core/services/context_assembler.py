"""Assemble retrieved chunks into prompt context under a token budget."""

import logging

from ..domain import AssembledContext, SearchResult
from .token_counter import count_tokens

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "\n\n---\n\n"


class ContextAssembler:
    """Greedily packs the best-ranked results into a bounded context string.

    Results are ordered by ranking score (relevance when reranked, otherwise
    similarity), highest first, with ties kept in input order. Blocks are
    added while the joined text stays within ``max_tokens - reserve_tokens``.
    The first block that would overflow ends assembly, and it and every
    lower-ranked result are dropped.
    """

    def __init__(
        self,
        max_tokens: int,
        reserve_tokens: int = 200,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        self.max_tokens = max_tokens
        self.reserve_tokens = reserve_tokens
        self.separator = separator

    @property
    def budget(self) -> int:
        return max(self.max_tokens - self.reserve_tokens, 0)

    @staticmethod
    def format_block(result: SearchResult) -> str:
        return f"[Source: {result.payload.filename}]\n{result.payload.content}"

    def assemble(self, results: list[SearchResult]) -> AssembledContext:
        ordered = sorted(results, key=lambda r: r.ranking_score, reverse=True)

        blocks: list[str] = []
        included: list[SearchResult] = []
        for result in ordered:
            candidate = self.separator.join([*blocks, self.format_block(result)])
            if count_tokens(candidate) > self.budget:
                break
            blocks.append(self.format_block(result))
            included.append(result)

        text = self.separator.join(blocks)
        dropped = len(ordered) - len(included)
        if dropped:
            logger.debug(f"Context budget {self.budget} reached; dropped {dropped} results")

        return AssembledContext(
            text=text,
            sources=included,
            token_count=count_tokens(text),
            dropped=dropped,
        )

"""Document-grounded chat: retrieve, assemble context, and complete."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from ...common.cancellation import CancellationToken
from ..domain import (
    AssembledContext,
    ChatAnswer,
    ChatMessage,
    Role,
    SearchOptions,
    SourceCitation,
)
from ..domain.exceptions import ValidationError
from ..ports.chat_port import ChatPort
from .context_assembler import ContextAssembler
from .prompts import build_system_prompt
from .retrieval_service import RetrievalService
from .token_counter import count_tokens, fit_items_to_budget

logger = logging.getLogger(__name__)


@dataclass
class ChatStream:
    """A streamed answer: text deltas plus the sources behind them."""

    deltas: AsyncIterator[str]
    sources: list[SourceCitation]
    context_tokens: int
    model: str


class ChatService:
    """Answers user questions from their own uploaded documents."""

    def __init__(
        self,
        chat: ChatPort,
        retriever: RetrievalService,
        assembler: ContextAssembler,
        top_k: int = 5,
        threshold: float = 0.7,
        history_limit: int = 10,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize the chat service.

        Args:
            chat: Chat-completion provider.
            retriever: Retriever for the user's documents.
            assembler: Packs retrieved chunks into the prompt budget.
            top_k: Number of chunks to retrieve per question.
            threshold: Minimum similarity for retrieved chunks.
            history_limit: Maximum prior messages sent with the question.
            temperature: Sampling temperature override for the provider.
            max_tokens: Response length override for the provider.
        """
        self.chat = chat
        self.retriever = retriever
        self.assembler = assembler
        self.top_k = top_k
        self.threshold = threshold
        self.history_limit = history_limit
        self.temperature = temperature
        self.max_tokens = max_tokens

    @staticmethod
    def validate_messages(messages: list[ChatMessage]) -> ChatMessage:
        """Check the conversation and return the final user message."""
        if not messages:
            raise ValidationError("Messages array cannot be empty")
        last = messages[-1]
        if last.role != Role.USER:
            raise ValidationError("Last message must be from user")
        if not last.content or not last.content.strip():
            raise ValidationError("Message content cannot be empty")
        return last

    def select_history(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Most recent prior turns, limited by count and by token budget."""
        prior = [m for m in messages[:-1] if m.role != Role.SYSTEM]
        recent = prior[-self.history_limit :] if self.history_limit > 0 else []
        newest_first = fit_items_to_budget(
            reversed(recent), self.assembler.max_tokens, key=lambda m: m.content
        )
        return list(reversed(newest_first))

    async def _prepare(
        self,
        messages: list[ChatMessage],
        user_id: str,
        token: CancellationToken | None,
    ) -> tuple[list[ChatMessage], AssembledContext]:
        question = self.validate_messages(messages)
        options = SearchOptions(user_id=user_id, top_k=self.top_k, threshold=self.threshold)
        results = await self.retriever.search(question.content, options, token=token)
        context = self.assembler.assemble(results)

        system_prompt = build_system_prompt(context.text)
        history = self.select_history(messages)
        prompt = [
            ChatMessage(Role.SYSTEM, system_prompt),
            *history,
            ChatMessage(Role.USER, question.content),
        ]

        logger.info(
            f"Token usage - System: {count_tokens(system_prompt)}, "
            f"History: {sum(count_tokens(m.content) for m in history)}, "
            f"User: {count_tokens(question.content)}, sources: {len(context.sources)}"
        )
        return prompt, context

    @staticmethod
    def _citations(context: AssembledContext) -> list[SourceCitation]:
        return [
            SourceCitation(
                document_id=r.payload.document_id,
                filename=r.payload.filename,
                chunk_index=r.payload.chunk_index,
                score=r.score,
            )
            for r in context.sources
        ]

    async def answer(
        self,
        messages: list[ChatMessage],
        user_id: str,
        stream: bool = False,
        token: CancellationToken | None = None,
    ) -> ChatAnswer | ChatStream:
        """Answer the last user message from the user's documents.

        Args:
            messages: Conversation so far; the last message is the question.
            user_id: Requesting user; retrieval is scoped to their documents.
            stream: Return a ChatStream of deltas instead of a full answer.
            token: Optional cancellation token.

        Returns:
            ChatAnswer, or ChatStream when ``stream`` is True.

        Raises:
            ValidationError: If the conversation is empty or malformed.
        """
        prompt, context = await self._prepare(messages, user_id, token)
        sources = self._citations(context)

        if stream:
            deltas = self.chat.stream(
                prompt, temperature=self.temperature, max_tokens=self.max_tokens, token=token
            )
            return ChatStream(
                deltas=deltas,
                sources=sources,
                context_tokens=context.token_count,
                model=self.chat.model,
            )

        text = await self.chat.complete(
            prompt, temperature=self.temperature, max_tokens=self.max_tokens, token=token
        )
        return ChatAnswer(
            text=text,
            sources=sources,
            context_tokens=context.token_count,
            model=self.chat.model,
        )

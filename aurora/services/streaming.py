"""Streaming chat: provider token stream to HTTP byte stream."""

from collections.abc import AsyncIterator

from aurora.config import ModelCandidate
from aurora.exceptions import InvalidRequestError, ProviderExhaustedError, StreamInterruptedError
from aurora.models.llm import ChatMessage
from aurora.services.context import ContextOptimizer
from aurora.services.llm import ModelProviderClient
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

CHAT_SYSTEM_PROMPT = """You are Aurora, a friendly assistant that helps students with their studies.

Style:
- Get straight to the point and answer clearly
- Be encouraging without being condescending
- Keep simple answers short and structure complex ones

Formatting:
- Math in LaTeX: inline \\(x^2 + 1\\), block $$\\int_0^1 x\\,dx$$
- Diagrams in Mermaid code blocks when they genuinely help
- Images and videos as markdown links"""


async def stream_text(chunks: AsyncIterator[str], candidate: ModelCandidate | None = None) -> AsyncIterator[bytes]:
    """Encode each text increment as it arrives.

    Raises:
        StreamInterruptedError: The upstream stream failed mid-flight
    """
    try:
        async for chunk in chunks:
            if chunk:
                yield chunk.encode("utf-8")
    except Exception as e:
        logger.error(f"Stream from {candidate} interrupted: {e}")
        raise StreamInterruptedError(
            str(e),
            provider=candidate.provider if candidate else None,
            model=candidate.model if candidate else None,
        ) from e


class StreamingTransport:
    """Opens a provider stream for a conversation and exposes it as bytes."""

    def __init__(
        self,
        llm: ModelProviderClient,
        optimizer: ContextOptimizer,
        system_prompt: str = CHAT_SYSTEM_PROMPT,
    ):
        self.llm = llm
        self.optimizer = optimizer
        self.system_prompt = system_prompt

    def prepare_messages(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Trim the history and add the assistant prompt unless one is supplied."""
        optimized = self.optimizer.optimize(messages)
        if optimized and optimized[0].role == "system":
            return optimized
        return [ChatMessage(role="system", content=self.system_prompt), *optimized]

    async def open(self, messages: list[ChatMessage]) -> tuple[ModelCandidate | None, AsyncIterator[bytes]]:
        """Open a stream for a conversation.

        Returns:
            Candidate serving the stream and the encoded chunks

        Raises:
            InvalidRequestError: No messages
            ProviderExhaustedError: No candidate could open a stream
        """
        if not messages:
            raise InvalidRequestError("Messages are required")

        result = await self.llm.stream(self.prepare_messages(messages))
        if not result.success or result.chunks is None:
            raise ProviderExhaustedError(result.error or "Failed to open stream")

        return result.provider_used, stream_text(result.chunks, result.provider_used)

"""Model provider fallback chain.

Candidates are tried strictly in order. Every attempt has the same shape
(``Attempt``), so the chain is a plain loop over candidates rather than nested
error handling.
"""

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from aurora.config import CHAT_CANDIDATES, CHAT_PARAMS, CompletionParams, ModelCandidate
from aurora.models.llm import ChatMessage, Completion, CompletionResult, StreamResult, has_images
from aurora.models.toolkits import ToolDescriptor
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


class ProviderBackend(Protocol):
    """One OpenAI-compatible provider."""

    async def create_completion(
        self,
        model: str,
        messages: list[ChatMessage],
        params: CompletionParams,
        tools: list[ToolDescriptor] | None = None,
    ) -> Completion: ...

    async def stream_completion(
        self, model: str, messages: list[ChatMessage], params: CompletionParams
    ) -> AsyncIterator[str]: ...


@dataclass
class Attempt:
    """Outcome of trying a single candidate."""

    candidate: ModelCandidate
    completion: Completion | None = None
    chunks: AsyncIterator[str] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ModelProviderClient:
    """Uniform completion API over an ordered list of (provider, model) candidates."""

    def __init__(self, backends: dict[str, ProviderBackend], candidates: Sequence[ModelCandidate] = CHAT_CANDIDATES):
        """Initialize the client.

        Args:
            backends: Provider name to backend, only for providers with credentials
            candidates: Default fallback chain
        """
        self.backends = backends
        self.candidates = self._usable(candidates)
        if not self.candidates:
            logger.warning("No model candidates have a configured provider")

    def _usable(self, candidates: Sequence[ModelCandidate]) -> list[ModelCandidate]:
        usable = []
        for candidate in candidates:
            if candidate.provider in self.backends:
                usable.append(candidate)
            else:
                logger.debug(f"Skipping candidate {candidate}: provider not configured")
        return usable

    def select_candidates(
        self, messages: list[ChatMessage], candidates: Sequence[ModelCandidate] | None = None
    ) -> list[ModelCandidate]:
        """Candidates to try for this message list, in order.

        Image content restricts the chain to vision-capable models; otherwise the
        vision-only entries are left out.
        """
        pool = self.candidates if candidates is None else self._usable(candidates)
        wants_vision = has_images(messages)
        return [candidate for candidate in pool if candidate.vision == wants_vision]

    async def _attempt_completion(
        self,
        candidate: ModelCandidate,
        messages: list[ChatMessage],
        tools: list[ToolDescriptor] | None,
        params: CompletionParams,
    ) -> Attempt:
        backend = self.backends[candidate.provider]
        try:
            completion = await backend.create_completion(candidate.model, messages, params, tools)
        except Exception as e:
            logger.warning(f"Completion failed on {candidate}: {e}")
            return Attempt(candidate=candidate, error=f"{candidate}: {e}")
        return Attempt(candidate=candidate, completion=completion)

    async def _attempt_stream(
        self, candidate: ModelCandidate, messages: list[ChatMessage], params: CompletionParams
    ) -> Attempt:
        backend = self.backends[candidate.provider]
        try:
            chunks = await backend.stream_completion(candidate.model, messages, params)
        except Exception as e:
            logger.warning(f"Stream failed to open on {candidate}: {e}")
            return Attempt(candidate=candidate, error=f"{candidate}: {e}")
        return Attempt(candidate=candidate, chunks=chunks)

    async def complete(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDescriptor] | None = None,
        *,
        candidates: Sequence[ModelCandidate] | None = None,
        params: CompletionParams = CHAT_PARAMS,
    ) -> CompletionResult:
        """Request a completion, falling through candidates until one succeeds.

        Args:
            messages: Non-empty conversation
            tools: Tools offered to the model
            candidates: Override of the default chain (title generation)
            params: Sampling parameters

        Returns:
            Result naming the candidate that answered, or the last error
        """
        pool = self.select_candidates(messages, candidates)
        if not pool:
            return CompletionResult(success=False, error="No model candidates available")

        last_attempt: Attempt | None = None
        for candidate in pool:
            attempt = await self._attempt_completion(candidate, messages, tools, params)
            if attempt.ok:
                logger.info(f"Completion served by {candidate}")
                return CompletionResult(success=True, completion=attempt.completion, provider_used=candidate)
            last_attempt = attempt

        logger.error(f"All {len(pool)} candidates failed")
        return CompletionResult(success=False, error=last_attempt.error if last_attempt else None)

    async def stream(
        self,
        messages: list[ChatMessage],
        *,
        candidates: Sequence[ModelCandidate] | None = None,
        params: CompletionParams = CHAT_PARAMS,
    ) -> StreamResult:
        """Open a token stream, falling through candidates until one opens."""
        pool = self.select_candidates(messages, candidates)
        if not pool:
            return StreamResult(success=False, error="No model candidates available")

        last_attempt: Attempt | None = None
        for candidate in pool:
            attempt = await self._attempt_stream(candidate, messages, params)
            if attempt.ok:
                logger.info(f"Stream served by {candidate}")
                return StreamResult(success=True, chunks=attempt.chunks, provider_used=candidate)
            last_attempt = attempt

        logger.error(f"All {len(pool)} candidates failed to open a stream")
        return StreamResult(success=False, error=last_attempt.error if last_attempt else None)

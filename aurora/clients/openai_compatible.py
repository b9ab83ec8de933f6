"""OpenAI-compatible chat completion client with rate limiting."""

from collections.abc import AsyncIterator
from typing import Any

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionChunk

from aurora.config import CompletionParams, ProviderConfig
from aurora.exceptions import ProviderError
from aurora.models.llm import ChatMessage, Completion, FunctionCall, ToolCall
from aurora.models.toolkits import ToolDescriptor
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


class ProviderRateLimiter:
    """Moving-window request limiter, one window per provider."""

    def __init__(self, requests_per_minute: int = 30):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.request_limit = parse(f"{requests_per_minute}/minute")

    def acquire(self, identifier: str) -> bool:
        """Record one request. Returns False if the window is full."""
        if self.limiter.hit(self.request_limit, identifier):
            return True
        logger.warning(f"Request rate limit reached for {identifier}")
        return False


class OpenAICompatibleClient:
    """Low-level client for one OpenAI-compatible provider (Groq, OpenRouter)."""

    def __init__(self, config: ProviderConfig, api_key: str, client: AsyncOpenAI | None = None):
        """Initialize the provider client.

        Args:
            config: Provider connection settings
            api_key: Provider API key
            client: Preconfigured SDK client (mainly for tests)
        """
        self.config = config
        self.name = config.name
        # Retries are the fallback chain's job
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )
        self.rate_limiter = ProviderRateLimiter(config.requests_per_minute)

    def _build_request(
        self,
        model: str,
        messages: list[ChatMessage],
        params: CompletionParams,
        tools: list[ToolDescriptor] | None = None,
    ) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "model": model,
            "messages": [message.to_provider_dict() for message in messages],
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
            "top_p": params.top_p,
        }
        if tools:
            request_params["tools"] = [tool.to_openai_tool() for tool in tools]
            request_params["tool_choice"] = "auto"
        return request_params

    def _check_rate_limit(self, model: str) -> None:
        if not self.rate_limiter.acquire(self.name):
            raise ProviderError(f"{self.name} request rate limit reached", provider=self.name, model=model)

    async def create_completion(
        self,
        model: str,
        messages: list[ChatMessage],
        params: CompletionParams,
        tools: list[ToolDescriptor] | None = None,
    ) -> Completion:
        """Request one non-streaming completion.

        Raises:
            ProviderError: Rate limited locally or the response has no choices
            openai.APIError: Transport or HTTP failure
        """
        self._check_rate_limit(model)
        request_params = self._build_request(model, messages, params, tools)

        logger.debug(
            f"Calling {self.name} model {model} with {len(messages)} messages, {len(tools) if tools else 0} tools"
        )
        response: ChatCompletion = await self.client.chat.completions.create(**request_params)
        return self._convert_completion(response, model)

    async def stream_completion(
        self,
        model: str,
        messages: list[ChatMessage],
        params: CompletionParams,
    ) -> AsyncIterator[str]:
        """Open a streaming completion.

        The request itself is awaited here so that HTTP failures surface before
        any chunk is handed to the caller.
        """
        self._check_rate_limit(model)
        request_params = self._build_request(model, messages, params)
        logger.debug(f"Opening stream on {self.name} model {model}")
        stream = await self.client.chat.completions.create(**request_params, stream=True)
        return self._iter_deltas(stream)

    async def _iter_deltas(self, stream: AsyncIterator[ChatCompletionChunk]) -> AsyncIterator[str]:
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta and delta.content:
                yield delta.content

    def _convert_completion(self, response: ChatCompletion, model: str) -> Completion:
        if not response.choices:
            raise ProviderError("Response has no choices", provider=self.name, model=model)

        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(
                id=tool_call.id,
                function=FunctionCall(name=tool_call.function.name, arguments=tool_call.function.arguments or "{}"),
            )
            for tool_call in message.tool_calls or []
            if tool_call.type == "function"
        ]

        logger.debug(f"Response from {self.name}: finish reason {choice.finish_reason}, {len(tool_calls)} tool calls")

        return Completion(
            content=message.content,
            tool_calls=tool_calls,
            model=response.model or model,
            provider=self.name,
            finish_reason=choice.finish_reason,
        )

    async def close(self) -> None:
        await self.client.close()

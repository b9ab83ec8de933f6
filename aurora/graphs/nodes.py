"""Node implementations for the chat turn graph."""

from typing import Any

from aurora.graphs.state import TurnState
from aurora.models.llm import ChatMessage
from aurora.services.llm import ModelProviderClient
from aurora.services.toolkits import ToolCatalogResolver
from aurora.tools.executor import ToolExecutor
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

ASSISTANT_PROMPT = "You are a helpful AI assistant."


def build_tools_prompt(tools_description: str) -> str:
    """System prompt listing the tools offered this turn."""
    return f"{ASSISTANT_PROMPT}\n\nYou can use the following tools when they help answer the user:\n{tools_description}"


class ChatTurnNodes:
    """Graph nodes bound to the services they need."""

    def __init__(self, llm: ModelProviderClient, resolver: ToolCatalogResolver, executor: ToolExecutor):
        self.llm = llm
        self.resolver = resolver
        self.executor = executor

    async def resolve_toolkits(self, state: TurnState) -> dict[str, Any]:
        """Pick toolkits, fetch their tools and add the tools prompt.

        A failure to fetch tools is not fatal: the turn continues without tools.
        """
        if state.explicit_toolkits:
            toolkits = list(state.explicit_toolkits)
        else:
            toolkits = await self.resolver.resolve_available_toolkits(state.requester_id)

        tools = []
        if toolkits:
            try:
                tools = await self.resolver.get_tools(toolkits)
            except Exception as e:
                logger.warning(f"Could not load tools for {toolkits}, continuing without tools: {e}")

        messages = state.messages
        if tools and messages[0].role != "system":
            prompt = build_tools_prompt(self.resolver.describe_tools(tools))
            messages = [ChatMessage(role="system", content=prompt), *messages]

        return {"available_toolkits": toolkits, "tools": tools, "messages": messages}

    async def first_completion(self, state: TurnState) -> dict[str, Any]:
        """Ask the model for an answer or for tool calls."""
        result = await self.llm.complete(state.messages, state.tools or None)
        provider_calls = state.provider_calls + 1

        if not result.success or result.completion is None:
            return {"error": result.error or "Failed to generate response", "provider_calls": provider_calls}

        completion = result.completion
        if completion.tool_calls:
            logger.info(f"Model requested {len(completion.tool_calls)} tool calls")

        return {
            "completion": completion,
            "model": completion.model,
            "tool_calls": completion.tool_calls,
            "provider_calls": provider_calls,
        }

    async def execute_tools(self, state: TurnState) -> dict[str, Any]:
        """Run all requested tools and fold the results into the conversation."""
        known_tools = {tool.name for tool in state.tools}
        results = await self.executor.execute_all(state.tool_calls, state.requester_id, known_tools)

        assistant_message = ChatMessage(
            role="assistant",
            content=state.completion.text if state.completion else "",
            tool_calls=state.tool_calls,
        )
        messages = [*state.messages, assistant_message, *(result.to_message() for result in results)]
        return {"messages": messages, "tool_results": results}

    async def second_completion(self, state: TurnState) -> dict[str, Any]:
        """Ask the model to answer using the tool results."""
        result = await self.llm.complete(state.messages, state.tools or None)
        provider_calls = state.provider_calls + 1

        if not result.success or result.completion is None:
            return {"error": result.error or "Failed to generate final response", "provider_calls": provider_calls}

        completion = result.completion
        if completion.tool_calls:
            logger.warning(f"Ignoring {len(completion.tool_calls)} tool calls requested in the final pass")

        return {"completion": completion, "model": completion.model, "provider_calls": provider_calls}

    def respond(self, state: TurnState) -> dict[str, Any]:
        """Final answer text; a missing content is an empty answer."""
        return {"content": state.completion.text if state.completion else ""}

"""Tool execution against the external tool backend.

Failures never escape this module: every call yields a ToolResult whose
content is JSON, ``{"error": ...}`` when the call could not be completed.
"""

import asyncio
import json
from collections.abc import Collection, Sequence
from typing import Any

from aurora.clients.composio import ToolBackend
from aurora.exceptions import ToolParseError
from aurora.models.llm import ToolCall, ToolErrorKind, ToolFailure, ToolResult, ToolSuccess
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

INVALID_ARGUMENTS = "invalid arguments"


def parse_arguments(tool_name: str, arguments_json: str) -> dict[str, Any]:
    """Decode tool arguments, which must be a JSON object.

    Raises:
        ToolParseError: Not valid JSON, or not an object
    """
    try:
        arguments = json.loads(arguments_json or "{}")
    except ValueError as e:
        raise ToolParseError(INVALID_ARGUMENTS, tool_name) from e
    if not isinstance(arguments, dict):
        raise ToolParseError(INVALID_ARGUMENTS, tool_name)
    return arguments


class ToolExecutor:
    """Runs model-requested tools on behalf of a user."""

    def __init__(self, backend: ToolBackend):
        self.backend = backend

    async def run(
        self,
        tool_name: str,
        arguments_json: str,
        owner_id: str,
        known_tools: Collection[str] | None = None,
    ) -> ToolSuccess | ToolFailure:
        """Execute one tool and return a tagged outcome."""
        if known_tools is not None and tool_name not in known_tools:
            logger.error(f"Unknown tool requested: {tool_name}")
            return ToolFailure(error=ToolErrorKind.UNKNOWN_TOOL, message=f"Unknown tool: {tool_name}")

        try:
            arguments = parse_arguments(tool_name, arguments_json)
        except ToolParseError as e:
            logger.warning(f"Invalid arguments for {tool_name}: {arguments_json[:100]!r}")
            return ToolFailure(error=ToolErrorKind.PARSE, message=str(e))

        logger.debug(f"Executing tool: {tool_name} with input: {arguments}")
        try:
            response = await self.backend.execute_tool(tool_name, arguments, owner_id)
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            return ToolFailure(error=ToolErrorKind.EXECUTION, message=str(e) or "Tool execution failed")

        logger.debug(f"Tool {tool_name} succeeded: {str(response.data)[:100]}...")
        return ToolSuccess(value=response.model_dump(exclude_none=True))

    async def execute(
        self,
        tool_name: str,
        arguments_json: str,
        owner_id: str,
        *,
        tool_call_id: str = "",
        known_tools: Collection[str] | None = None,
    ) -> ToolResult:
        """Execute one tool; the result is always re-insertable as a tool message.

        Args:
            tool_name: Tool to run
            arguments_json: JSON-encoded argument object emitted by the model
            owner_id: User the call is attributed to
            tool_call_id: Id of the model's tool call
            known_tools: Names offered this turn; anything else is rejected unrun
        """
        outcome = await self.run(tool_name, arguments_json, owner_id, known_tools)
        return ToolResult.from_outcome(tool_call_id, tool_name, outcome)

    async def execute_all(
        self,
        tool_calls: Sequence[ToolCall],
        owner_id: str,
        known_tools: Collection[str] | None = None,
    ) -> list[ToolResult]:
        """Execute sibling tool calls concurrently.

        Results come back in the order the calls were declared, whatever order
        they finish in.
        """
        logger.info(f"Executing {len(tool_calls)} tool calls")
        return list(
            await asyncio.gather(
                *(
                    self.execute(
                        tool_call.function_name,
                        tool_call.arguments_json,
                        owner_id,
                        tool_call_id=tool_call.id,
                        known_tools=known_tools,
                    )
                    for tool_call in tool_calls
                )
            )
        )

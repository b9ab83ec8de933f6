"""Routing for the chat turn graph."""

from typing import Literal

from aurora.graphs.state import TurnState
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


def route_first_completion(state: TurnState) -> Literal["execute_tools", "respond", "failed"]:
    """Route after the first completion.

    Tool calls go to execution; a plain answer is returned as is.
    """
    if state.error:
        logger.warning(f"First completion failed: {state.error}")
        return "failed"

    if state.tool_calls:
        return "execute_tools"

    return "respond"


def route_second_completion(state: TurnState) -> Literal["respond", "failed"]:
    """Route after the completion that consumed the tool results."""
    if state.error:
        logger.warning(f"Second completion failed after {len(state.tool_results)} tool results: {state.error}")
        return "failed"
    return "respond"

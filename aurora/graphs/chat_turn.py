"""Chat turn graph: resolve toolkits, complete, run tools, complete again."""

from collections.abc import Sequence

from langgraph.graph import END, StateGraph

from aurora.exceptions import InvalidRequestError, ProviderExhaustedError
from aurora.graphs.edges import route_first_completion, route_second_completion
from aurora.graphs.nodes import ChatTurnNodes
from aurora.graphs.state import TurnState
from aurora.models.llm import ChatMessage, ChatTurnResult
from aurora.services.llm import ModelProviderClient
from aurora.services.toolkits import ToolCatalogResolver
from aurora.tools.executor import ToolExecutor
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


def create_chat_turn_graph(nodes: ChatTurnNodes):
    """Create the chat turn graph.

    The flow is:
    - resolve_toolkits: pick toolkits and fetch their tools
    - first_completion: plain answer, or tool calls
    - execute_tools: run every tool call concurrently
    - second_completion: answer with the tool results
    - respond: extract the final text

    A failed completion routes straight to END with ``error`` set.

    Args:
        nodes: Node implementations bound to their services

    Returns:
        Compiled LangGraph workflow
    """
    logger.info("Creating chat turn graph")

    workflow = StateGraph(TurnState)

    workflow.add_node("resolve_toolkits", nodes.resolve_toolkits)
    workflow.add_node("first_completion", nodes.first_completion)
    workflow.add_node("execute_tools", nodes.execute_tools)
    workflow.add_node("second_completion", nodes.second_completion)
    workflow.add_node("respond", nodes.respond)

    workflow.set_entry_point("resolve_toolkits")
    workflow.add_edge("resolve_toolkits", "first_completion")

    workflow.add_conditional_edges(
        "first_completion",
        route_first_completion,
        {
            "execute_tools": "execute_tools",
            "respond": "respond",
            "failed": END,
        },
    )

    workflow.add_edge("execute_tools", "second_completion")

    workflow.add_conditional_edges(
        "second_completion",
        route_second_completion,
        {
            "respond": "respond",
            "failed": END,
        },
    )

    workflow.add_edge("respond", END)

    return workflow.compile()


class ChatOrchestrator:
    """Runs one tool-calling chat turn through the graph."""

    def __init__(self, llm: ModelProviderClient, resolver: ToolCatalogResolver, executor: ToolExecutor):
        self.graph = create_chat_turn_graph(ChatTurnNodes(llm, resolver, executor))

    async def handle_chat_request(
        self,
        messages: Sequence[ChatMessage],
        requester_id: str,
        explicit_toolkits: Sequence[str] | None = None,
    ) -> ChatTurnResult:
        """Handle a chat request with tools.

        Args:
            messages: Conversation so far, oldest first
            requester_id: User the tools run for
            explicit_toolkits: Toolkits chosen by the caller; resolved when empty

        Returns:
            Final answer with the tool work done during the turn

        Raises:
            InvalidRequestError: No messages
            ProviderExhaustedError: Every model candidate failed in either pass
        """
        if not messages:
            raise InvalidRequestError("Messages are required")

        logger.info(f"Processing chat turn for user {requester_id} with {len(messages)} messages")

        initial_state = TurnState(
            messages=list(messages),
            requester_id=requester_id,
            explicit_toolkits=list(explicit_toolkits or []),
        )
        config = {
            "configurable": {"requester_id": requester_id},
            "recursion_limit": 10,
        }

        result = await self.graph.ainvoke(initial_state.model_dump(), config)
        state = TurnState.model_validate(result)

        if state.error:
            raise ProviderExhaustedError(
                state.error,
                tool_calls=state.tool_calls,
                tool_results=state.tool_results,
                available_toolkits=state.available_toolkits,
            )

        logger.info(f"Chat turn done: {state.provider_calls} provider calls, {len(state.tool_results)} tool results")
        return ChatTurnResult(
            content=state.content or "",
            model=state.model,
            tool_calls=state.tool_calls,
            tool_results=state.tool_results,
            available_toolkits=state.available_toolkits,
        )

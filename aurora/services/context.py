"""Trimming of inbound conversation history."""

import math

import tiktoken

from aurora.config import ContextConfig
from aurora.models.llm import ChatMessage
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

_UNSET = object()


def load_tokenizer() -> tiktoken.Encoding | None:
    """Load the token encoding, or None when it cannot be fetched."""
    try:
        return tiktoken.encoding_for_model("gpt-4")
    except Exception as e:
        logger.warning(f"Tokenizer unavailable, falling back to character estimate: {e}")
        return None


class ContextOptimizer:
    """Keeps the first few and the most recent messages within a token budget."""

    def __init__(self, config: ContextConfig | None = None, tokenizer=_UNSET):
        """Initialize optimizer.

        Args:
            config: Message and token limits
            tokenizer: Encoding used for estimates; None forces the character estimate
        """
        self.config = config or ContextConfig()
        self.tokenizer = load_tokenizer() if tokenizer is _UNSET else tokenizer

    def estimate_tokens(self, text: str) -> int:
        if self.tokenizer:
            try:
                return len(self.tokenizer.encode(text))
            except Exception as e:
                logger.debug(f"Tokenizer failed, using character estimate: {e}")
        return math.ceil(len(text) / self.config.chars_per_token)

    def message_tokens(self, message: ChatMessage) -> int:
        """Estimated size of a message; image parts are not counted."""
        text = message.text
        for tool_call in message.tool_calls or []:
            text += tool_call.function.name + tool_call.function.arguments
        return self.estimate_tokens(text)

    def optimize(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Trim a conversation.

        Conversations of at most ``max_messages`` are sent unchanged. Longer
        ones keep the first ``keep_initial_messages`` and the most recent
        messages, and that selection is then cut from the oldest side to fit
        ``max_context_tokens``; the newest message is always kept.
        """
        config = self.config
        if len(messages) <= config.max_messages:
            return list(messages)

        recent_count = config.max_messages - config.keep_initial_messages
        selected = [*messages[: config.keep_initial_messages], *messages[-recent_count:]]

        kept: list[ChatMessage] = []
        total_tokens = 0
        for message in reversed(selected):
            message_tokens = self.message_tokens(message)
            if kept and total_tokens + message_tokens > config.max_context_tokens:
                break
            kept.insert(0, message)
            total_tokens += message_tokens

        logger.info(f"Trimmed conversation from {len(messages)} to {len(kept)} messages (~{total_tokens} tokens)")
        return kept

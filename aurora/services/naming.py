"""Conversation title generation."""

import re
from collections.abc import Sequence

from aurora.config import TITLE_CANDIDATES, TITLE_PARAMS, ModelCandidate
from aurora.models.chats import DEFAULT_CHAT_TITLE
from aurora.models.llm import ChatMessage
from aurora.services.llm import ModelProviderClient
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

TITLE_SYSTEM_PROMPT = (
    "Generate a short, precise title (3-6 words maximum) summarizing this conversation. "
    "Reply ONLY with the title, without quotes and without a final period."
)

PREVIEW_CHARS = 200
MAX_TITLE_CHARS = 60
FALLBACK_WORDS = 5
FALLBACK_CHARS = 40

_WRAPPING_QUOTES = re.compile(r"^[\"'`]+|[\"'`]+$")
_TRAILING_DOTS = re.compile(r"\.+$")


def clean_title(raw: str) -> str:
    """Strip wrapping quotes/backticks and trailing dots, then cap the length."""
    title = _WRAPPING_QUOTES.sub("", raw.strip())
    title = _TRAILING_DOTS.sub("", title)
    return title[:MAX_TITLE_CHARS].strip()


def fallback_title(message: str) -> str:
    """Title built from the first words of the message."""
    words = " ".join(message.split()[:FALLBACK_WORDS])
    title = words[:FALLBACK_CHARS]
    if len(message) > FALLBACK_CHARS:
        title += "..."
    return title or DEFAULT_CHAT_TITLE


class TitleGenerator:
    """Names conversations through a dedicated model chain."""

    def __init__(self, llm: ModelProviderClient, candidates: Sequence[ModelCandidate] = TITLE_CANDIDATES):
        self.llm = llm
        self.candidates = list(candidates)

    async def generate_title(self, message: str) -> str:
        """Generate a title for a conversation's first message.

        Each candidate is tried on its own so that an empty answer moves on to
        the next model. When every model fails the first words are used.
        """
        messages = [
            ChatMessage(role="system", content=TITLE_SYSTEM_PROMPT),
            ChatMessage(role="user", content=message[:PREVIEW_CHARS]),
        ]

        for candidate in self.candidates:
            result = await self.llm.complete(messages, candidates=[candidate], params=TITLE_PARAMS)
            if not result.success or result.completion is None:
                continue
            title = clean_title(result.completion.text)
            if title:
                return title
            logger.debug(f"Empty title from {candidate}, trying next model")

        logger.warning("All title models failed, using message words")
        return fallback_title(message)

"""Chat and message storage."""

from cuid2 import cuid_wrapper

from aurora.models.chats import DEFAULT_CHAT_TITLE, Chat, StoredMessage
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()


class InMemoryChatStore:
    """In-memory chat storage.

    Chats are only created once an exchange has completed, and messages are
    only ever appended as a finished (user, assistant) pair.
    """

    def __init__(self):
        self.chats: dict[str, Chat] = {}
        self.messages: dict[str, list[StoredMessage]] = {}

    def create_chat(self, user_id: str, title: str = DEFAULT_CHAT_TITLE) -> Chat:
        chat = Chat(id=cuid(), user_id=user_id, title=title)
        self.chats[chat.id] = chat
        self.messages[chat.id] = []
        logger.info(f"Created chat {chat.id} for user {user_id}")
        return chat

    def get_chat(self, chat_id: str) -> Chat | None:
        return self.chats.get(chat_id)

    def list_chats(self, user_id: str) -> list[Chat]:
        """A user's chats, most recently updated first."""
        chats = [chat for chat in self.chats.values() if chat.user_id == user_id]
        return sorted(chats, key=lambda chat: chat.updated_at, reverse=True)

    def update_title(self, chat_id: str, title: str) -> Chat | None:
        chat = self.chats.get(chat_id)
        if chat:
            chat.title = title
            chat.touch()
        return chat

    def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat and all of its messages.

        Returns:
            True if the chat existed
        """
        if chat_id not in self.chats:
            return False
        del self.chats[chat_id]
        removed = self.messages.pop(chat_id, [])
        logger.info(f"Deleted chat {chat_id} and {len(removed)} messages")
        return True

    def append_exchange(self, chat_id: str, user_text: str, assistant_text: str) -> list[StoredMessage]:
        """Append a completed exchange to a chat.

        Raises:
            KeyError: Unknown chat
        """
        chat = self.chats[chat_id]
        exchange = [
            StoredMessage(id=cuid(), chat_id=chat_id, role="user", content=user_text),
            StoredMessage(id=cuid(), chat_id=chat_id, role="assistant", content=assistant_text),
        ]
        self.messages[chat_id].extend(exchange)
        chat.touch()
        return exchange

    def get_messages(self, chat_id: str, limit: int = 50) -> list[StoredMessage]:
        """The most recent messages of a chat, oldest first."""
        return self.messages.get(chat_id, [])[-limit:]

"""Chat history endpoints."""

from fastapi import APIRouter, Response, status

from aurora.api.dependencies import CurrentUser, ServicesDep
from aurora.exceptions import ChatNotFoundError
from aurora.models.chats import Chat, ChatSummary, ExchangeRequest, ExchangeResponse, StoredMessageOut
from aurora.models.session import UserIdentity
from aurora.services.container import Services
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/chats", tags=["Chats"])


def _owned_chat(services: Services, chat_id: str, user: UserIdentity) -> Chat:
    chat = services.chat_store.get_chat(chat_id)
    if chat is None or chat.user_id != user.id:
        raise ChatNotFoundError(f"Chat not found: {chat_id}")
    return chat


@router.get("", response_model=list[ChatSummary])
async def list_chats(user: CurrentUser, services: ServicesDep) -> list[ChatSummary]:
    return [ChatSummary.from_chat(chat) for chat in services.chat_store.list_chats(user.id)]


@router.post("/exchange", response_model=ExchangeResponse)
async def save_exchange(request: ExchangeRequest, user: CurrentUser, services: ServicesDep) -> ExchangeResponse:
    """Persist a completed exchange.

    Without ``chatId`` this is the first exchange of a new conversation: the
    chat is created now, titled from the user's message.
    """
    if request.chat_id:
        chat = _owned_chat(services, request.chat_id, user)
    else:
        title = await services.title_generator.generate_title(request.user_content)
        chat = services.chat_store.create_chat(user.id, title)

    services.chat_store.append_exchange(chat.id, request.user_content, request.assistant_content)
    return ExchangeResponse(chat_id=chat.id, title=chat.title)


@router.get("/{chat_id}/messages", response_model=list[StoredMessageOut])
async def get_messages(
    chat_id: str, user: CurrentUser, services: ServicesDep, limit: int = 50
) -> list[StoredMessageOut]:
    _owned_chat(services, chat_id, user)
    return [StoredMessageOut.from_message(message) for message in services.chat_store.get_messages(chat_id, limit)]


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat(chat_id: str, user: CurrentUser, services: ServicesDep) -> Response:
    _owned_chat(services, chat_id, user)
    services.chat_store.delete_chat(chat_id)
    logger.info(f"User {user.id} deleted chat {chat_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

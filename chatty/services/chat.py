from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Sequence, Union
import logging

from chatty.core.config import OwnershipPolicy, DEFAULT_SYSTEM_PROMPT
from chatty.models.chats import Chat, MessageRole
from chatty.schemas.chat import ChatTurnResponse, Generation, Turn
from chatty.services import conversation, history
from chatty.services.fallback import FallbackResponder
from chatty.services.gateway import ModelGateway, ModelGatewayError

logger = logging.getLogger(__name__)

class ChatService:
    """
    Runs one conversation turn end to end.

    1) Resolves the target chat (or opens a new one).
    2) Commits the user's message before any model call.
    3) Windows the history and asks the model, falling back to canned
       replies when the model is disabled or fails.
    4) Stores the assistant's reply and returns it.
    """

    def __init__(
        self,
        db: AsyncSession,
        gateway: ModelGateway,
        responder: Optional[FallbackResponder] = None,
        ownership_policy: OwnershipPolicy = OwnershipPolicy.SILENT_FALLBACK,
        history_window: int = history.HISTORY_WINDOW,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ):
        self.db = db
        self.gateway = gateway
        self.responder = responder or FallbackResponder()
        self.ownership_policy = ownership_policy
        self.history_window = history_window
        self.system_prompt = system_prompt

    async def send_turn(self, user_id: int, message: str, chat_id: Optional[Union[int, str]] = None) -> ChatTurnResponse:
        chat = await self._resolve_chat(user_id, message, chat_id)

        await conversation.add_message(self.db, chat, MessageRole.USER, message)
        await self.db.commit()

        turns = await history.get_recent_turns(self.db, chat.id, self.history_window)
        generation = await self._generate(turns)

        reply = await conversation.add_message(
            self.db,
            chat,
            MessageRole.ASSISTANT,
            generation.content,
            tokens_used=generation.token_count,
            model_used=generation.model,
        )
        await self.db.commit()

        return ChatTurnResponse(
            chat_id=chat.id,
            message=reply.content,
            id=reply.id,
            model_used=reply.model_used,
            tokens_used=reply.tokens_used,
        )

    async def _resolve_chat(self, user_id: int, message: str, chat_id: Optional[Union[int, str]]) -> Chat:
        if chat_id is None:
            return await conversation.create_chat(self.db, user_id, message)

        chat = None
        if isinstance(chat_id, int):
            chat = await conversation.get_owned_chat(self.db, user_id, chat_id)
        if chat is not None:
            chat.touch()
            return chat

        if self.ownership_policy == OwnershipPolicy.STRICT:
            logger.warning(f"User {user_id} targeted chat {chat_id} they do not own")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Chat not found"
            )

        logger.info(f"Chat {chat_id} unavailable to user {user_id}, starting a new chat")
        return await conversation.create_chat(self.db, user_id, message)

    async def _generate(self, turns: Sequence[Turn]) -> Generation:
        if not self.gateway.enabled:
            logger.info("Model gateway disabled, using fallback responder")
            return self.responder.respond(turns)

        try:
            return await self.gateway.generate(turns, self.system_prompt)
        except ModelGatewayError as e:
            logger.warning(f"Model gateway failed, falling back to mock response: {e}")
            return self.responder.respond(turns)

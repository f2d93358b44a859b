from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from chatty.core.errors import ServiceError
from chatty.core.utils.dependencies import get_chat_service, get_current_user_id
from chatty.core.utils.rate_limiter import limiter
from chatty.db.session import get_db
from chatty.schemas.chat import ChatMessageCreate, ChatRead, ChatTurnResponse, MessageRead
from chatty.services import conversation
from chatty.services.chat import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["chat"])

@router.get("/chats", response_model=List[ChatRead], summary="List the user's chats")
@limiter.limit("30/minute")
async def get_chats(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Most recently updated chats first, at most 50."""
    try:
        return await conversation.list_chats(db, user_id)
    except Exception as e:
        raise ServiceError("Failed to fetch chat history") from e

@router.get("/chats/{chat_id}/messages", response_model=List[MessageRead], summary="Get a chat's messages")
@limiter.limit("30/minute")
async def get_messages(
    request: Request,
    chat_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Oldest first. 404 if the chat does not exist or belongs to someone else."""
    try:
        return await conversation.list_messages(db, user_id, chat_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Failed to fetch messages") from e

@router.delete("/chats/{chat_id}", summary="Delete a chat")
@limiter.limit("10/minute")
async def delete_chat(
    request: Request,
    chat_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        await conversation.delete_chat(db, user_id, chat_id)
    except HTTPException as e:
        logger.warning(f"Delete chat {chat_id} failed: {e.detail}")
        raise
    except Exception as e:
        raise ServiceError("Failed to delete chat") from e
    return {"message": "Chat deleted successfully"}

@router.post("/chat", response_model=ChatTurnResponse, summary="Send a message")
@limiter.limit("20/minute")
async def send_message(
    request: Request,
    data: ChatMessageCreate,
    user_id: int = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    """
    Appends a user message to a chat and returns the assistant's reply.

    - Without `chat_id` a new chat is started, titled after the message.
    - With a `chat_id` the caller does not own (or one that is not an id at
      all), a new chat is started as well
      (or 404 when `CHAT_OWNERSHIP_POLICY=strict`).
    - Model failures are answered by the fallback responder; `model_used` is
      `mock-v1` in that case.
    """
    try:
        return await service.send_turn(user_id, data.message, data.chat_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Failed to process message") from e

from fastapi import HTTPException, status
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from chatty.models.chats import Chat, Message, MessageRole

logger = logging.getLogger(__name__)

CHAT_LIST_LIMIT = 50

async def create_chat(db: AsyncSession, user_id: int, first_message: str) -> Chat:
    chat = Chat(user_id=user_id, title=Chat.title_from_message(first_message))
    db.add(chat)
    await db.flush()
    logger.info(f"Chat {chat.id} created for user {user_id}")
    return chat

async def get_owned_chat(db: AsyncSession, user_id: int, chat_id: int) -> Optional[Chat]:
    stmt = select(Chat).where(Chat.id == chat_id, Chat.user_id == user_id)
    return (await db.execute(stmt)).scalar_one_or_none()

async def add_message(
    db: AsyncSession,
    chat: Chat,
    role: MessageRole,
    content: str,
    tokens_used: Optional[int] = None,
    model_used: Optional[str] = None,
) -> Message:
    message = Message(
        chat_id=chat.id,
        role=role.value,
        content=content,
        tokens_used=tokens_used,
        model_used=model_used,
    )
    db.add(message)
    chat.touch()
    await db.flush()
    return message

async def list_chats(db: AsyncSession, user_id: int, limit: int = CHAT_LIST_LIMIT) -> List[Chat]:
    stmt = (
        select(Chat)
        .where(Chat.user_id == user_id)
        .order_by(Chat.updated_at.desc(), Chat.id.desc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())

async def _require_owned_chat(db: AsyncSession, user_id: int, chat_id: int) -> Chat:
    chat = await get_owned_chat(db, user_id, chat_id)
    if chat is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat not found"
        )
    return chat

async def list_messages(db: AsyncSession, user_id: int, chat_id: int) -> List[Message]:
    """All messages of an owned chat, oldest first."""
    await _require_owned_chat(db, user_id, chat_id)
    stmt = (
        select(Message)
        .where(Message.chat_id == chat_id)
        .order_by(Message.created_at, Message.id)
    )
    return list((await db.execute(stmt)).scalars().all())

async def delete_chat(db: AsyncSession, user_id: int, chat_id: int) -> None:
    chat = await _require_owned_chat(db, user_id, chat_id)
    await db.execute(delete(Message).where(Message.chat_id == chat.id))
    await db.delete(chat)
    await db.commit()
    logger.info(f"Chat {chat_id} deleted by user {user_id}")

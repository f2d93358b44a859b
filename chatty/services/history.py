from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from chatty.models.chats import Message
from chatty.schemas.chat import Turn

HISTORY_WINDOW = 20

async def get_recent_turns(db: AsyncSession, chat_id: int, limit: int = HISTORY_WINDOW) -> List[Turn]:
    """
    Returns the `limit` most recent turns of a chat, oldest first.

    Chats shorter than the window come back whole. No token-based trimming
    or summarisation is done.
    """
    stmt = (
        select(Message)
        .where(Message.chat_id == chat_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
    )
    rows = (await db.execute(stmt)).scalars().all()
    return [Turn.model_validate(row) for row in reversed(rows)]

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Index, String, Text, CheckConstraint
from sqlalchemy.orm import relationship
from enum import Enum
from chatty.db.base import Base, utcnow

DEFAULT_CHAT_TITLE = "New Conversation"
TITLE_PREFIX_LENGTH = 50

class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"

class Chat(Base):
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), default=DEFAULT_CHAT_TITLE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="chats")
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index('idx_chat_user_updated', 'user_id', 'updated_at'),
    )

    @staticmethod
    def title_from_message(content: str) -> str:
        """Title for a chat opened by `content`: its first 50 characters plus an ellipsis."""
        return content[:TITLE_PREFIX_LENGTH] + "..."

    def touch(self) -> None:
        self.updated_at = utcnow()

class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    tokens_used = Column(Integer, nullable=True)
    model_used = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    chat = relationship("Chat", back_populates="messages")

    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="ck_message_role"),
        Index('idx_message_chat_created', 'chat_id', 'created_at'),
    )

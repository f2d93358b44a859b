from pydantic import AliasChoices, BaseModel, Field, field_validator
from datetime import datetime
from typing import Any, Optional, Union

MAX_MESSAGE_LENGTH = 8000

class ChatMessageCreate(BaseModel):
    message: str
    # A value that is not an integer id can never match a stored chat; it is
    # kept as a string so the ownership policy decides what happens to it.
    chat_id: Optional[Union[int, str]] = Field(default=None, validation_alias=AliasChoices("chat_id", "chatId"))

    @field_validator('chat_id', mode='before')
    @classmethod
    def validate_chat_id(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, int) and not isinstance(v, bool):
            return v
        text = str(v).strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            return text

    @field_validator('message')
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Message must not be empty')
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError('Message is too long')
        return v

class ChatTurnResponse(BaseModel):
    chat_id: int
    message: str
    id: int
    model_used: Optional[str] = None
    tokens_used: Optional[int] = None

class ChatRead(BaseModel):
    id: int
    title: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

class MessageRead(BaseModel):
    id: int
    chat_id: int
    role: str
    content: str
    tokens_used: Optional[int] = None
    model_used: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

class Turn(BaseModel):
    """One role-tagged entry of a conversation as handed to a responder."""
    role: str
    content: str

    model_config = {"from_attributes": True}

class Generation(BaseModel):
    content: str
    token_count: int = 0
    model: str

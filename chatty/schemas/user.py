from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from typing import Optional

def _clean_username(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError('Username must not be empty')
    if len(v) > 50:
        raise ValueError('Username must be at most 50 characters')
    return v

class UserBase(BaseModel):
    username: str
    email: EmailStr

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _clean_username(v)

class UserCreate(UserBase):
    password: str
    full_name: Optional[str] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters long')
        if not any(c.isdigit() for c in v):
            raise ValueError('Password must contain at least one digit')
        return v

class UserRead(UserBase):
    id: int
    full_name: Optional[str] = None
    preferred_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}

class UserUpdate(BaseModel):
    username: Optional[str] = None
    full_name: Optional[str] = None
    preferred_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_username(v)

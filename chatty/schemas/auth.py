from pydantic import BaseModel, EmailStr
from typing import Optional

from chatty.schemas.user import UserRead

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class AuthResponse(Token):
    user: UserRead

class TokenData(BaseModel):
    sub: Optional[str] = None
    username: Optional[str] = None

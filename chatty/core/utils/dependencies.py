from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from chatty.core.config import settings
from chatty.core.utils.jwt import verify_access_token
from chatty.db.session import get_db
from chatty.models.users import User
from chatty.services.chat import ChatService
from chatty.services.gateway import ModelGateway, get_model_gateway

bearer_scheme = HTTPBearer(auto_error=False)

def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> int:
    """Subject of a valid access token. Only signature and expiry are checked."""
    if credentials is None:
        raise _credentials_exception("Not authenticated")

    payload = verify_access_token(credentials.credentials)
    if payload is None:
        raise _credentials_exception()

    try:
        return int(payload["sub"])
    except (KeyError, ValueError):
        raise _credentials_exception()

async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise _credentials_exception()
    return user

async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )
    return current_user

def get_chat_service(
    db: AsyncSession = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> ChatService:
    return ChatService(
        db,
        gateway,
        ownership_policy=settings.CHAT_OWNERSHIP_POLICY,
        history_window=settings.HISTORY_WINDOW,
        system_prompt=settings.SYSTEM_PROMPT,
    )

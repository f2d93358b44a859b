from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from datetime import timedelta
from typing import Optional
import logging

from chatty.core.config import settings
from chatty.db.base import utcnow
from chatty.schemas.auth import UserLogin, Token, TokenData, AuthResponse
from chatty.schemas.user import UserRead
from chatty.models.users import User
from chatty.models.tokens import RefreshToken
from chatty.core.utils.hash import verify_password
from chatty.core.utils.jwt import create_access_token, create_refresh_token, verify_refresh_token

logger = logging.getLogger(__name__)

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def purge_expired_refresh_tokens(db: AsyncSession, user_id: Optional[int] = None) -> int:
    """Deletes expired refresh tokens, for one user or for everyone. Returns the number removed."""
    stmt = (
        delete(RefreshToken)
        .where(RefreshToken.expires_at <= utcnow())
        .execution_options(synchronize_session=False)
    )
    if user_id is not None:
        stmt = stmt.where(RefreshToken.user_id == user_id)
    result = await db.execute(stmt)
    if result.rowcount:
        logger.info(f"Purged {result.rowcount} expired refresh tokens")
    return result.rowcount or 0

async def issue_token_pair(user: User, db: AsyncSession) -> Token:
    """
    Signs an access/refresh pair for `user` and stores the refresh token.

    The caller commits.
    """
    if settings.REFRESH_TOKEN_SWEEP_ON_ISSUE:
        await purge_expired_refresh_tokens(db, user.id)

    token_data = TokenData(sub=str(user.id), username=user.username)
    access_token = create_access_token(
        data=token_data,
        expires_delta=timedelta(minutes=settings.JWT_EXPIRATION_TIME)
    )
    refresh_token, expires_at = create_refresh_token(data=token_data)

    db.add(RefreshToken(user_id=user.id, token=refresh_token, expires_at=expires_at))
    await db.flush()

    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.JWT_EXPIRATION_TIME * 60
    )

async def authenticate_user(credentials: UserLogin, db: AsyncSession) -> AuthResponse:
    """
    1) Looks the user up by email.
    2) Checks the password.
    3) Stamps last_login and issues a new token pair.
    """
    result = await db.execute(select(User).where(User.email == credentials.email))
    user_db = result.scalar_one_or_none()

    if not user_db or not verify_password(credentials.password, user_db.hashed_password):
        logger.warning(f"Failed login attempt for email: {credentials.email}")
        raise _unauthorized("Invalid credentials")

    user_db.last_login = utcnow()
    token = await issue_token_pair(user_db, db)
    await db.commit()

    logger.info(f"User logged in: {user_db.username}")
    return AuthResponse(user=UserRead.model_validate(user_db), **token.model_dump())

async def refresh_tokens(refresh_token: str, db: AsyncSession) -> Token:
    """Exchanges a stored, unexpired refresh token for a new pair."""
    payload = verify_refresh_token(refresh_token)
    if payload is None:
        raise _unauthorized("Invalid refresh token")

    stmt = select(RefreshToken).where(RefreshToken.token == refresh_token)
    stored = (await db.execute(stmt)).scalar_one_or_none()
    if stored is None or str(stored.user_id) != payload["sub"]:
        logger.warning(f"Refresh token for user {payload['sub']} not found in storage")
        raise _unauthorized("Invalid refresh token")
    if stored.is_expired():
        raise _unauthorized("Refresh token expired")

    user = await db.get(User, stored.user_id)
    if user is None or not user.is_active:
        raise _unauthorized("Invalid refresh token")

    if settings.REFRESH_TOKEN_ROTATION:
        await db.delete(stored)

    token = await issue_token_pair(user, db)
    await db.commit()
    logger.info(f"Tokens refreshed for user {user.username}")
    return token

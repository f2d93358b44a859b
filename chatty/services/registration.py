from fastapi import HTTPException, status
from sqlalchemy import select, or_, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from chatty.schemas.user import UserCreate, UserRead
from chatty.schemas.auth import AuthResponse
from chatty.models.users import User
from chatty.core.utils.hash import get_password_hash
from chatty.services.auth import issue_token_pair

logger = logging.getLogger(__name__)

async def register_user(user_data: UserCreate, db: AsyncSession) -> AuthResponse:
    stmt = select(exists().where(
        or_(
            User.email == user_data.email,
            User.username == user_data.username
        )
    ))
    exists_in_db = (await db.execute(stmt)).scalar_one()
    if exists_in_db:
        logger.warning(f"Registration failed: username {user_data.username} or email {user_data.email} already exists")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists"
        )

    new_user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
    )
    db.add(new_user)
    try:
        await db.flush()
        token = await issue_token_pair(new_user, db)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.error(f"Database integrity error during registration for {user_data.username}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists"
        )

    logger.info(f"User registered: {new_user.username}")
    return AuthResponse(user=UserRead.model_validate(new_user), **token.model_dump())

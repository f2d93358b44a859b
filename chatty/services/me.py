from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from chatty.models.users import User
from chatty.schemas.user import UserUpdate, UserRead

logger = logging.getLogger(__name__)

def _username_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Username already taken"
    )

class MeService:
    @staticmethod
    async def update_current_user(user_id: int, user_update: UserUpdate, db: AsyncSession) -> User:
        """Update the current user's profile"""
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        update_data = user_update.model_dump(exclude_unset=True)

        new_username = update_data.pop("username", None)
        if new_username and new_username != user.username:
            taken = await db.execute(select(User.id).where(User.username == new_username))
            if taken.scalar_one_or_none() is not None:
                raise _username_taken()
            user.username = new_username

        for field, value in update_data.items():
            if hasattr(user, field):
                setattr(user, field, value)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise _username_taken()

        logger.info(f"Profile updated for user {user.id}")
        return user

    @staticmethod
    async def get_current_user_profile(user: User) -> UserRead:
        """Get the current user's profile information"""
        return UserRead.model_validate(user)

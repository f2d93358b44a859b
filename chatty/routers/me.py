from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chatty.db.session import get_db
from chatty.core.utils.dependencies import get_current_active_user
from chatty.core.utils.rate_limiter import limiter
from chatty.schemas.user import UserRead, UserUpdate
from chatty.services.me import MeService
from chatty.models.users import User

router = APIRouter(prefix="/api/auth/profile", tags=["me"])

@router.get("", response_model=UserRead, summary="Get Current User Profile")
@limiter.limit("10/minute")
async def get_current_user_info(
    request: Request,
    current_user: User = Depends(get_current_active_user)
):
    """
    Retrieves the profile information of the currently authenticated user.

    - **Rate Limit**: 10 requests per minute.
    - Requires a valid access token in the `Authorization` header (Bearer scheme).

    Raises:
    - **HTTPException** (401): If the token is invalid or the user is not authenticated.
    """
    return await MeService.get_current_user_profile(current_user)

@router.put("", response_model=UserRead, summary="Update Current User Profile")
@limiter.limit("5/minute")
async def update_current_user(
    request: Request,
    user_update: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Updates the profile information of the currently authenticated user.

    - **Rate Limit**: 5 requests per minute.
    - Only fields provided in the request body are updated (partial update):
      `username`, `full_name`, `preferred_name`, `bio`, `avatar_url`.

    Raises:
    - **HTTPException** (401): If the token is invalid or the user is not authenticated.
    - **HTTPException** (404): If the user is not found in the database.
    - **HTTPException** (409): If the requested username is already taken.
    """
    updated_user = await MeService.update_current_user(current_user.id, user_update, db)
    return UserRead.model_validate(updated_user)

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from chatty.core.errors import ServiceError
from chatty.db.session import get_db
from chatty.schemas.user import UserCreate
from chatty.schemas.auth import UserLogin, Token, AuthResponse, RefreshRequest
from chatty.services.registration import register_user
from chatty.services.auth import authenticate_user, refresh_tokens
from chatty.core.utils.rate_limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED, summary="Register a new user")
@limiter.limit("5/minute")
async def register(request: Request, user: UserCreate, db: AsyncSession = Depends(get_db)):
    """
    Registers a new user in the system and signs them in.

    - **Rate Limit**: 5 requests per minute.
    - Creates a new user with a unique `username` and `email`.
    - The password is hashed before being stored in the database.
    - A refresh token is stored for the new user.

    Parameters:
    - **user** (UserCreate): `username`, `email`, `password` and an optional `full_name`.
    - **db** (AsyncSession): The database session for creating the user.
    - **request** (Request): The incoming HTTP request object (used for rate limiting).

    Returns:
    - **AuthResponse**: The created user plus `access_token`, `refresh_token`, `token_type` and `expires_in`.

    Raises:
    - **HTTPException** (409): If the `username` or `email` is already taken.
    - **HTTPException** (422): If a required field is missing or invalid.
    - **HTTPException** (429): If the rate limit is exceeded.
    - **HTTPException** (500): If an unexpected server error occurs during registration.
    """
    try:
        return await register_user(user, db)
    except HTTPException as e:
        logger.warning(f"Registration failed: {e.detail}")
        raise e
    except Exception as e:
        raise ServiceError("Failed to register user") from e

@router.post("/login", response_model=AuthResponse, summary="Authenticate a user")
@limiter.limit("10/minute")
async def login(request: Request, user: UserLogin, db: AsyncSession = Depends(get_db)):
    """
    Authenticates a user by email and password and returns a token pair.

    - **Rate Limit**: 10 requests per minute.
    - Every successful login stores a new refresh token.

    Returns:
    - **AuthResponse**: The user plus `access_token`, `refresh_token`, `token_type` ("bearer") and `expires_in` (in seconds).

    Raises:
    - **HTTPException** (401): If the credentials are invalid.
    - **HTTPException** (422): If `email` or `password` is missing.
    - **HTTPException** (429): If the rate limit is exceeded.
    - **HTTPException** (500): If an unexpected server error occurs during authentication.
    """
    try:
        return await authenticate_user(user, db)
    except HTTPException as e:
        logger.warning(f"Login failed: {e.detail}")
        raise e
    except Exception as e:
        raise ServiceError("Failed to authenticate user") from e

@router.post("/refresh", response_model=Token, summary="Exchange a refresh token")
@limiter.limit("10/minute")
async def refresh(request: Request, body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """
    Issues a new token pair for a stored, unexpired refresh token.

    When rotation is enabled the presented refresh token stops working.

    Raises:
    - **HTTPException** (401): If the refresh token is invalid, unknown or expired.
    """
    try:
        return await refresh_tokens(body.refresh_token, db)
    except HTTPException as e:
        logger.warning(f"Token refresh failed: {e.detail}")
        raise e
    except Exception as e:
        raise ServiceError("Failed to refresh token") from e

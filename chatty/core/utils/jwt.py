from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import jwt, JWTError
import logging
import uuid

from chatty.core.config import settings
from chatty.schemas.auth import TokenData

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

def _encode(to_encode: dict, expire: datetime) -> str:
    to_encode.update({"exp": int(expire.timestamp())})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def create_access_token(data: TokenData, expires_delta: timedelta | None = None) -> str:
    to_encode = data.model_dump(exclude_none=True)
    to_encode["type"] = ACCESS_TOKEN_TYPE
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRATION_TIME)
    return _encode(to_encode, expire)

def create_refresh_token(data: TokenData, expires_delta: timedelta | None = None) -> Tuple[str, datetime]:
    """Returns the signed refresh token and its expiry."""
    to_encode = data.model_dump(exclude_none=True)
    # jti keeps tokens issued within the same second distinct
    to_encode.update({"type": REFRESH_TOKEN_TYPE, "jti": uuid.uuid4().hex})
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRATION_DAYS)
    return _encode(to_encode, expire), expire

def _decode(token: str, expected_type: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Failed to verify JWT token: {str(e)}")
        return None
    if payload.get("type") != expected_type or not payload.get("sub"):
        logger.warning(f"Rejected token of type {payload.get('type')!r}, expected {expected_type!r}")
        return None
    return payload

def verify_access_token(token: str) -> Optional[dict]:
    return _decode(token, ACCESS_TOKEN_TYPE)

def verify_refresh_token(token: str) -> Optional[dict]:
    return _decode(token, REFRESH_TOKEN_TYPE)

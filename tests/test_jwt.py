from datetime import timedelta, timezone, datetime

from jose import jwt

from chatty.core.config import settings
from chatty.core.utils.jwt import (
    create_access_token,
    create_refresh_token,
    verify_access_token,
    verify_refresh_token,
)
from chatty.schemas.auth import TokenData

DATA = TokenData(sub="7", username="alice")

def test_access_token_round_trip():
    payload = verify_access_token(create_access_token(DATA))

    assert payload["sub"] == "7"
    assert payload["username"] == "alice"
    assert payload["type"] == "access"

def test_refresh_tokens_are_unique_and_typed():
    first, expires_at = create_refresh_token(DATA)
    second, _ = create_refresh_token(DATA)

    assert first != second
    assert verify_refresh_token(first)["sub"] == "7"
    expected = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRATION_DAYS)
    assert abs((expires_at - expected).total_seconds()) < 5

def test_token_types_are_not_interchangeable():
    refresh_token, _ = create_refresh_token(DATA)

    assert verify_access_token(refresh_token) is None
    assert verify_refresh_token(create_access_token(DATA)) is None

def test_expired_token_is_rejected():
    token = create_access_token(DATA, expires_delta=timedelta(seconds=-30))

    assert verify_access_token(token) is None

def test_token_signed_with_another_key_is_rejected():
    forged = jwt.encode({"sub": "7", "type": "access"}, "other-secret", algorithm=settings.JWT_ALGORITHM)

    assert verify_access_token(forged) is None
    assert verify_access_token("not-a-jwt") is None

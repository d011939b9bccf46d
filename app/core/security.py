from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from app.config import get_settings

# Tokens are issued by the auth service; this module only needs to agree on
# the claim layout ("sub", "user_id", "type", "exp").
ACCESS_TOKEN_TYPE = "access"
DEFAULT_ACCESS_TOKEN_TTL = timedelta(minutes=30)


def create_access_token(
    subject: str,
    user_id: Optional[int] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject (username) to encode in the token
        user_id: Optional numeric user id, speeds up the user lookup
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT access token
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_ACCESS_TOKEN_TTL)

    to_encode = {
        "sub": subject,
        "exp": expire,
        "type": ACCESS_TOKEN_TYPE,
    }
    if user_id is not None:
        to_encode["user_id"] = user_id
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token to decode

    Returns:
        Decoded payload if valid, None otherwise
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[dict]:
    """
    Verify an access token and return its payload.

    Returns:
        The payload if the token is a valid access token with a subject, None otherwise
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None

    if payload.get("sub") is None:
        return None

    return payload

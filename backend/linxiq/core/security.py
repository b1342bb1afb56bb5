"""
JWT token helpers.

Issuing tokens belongs to the identity provider in front of this service;
create_access_token exists for operational scripts and the test suite.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from linxiq.core.config import settings
from linxiq.core.datetime_utils import utc_now

DEFAULT_TOKEN_LIFETIME = timedelta(minutes=30)


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (typically user_id)
        expires_delta: Optional custom expiration time delta

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = utc_now()
    expire = now + (expires_delta or DEFAULT_TOKEN_LIFETIME)
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns:
        Decoded token payload if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None

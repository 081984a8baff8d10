"""Authentication utilities: JWT access token issuing and verification."""

from jose import JWTError, jwt
from datetime import datetime, timedelta
from typing import Optional
import logging
import os

# JWT settings, shared with the dashboard's session provider
SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    logging.warning(
        "SECRET_KEY environment variable is not set. "
        "JWT token operations will fail. "
        "Please set SECRET_KEY to the value used by the dashboard."
    )
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue an access token signed like the dashboard's session tokens. Only tests mint tokens here."""
    if not SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable is required for token creation.")
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str, token_type: Optional[str] = "access") -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string
        token_type: Token type the payload must carry, or None to skip the check

    Returns:
        Decoded token payload or None if invalid
    """
    if not SECRET_KEY:
        logging.error("SECRET_KEY is not set. Cannot verify token.")
        return None
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if token_type and payload.get("type") != token_type:
        return None
    return payload

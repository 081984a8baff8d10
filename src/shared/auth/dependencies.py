"""Authentication dependencies for protected routes."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from src.shared.auth.database import get_db, User
from src.shared.auth.auth import verify_token

# Use auto_error=False so anonymous callers reach the optional-user paths
security = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get the current authenticated user from JWT token."""
    if credentials is None:
        raise _unauthorized("Unauthorized - Please sign in")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _unauthorized("User not found")

    return user


def get_optional_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Resolve the caller if a valid token is present; anonymous callers get None."""
    if credentials is None:
        return None
    try:
        return get_current_user(credentials, db)
    except HTTPException:
        return None


def require_roles(*roles: str):
    """Build a dependency that only admits users holding one of ``roles``."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": f"Forbidden - {' or '.join(roles)} access required"},
            )
        return current_user

    return dependency


require_engineer = require_roles("ADMIN", "IT_ENGINEER")

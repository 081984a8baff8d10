"""Admin authentication dependencies."""

from fastapi import Depends, HTTPException, status
from src.shared.auth.database import User
from src.shared.auth.dependencies import get_current_user


def verify_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Verify admin access: the authenticated user must hold the ADMIN role.

    Returns the current user if the check passes.
    Raises HTTPException (401 from get_current_user, 403 here) otherwise.
    """
    if getattr(current_user, "role", None) != "ADMIN":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden - ADMIN access required"},
        )
    return current_user

"""FastAPI dependencies that apply the shared rate limiter to routes."""

from typing import Optional

from fastapi import Depends, Request, Response

from src.shared.auth.database import User
from src.shared.auth.dependencies import get_optional_user
from src.shared.rate_limit.limiter import (
    RateLimitConfig,
    RateLimitResult,
    RateLimiter,
    get_identifier,
    rate_limit_headers,
)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter owned by the running application."""
    return request.app.state.rate_limiter


def rate_limited(config: RateLimitConfig):
    """
    Build a dependency that counts the request against ``config``.

    Raises RateLimitExceeded (rendered as 429 by the app) when the caller is over
    budget; otherwise copies the X-RateLimit-* headers onto the response.
    """

    def dependency(
        request: Request,
        response: Response,
        user: Optional[User] = Depends(get_optional_user),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitResult:
        identifier = get_identifier(user.id if user else None, request)
        result = limiter.hit(identifier, config)
        response.headers.update(rate_limit_headers(result))
        request.state.rate_limit = result
        return result

    return dependency

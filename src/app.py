"""CheckMate Service - FastAPI server for the IT operations dashboard integrations."""

import logging
import os
import sys
from datetime import datetime

from alembic.util import CommandError
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shared.auth.database import get_db, init_db
from src.shared.clients.routes import router as clients_router
from src.shared.dns_security.routes import router as dmarc_router
from src.shared.errors import RateLimitExceeded
from src.shared.integrations.config import IntegrationConfigCache
from src.shared.integrations.routes import router as integrations_router
from src.shared.notion.routes import router as notion_router
from src.shared.rate_limit.limiter import RateLimiter, rate_limit_headers

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses, which bypass the middleware."""
    origin = request.headers.get("origin")
    if origin not in CORS_ORIGINS:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render dict details as the body; string details become {"error": ...}."""
    headers = _cors_headers(request)
    if exc.headers:
        headers.update(exc.headers)

    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": str(exc.detail)}

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    headers = _cors_headers(request)
    headers.update(rate_limit_headers(exc.result))
    headers["Retry-After"] = str(exc.retry_after_seconds)
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": exc.message,
            "retryAfter": exc.retry_after_seconds,
        },
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "detail": jsonable_errors(exc)},
        headers=_cors_headers(request),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx can hold the raw exception object, which is not JSON serialisable
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


async def general_exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
        headers=_cors_headers(request),
    )


def create_app() -> FastAPI:
    """Build the application with its own rate limiter and integration cache."""
    app = FastAPI(
        title="CheckMate Service",
        description="Integration layer for the CheckMate IT operations dashboard",
        version="0.1.0"
    )

    app.state.rate_limiter = RateLimiter()
    app.state.integration_cache = IntegrationConfigCache()

    @app.on_event("startup")
    async def startup_event():
        try:
            init_db()
            logging.info("Database initialization completed on startup")
        except (SQLAlchemyError, CommandError) as e:
            # Health check reports the outage; requests fail individually
            logging.error(f"Database initialization error on startup: {str(e)}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(dmarc_router)
    app.include_router(clients_router)
    app.include_router(notion_router)
    app.include_router(integrations_router)

    @app.get("/")
    async def root():
        return {"message": "CheckMate Service API is running", "status": "ok"}

    @app.get("/health")
    async def health(db: Session = Depends(get_db)):
        """Ping the database; 503 when it cannot be reached."""
        timestamp = datetime.utcnow().isoformat()
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logging.error(f"Health check failed: {str(e)}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "timestamp": timestamp,
                    "database": "disconnected",
                    "error": str(e),
                },
            )
        return {"status": "healthy", "timestamp": timestamp, "database": "connected"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))

"""
Rate limiting middleware using slowapi.
"""
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from tir_takip.config import settings
from tir_takip.core.logging_utils import mask_path, sanitize_log_message

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request.
    Handles X-Forwarded-For header for proxied requests.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        sanitize_log_message(
            "Rate limit exceeded",
            Path=mask_path(request.url.path),
            IP=get_client_ip(request),
            Limit=str(exc.detail)
        )
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": "Çok fazla istek gönderildi, lütfen daha sonra tekrar deneyin"}
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Configure rate limiting for the FastAPI application.

    The limiter is attached to the app state even when disabled, the
    per-route decorators look it up there.
    """
    app.state.limiter = limiter

    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting is disabled")
        return

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(
        f"Rate limiting enabled: default={settings.RATE_LIMIT_DEFAULT}, "
        f"public={settings.RATE_LIMIT_PUBLIC}"
    )


def rate_limit_public():
    """Rate limit decorator for the public share endpoints."""
    return limiter.limit(settings.RATE_LIMIT_PUBLIC)

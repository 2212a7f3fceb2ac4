"""SlowAPI rate limiting keyed on the caller's address."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import get_settings
from .logging_middleware import client_ip

logger = logging.getLogger(__name__)
settings = get_settings()

limiter = Limiter(
    key_func=client_ip,
    default_limits=[settings.default_rate_limit],
    enabled=settings.rate_limiting_enabled,
)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit hit by %s on %s: %s", client_ip(request), request.url.path, exc.detail)
    return JSONResponse(status_code=429, content={"detail": f"Rate limit exceeded: {exc.detail}", "code": "RATE_LIMITED"})


def apply_rate_limiter(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

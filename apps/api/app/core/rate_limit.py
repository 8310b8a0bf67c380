from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import get_settings


_settings = get_settings()

# Module level so routers can mark endpoints exempt at import time.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.rate_limit_default] if _settings.rate_limit_default else [],
    enabled=_settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse({"error": "Too many requests"}, status_code=status.HTTP_429_TOO_MANY_REQUESTS)


def configure_rate_limiter(app: FastAPI) -> None:
    """Attach the shared SlowAPI limiter; default limits apply to every non-exempt route."""
    app.state.limiter = limiter
    if not any(middleware.cls is SlowAPIMiddleware for middleware in app.user_middleware):
        app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

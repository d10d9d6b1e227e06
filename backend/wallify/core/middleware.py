import logging
import time
import uuid as uuid_mod

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from wallify.config import settings

logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD = 1.0  # seconds

# Upload keys are random and never reused, so a stored file never changes
UPLOAD_CACHE_CONTROL = "public, max-age=31536000, immutable"
API_CACHE_CONTROL = "no-store"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.APP_ENV == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class CacheControlMiddleware(BaseHTTPMiddleware):
    """Let displays cache media forever, and never cache API state."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        path = request.url.path
        if path.startswith("/uploads/") and response.status_code == 200:
            response.headers["Cache-Control"] = UPLOAD_CACHE_CONTROL
        elif path.startswith("/api/") and "cache-control" not in response.headers:
            response.headers["Cache-Control"] = API_CACHE_CONTROL
        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID and log the ones that take too long."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid_mod.uuid4())[:8]
        request.state.request_id = request_id
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        if elapsed >= SLOW_REQUEST_THRESHOLD:
            logger.warning(
                "[%s] SLOW REQUEST %s %s took %.2fs", request_id, request.method, request.url.path, elapsed
            )
        response.headers["X-Request-ID"] = request_id
        return response


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CacheControlMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Displays only read; the admin UI is the only cross-origin writer
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    _setup_rate_limiting(app)


def _setup_rate_limiting(app: FastAPI) -> None:
    """Per-client rate limit. Every display polls twice per interval, so keep it generous."""
    from slowapi import Limiter, _rate_limit_exceeded_handler
    from slowapi.errors import RateLimitExceeded
    from slowapi.middleware import SlowAPIMiddleware
    from slowapi.util import get_remote_address

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.RATE_LIMIT_DEFAULT],
        storage_uri="memory://",
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("Rate limiting enabled (%s per client)", settings.RATE_LIMIT_DEFAULT)

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..core.cache import cache_client
from ..core.config import RATE_LIMIT_DEFAULT_PER_MINUTE, RATE_LIMIT_LOGIN_PER_MINUTE

WINDOW_SECONDS = 60
CREDENTIAL_PATHS = ("/api/auth/login", "/api/auth/register")


def _limit_for(path: str) -> int:
    if path.startswith(CREDENTIAL_PATHS):
        return RATE_LIMIT_LOGIN_PER_MINUTE
    return RATE_LIMIT_DEFAULT_PER_MINUTE


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit per client address, method and path."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path
        allowed = cache_client.check_rate_limit(
            f"{client_ip}:{request.method}:{path}",
            _limit_for(path),
            window_seconds=WINDOW_SECONDS,
        )
        if not allowed:
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Too many requests"},
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)

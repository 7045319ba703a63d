import math
from typing import Callable, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.log import logger
from core.rate_limiter.key_builder import RateLimitKeyBuilder
from core.rate_limiter.memory import InMemoryRateLimiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply one request budget per caller to every non-excluded path."""

    def __init__(
        self,
        app,
        backend: type[InMemoryRateLimiter] = InMemoryRateLimiter,
        enabled: bool = True,
        limit: int = 100,
        window: int = 900,
        key_func: Optional[Callable[[Request], str]] = None,
        exclude_paths: Optional[list[str]] = None,
        use_fingerprint: bool = True,
    ):
        super().__init__(app)
        self.backend = backend()
        self.enabled = enabled
        self.limit = limit
        self.window = window
        self.key_func = key_func
        self.exclude_paths = exclude_paths or []
        self.use_fingerprint = use_fingerprint

    def _is_excluded(self, path: str) -> bool:
        return any(path.startswith(excluded) for excluded in self.exclude_paths)

    def _key(self, request: Request) -> str:
        if self.key_func:
            return self.key_func(request)
        return RateLimitKeyBuilder.build_key(request, use_fingerprint=self.use_fingerprint)

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or self._is_excluded(request.url.path):
            return await call_next(request)

        key = self._key(request)
        result = await self.backend.hit(key, self.limit, self.window)
        if not result.allowed:
            retry_after = math.ceil(result.retry_after or 0)
            logger.info(f"Rate limit exceeded for {key} on {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "message": "Too many requests, please try again later.",
                    "retry_after": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Window"] = str(self.window)
        return response

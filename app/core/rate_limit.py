from __future__ import annotations

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


def analysis_rate_key(request: Request) -> str:
    """Bucket analyses per submitting user, falling back to the client address."""
    user_id = (request.headers.get("x-user-id") or "").strip()
    if user_id:
        return f"user:{user_id[:128]}"
    return get_remote_address(request)


limiter = Limiter(key_func=analysis_rate_key, enabled=settings.rate_limit_enabled)


def rate_limit():
    if settings.rate_limit_enabled:
        return limiter.limit(settings.rate_limit)

    def decorator(func):
        return func

    return decorator

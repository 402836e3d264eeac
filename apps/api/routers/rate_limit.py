"""Per-user quota on routes that spend model provider tokens."""

from __future__ import annotations

import asyncio
import time
from typing import Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings


GENERATION_WINDOW_SECONDS = 3600

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


async def _consume_local_quota(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    async with _local_lock:
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count = 0
            reset_at = now + window_seconds
        count += 1
        _local_counters[key] = (count, reset_at)
        return count <= limit


async def _consume_redis_quota(key: str, limit: int, window_seconds: int) -> bool:
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await redis_client.incr(key)
        if current == 1:
            await redis_client.expire(key, window_seconds)
    finally:
        await redis_client.aclose()
    return current <= limit


async def enforce_rate_limit(
    request: Request,
    *,
    prefix: str,
    user_id: str,
    limit: int,
    window_seconds: int,
) -> None:
    """Charge one request against the user's quota; raise 429 once it is spent."""
    if getattr(request.app.state, "disable_rate_limits", False) or limit <= 0:
        return

    key = f"bp:rate:{prefix}:{user_id}"
    try:
        allowed = await _consume_redis_quota(key, limit, window_seconds)
    except Exception:
        # Redis unreachable: fall back to a per-process counter.
        allowed = await _consume_local_quota(key, limit, window_seconds)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded for {prefix}. Try again later.",
        )


async def enforce_generation_quota(request: Request, prefix: str, user_id: str) -> None:
    """
    Hourly quota for generation routes.

    Callers invoke this only after request validation, so rejected input
    never consumes quota.
    """
    await enforce_rate_limit(
        request,
        prefix=prefix,
        user_id=user_id,
        limit=int(settings.GENERATE_RATE_LIMIT_PER_HOUR),
        window_seconds=GENERATION_WINDOW_SECONDS,
    )

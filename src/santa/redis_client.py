"""Shared Redis client for rate-limit windows and login lockout counters."""

from __future__ import annotations

import redis.asyncio as aioredis

_client: aioredis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    """Create the shared client. Responses are decoded so counters come back as str."""
    global _client  # noqa: PLW0603
    _client = aioredis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def redis_ready() -> bool:
    """True once init_redis() has run."""
    return _client is not None


def get_redis() -> aioredis.Redis:
    """Return the shared client (also used as a FastAPI dependency)."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client

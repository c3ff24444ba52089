"""Shared redis.asyncio client for rate limiting and event publishing."""

import json
from typing import Any

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the client; raises RuntimeError before ``init_redis``."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


def get_redis_or_none() -> redis.Redis | None:
    return _client


async def publish_json(client: Any, channel: str, payload: dict[str, Any]) -> None:  # noqa: ANN401
    """Publish ``payload`` as a JSON message on a pub/sub channel."""
    await client.publish(channel, json.dumps(payload))

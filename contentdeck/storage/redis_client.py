"""Redis client factory and health checks."""

from __future__ import annotations

from typing import Optional, Tuple

from redis import Redis


def build_client(redis_url: str) -> Redis:
    return Redis.from_url(redis_url, decode_responses=True)


def test_connection(client: Redis) -> Tuple[bool, Optional[str]]:
    try:
        client.ping()
        return True, None
    except Exception as exc:  # pragma: no cover
        return False, str(exc)

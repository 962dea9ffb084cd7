from __future__ import annotations

import redis
from fastapi import Depends, Request

from app.connections.redis import get_redis
from app.services.auth import TokenClaims, get_current_claims
from app.utils.errors import RateLimited


def limit_route(seconds: int):
    """Return a FastAPI dependency that rate-limits a user on a route for N seconds.

    Uses a Redis TTL per (email, path) to block repeated votes, reports and
    reviews by the same user within the window. ``seconds <= 0`` disables it.
    """

    def _dependency(
        request: Request,
        claims: TokenClaims = Depends(get_current_claims),
        client: redis.Redis = Depends(get_redis),
    ) -> None:
        if seconds <= 0:
            return
        key = f"rl:{claims.email}:{request.url.path}"

        # If a TTL exists, the user must wait; otherwise set a new TTL.
        ttl = client.ttl(key)
        if ttl and ttl > 0:
            raise RateLimited(f"Rate limited. Try again in {ttl}s")
        client.setex(name=key, time=seconds, value="1")

    return _dependency

"""Fixed-window rate limiting on Redis.

The counter for a caller lives under
``rate_limit:{identity}:{action}:{window}`` where ``window = now_ms // window_ms``.
Creating the counter with its expiry and incrementing it happen in one
MULTI/EXEC transaction, so two concurrent requests can never both see the
counter as fresh.
"""

import logging
import time
from typing import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from sudokusphere.models.schema_models import RateLimitSchema


def current_time_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    def __init__(self, redis: Redis, clock: Callable[[], int] = current_time_ms):
        self.redis: Redis = redis
        self.clock: Callable[[], int] = clock

    async def check_and_increment(
        self, identity: str, action: str, limit: int, window_ms: int
    ) -> RateLimitSchema:
        """Count one hit for ``identity`` doing ``action`` and decide whether it is allowed

        Args:
            identity (str): Caller identity, e.g. the client address
            action (str): Name of the limited action
            limit (int): Hits allowed per window
            window_ms (int): Window size in milliseconds

        Returns:
            RateLimitSchema: allowed, remaining hits and the window reset time (epoch ms).
                             If Redis is unreachable the hit is allowed.
        """
        window = self.clock() // window_ms
        reset_time = (window + 1) * window_ms
        key = f"rate_limit:{identity}:{action}:{window}"

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, px=window_ms, nx=True)
                pipe.incr(key)
                _, count = await pipe.execute()
        except RedisError as e:
            logging.warning(f"Rate limiting unavailable, allowing request: {e}")
            return RateLimitSchema(allowed=True, limit=limit, remaining=limit, reset_time=reset_time)

        count = int(count)
        return RateLimitSchema(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_time=reset_time,
        )

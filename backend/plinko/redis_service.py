"""Redis round store and per-round locking."""
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis

from plinko.config import settings
from plinko.errors import ErrorCode, GameError
from plinko.logic.models import Round


@dataclass
class LockMetrics:
    """Metrics from lock acquisition for telemetry."""

    acquire_ms: float
    wait_retries: int


class RedisService:
    """Redis client for round records and start/reveal locking."""

    # Key prefixes
    ROUND_PREFIX = "round:"
    LOCK_PREFIX = "lock:round:"

    # TTLs in seconds
    ROUND_TTL = settings.round_ttl_seconds
    LOCK_TTL = settings.lock_ttl_seconds

    # Only deletes if current value matches token; prevents releasing another's lock
    RELEASE_LOCK_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, redis_url: str | None = None):
        self._url = redis_url or settings.redis_url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raise if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected")
        return self._client

    async def save_round(self, round_: Round) -> None:
        """Store a round record with TTL, replacing any previous version."""
        key = f"{self.ROUND_PREFIX}{round_.round_id}"
        await self.client.setex(key, self.ROUND_TTL, round_.model_dump_json())

    async def get_round(self, round_id: str) -> Round | None:
        """Load a round record, or None if unknown or expired."""
        key = f"{self.ROUND_PREFIX}{round_id}"
        cached = await self.client.get(key)
        if cached is None:
            return None
        return Round.model_validate_json(cached)

    async def require_round(self, round_id: str) -> Round:
        """Load a round record; raises ROUND_NOT_FOUND if missing."""
        round_ = await self.get_round(round_id)
        if round_ is None:
            raise GameError(ErrorCode.ROUND_NOT_FOUND, f"Round {round_id} not found.")
        return round_

    async def acquire_round_lock(self, round_id: str) -> str | None:
        """
        Attempt to acquire the per-round lock with a unique token.

        Returns the token if acquired, None if already locked.
        """
        key = f"{self.LOCK_PREFIX}{round_id}"
        token = str(uuid.uuid4())
        acquired = await self.client.set(key, token, nx=True, ex=self.LOCK_TTL)
        return token if acquired is True else None

    async def release_round_lock(self, round_id: str, token: str) -> bool:
        """Release the per-round lock only if ``token`` still owns it."""
        key = f"{self.LOCK_PREFIX}{round_id}"
        result = await self.client.eval(self.RELEASE_LOCK_SCRIPT, 1, key, token)
        return result == 1

    @asynccontextmanager
    async def round_lock(self, round_id: str):
        """
        Context manager serializing state transitions of one round.

        Raises ROUND_IN_PROGRESS if the lock is held. Yields LockMetrics.
        """
        t0 = time.monotonic()
        token = await self.acquire_round_lock(round_id)
        if token is None:
            raise GameError(
                ErrorCode.ROUND_IN_PROGRESS,
                "Another request is already updating this round.",
            )
        metrics = LockMetrics(acquire_ms=(time.monotonic() - t0) * 1000, wait_retries=0)
        try:
            yield metrics
        finally:
            await self.release_round_lock(round_id, token)


# Global instance
redis_service = RedisService()

"""Redis service for per-player locking and free-spin session state."""
import json
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis

from bonanza.config import settings
from bonanza.errors import ErrorCode, GameError
from bonanza.logic.models import FreeSpinsState


@dataclass
class LockMetrics:
    """Metrics from lock acquisition for telemetry."""

    acquire_ms: float


class RedisService:
    """Redis client for player locking and free-spin sessions."""

    # Key prefixes
    LOCK_PREFIX = "lock:player:"
    FREE_SPINS_PREFIX = "freespins:player:"

    # TTLs in seconds
    LOCK_TTL = settings.lock_ttl_seconds
    FREE_SPINS_TTL = settings.free_spins_state_ttl_seconds

    # Lua script for token-safe lock release (compare-and-delete)
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

    async def acquire_player_lock(self, player_id: str) -> str | None:
        """
        Attempt to acquire per-player lock with unique token.

        Returns token string if lock acquired, None if already locked.
        """
        key = f"{self.LOCK_PREFIX}{player_id}"
        token = str(uuid.uuid4())
        # SET NX EX returns True if key was set (lock acquired)
        acquired = await self.client.set(key, token, nx=True, ex=self.LOCK_TTL)
        return token if acquired is True else None

    async def release_player_lock(self, player_id: str, token: str) -> bool:
        """
        Release per-player lock only if token matches.

        Returns True if lock was released, False if token didn't match.
        """
        key = f"{self.LOCK_PREFIX}{player_id}"
        result = await self.client.eval(self.RELEASE_LOCK_SCRIPT, 1, key, token)
        return result == 1

    @asynccontextmanager
    async def player_lock(self, player_id: str):
        """
        Context manager for player lock.

        Serializes read-modify-write of a player's free-spin session.
        Raises ROUND_IN_PROGRESS if lock cannot be acquired.
        Yields LockMetrics for telemetry.
        """
        t0 = time.monotonic()
        token = await self.acquire_player_lock(player_id)
        if token is None:
            raise GameError(
                ErrorCode.ROUND_IN_PROGRESS,
                "Another spin is in progress for this player.",
            )
        metrics = LockMetrics(acquire_ms=(time.monotonic() - t0) * 1000)
        try:
            yield metrics
        finally:
            await self.release_player_lock(player_id, token)

    async def get_free_spins(self, player_id: str) -> FreeSpinsState | None:
        """
        Load a player's free-spin session.

        Returns None if no session exists (never triggered or finished).
        """
        key = f"{self.FREE_SPINS_PREFIX}{player_id}"
        cached = await self.client.get(key)
        if cached is None:
            return None
        return FreeSpinsState.model_validate(json.loads(cached))

    async def save_free_spins(self, player_id: str, state: FreeSpinsState) -> None:
        """Save a player's free-spin session with TTL."""
        key = f"{self.FREE_SPINS_PREFIX}{player_id}"
        await self.client.setex(key, self.FREE_SPINS_TTL, state.model_dump_json())

    async def clear_free_spins(self, player_id: str) -> None:
        """Clear a player's free-spin session (called when it ends)."""
        key = f"{self.FREE_SPINS_PREFIX}{player_id}"
        await self.client.delete(key)


# Global instance
redis_service = RedisService()

"""Per-player locking and free-spin session storage tests."""
import pytest
from fastapi.testclient import TestClient

from bonanza.errors import ErrorCode, GameError
from bonanza.logic.models import FreeSpinsState
from bonanza.redis_service import RedisService

from conftest import MockRedis


PLAYER_ID = "test-player-locking"


class TestLocking:
    """Tests for per-player locking over HTTP."""

    def test_lock_released_after_spin(self, client_with_mock_redis: TestClient):
        """Lock must be released after spin completes, allowing next spin."""
        for _ in range(2):
            response = client_with_mock_redis.post(
                "/spin",
                headers={"X-Player-Id": PLAYER_ID},
                json={"betAmount": 10},
            )
            assert response.status_code == 200

    def test_different_players_not_blocked(
        self, client_with_mock_redis: TestClient, mock_redis: MockRedis
    ):
        """A held lock only blocks its own player."""
        mock_redis._store[f"{RedisService.LOCK_PREFIX}player-1"] = "someone-else"

        response = client_with_mock_redis.post(
            "/spin",
            headers={"X-Player-Id": "player-2"},
            json={"betAmount": 10},
        )
        assert response.status_code == 200

    def test_concurrent_spin_rejected(
        self, client_with_mock_redis: TestClient, mock_redis: MockRedis
    ):
        """A spin while the player's lock is held returns ROUND_IN_PROGRESS."""
        mock_redis._store[f"{RedisService.LOCK_PREFIX}{PLAYER_ID}"] = "in-flight"

        response = client_with_mock_redis.post(
            "/spin",
            headers={"X-Player-Id": PLAYER_ID},
            json={"betAmount": 10},
        )
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "ROUND_IN_PROGRESS"
        assert error["recoverable"] is True

    def test_held_lock_is_not_stolen(
        self, client_with_mock_redis: TestClient, mock_redis: MockRedis
    ):
        """A rejected request leaves the other holder's lock in place."""
        key = f"{RedisService.LOCK_PREFIX}{PLAYER_ID}"
        mock_redis._store[key] = "in-flight"

        client_with_mock_redis.post(
            "/buy-feature",
            headers={"X-Player-Id": PLAYER_ID},
            json={"betAmount": 10},
        )
        assert mock_redis._store[key] == "in-flight"


class TestLockingUnit:
    """Unit tests for locking behavior."""

    @pytest.mark.asyncio
    async def test_acquire_lock_succeeds_when_free(self, redis_service_with_mock: RedisService):
        """Lock acquisition succeeds when no lock exists (returns token)."""
        token = await redis_service_with_mock.acquire_player_lock("player-1")
        assert token is not None

    @pytest.mark.asyncio
    async def test_acquire_lock_fails_when_held(self, redis_service_with_mock: RedisService):
        """Lock acquisition fails when lock is already held (returns None)."""
        assert await redis_service_with_mock.acquire_player_lock("player-1") is not None
        assert await redis_service_with_mock.acquire_player_lock("player-1") is None

    @pytest.mark.asyncio
    async def test_lock_has_ttl(
        self, redis_service_with_mock: RedisService, mock_redis: MockRedis
    ):
        """Lock is set with an expiry so a crashed holder cannot block forever."""
        await redis_service_with_mock.acquire_player_lock("player-1")
        assert mock_redis._last_set_ex == RedisService.LOCK_TTL
        assert RedisService.LOCK_TTL > 0

    @pytest.mark.asyncio
    async def test_release_with_wrong_token_keeps_lock(
        self, redis_service_with_mock: RedisService
    ):
        """Only the token holder can release the lock."""
        token = await redis_service_with_mock.acquire_player_lock("player-1")
        assert token is not None

        assert await redis_service_with_mock.release_player_lock("player-1", "wrong") is False
        assert await redis_service_with_mock.acquire_player_lock("player-1") is None

        assert await redis_service_with_mock.release_player_lock("player-1", token) is True
        assert await redis_service_with_mock.acquire_player_lock("player-1") is not None

    @pytest.mark.asyncio
    async def test_player_lock_context_manager_releases(
        self, redis_service_with_mock: RedisService, mock_redis: MockRedis
    ):
        """Context manager releases lock on normal exit and on error."""
        async with redis_service_with_mock.player_lock("player-1") as metrics:
            assert metrics.acquire_ms >= 0
            assert f"{RedisService.LOCK_PREFIX}player-1" in mock_redis._store

        assert f"{RedisService.LOCK_PREFIX}player-1" not in mock_redis._store

        with pytest.raises(ValueError):
            async with redis_service_with_mock.player_lock("player-1"):
                raise ValueError("boom")

        assert f"{RedisService.LOCK_PREFIX}player-1" not in mock_redis._store

    @pytest.mark.asyncio
    async def test_player_lock_raises_round_in_progress(
        self, redis_service_with_mock: RedisService
    ):
        await redis_service_with_mock.acquire_player_lock("player-1")

        with pytest.raises(GameError) as exc_info:
            async with redis_service_with_mock.player_lock("player-1"):
                pass

        assert exc_info.value.code == ErrorCode.ROUND_IN_PROGRESS


class TestFreeSpinsStore:
    """Tests for free-spin session persistence."""

    @pytest.mark.asyncio
    async def test_missing_session_is_none(self, redis_service_with_mock: RedisService):
        assert await redis_service_with_mock.get_free_spins("nobody") is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, redis_service_with_mock: RedisService):
        state = FreeSpinsState(spins_remaining=7, locked_bet=20, total_win=450)
        await redis_service_with_mock.save_free_spins("player-1", state)

        loaded = await redis_service_with_mock.get_free_spins("player-1")
        assert loaded == state

    @pytest.mark.asyncio
    async def test_sessions_are_per_player(self, redis_service_with_mock: RedisService):
        await redis_service_with_mock.save_free_spins(
            "player-1", FreeSpinsState(spins_remaining=3, locked_bet=5)
        )
        assert await redis_service_with_mock.get_free_spins("player-2") is None

    @pytest.mark.asyncio
    async def test_clear(self, redis_service_with_mock: RedisService):
        await redis_service_with_mock.save_free_spins(
            "player-1", FreeSpinsState(spins_remaining=3, locked_bet=5)
        )
        await redis_service_with_mock.clear_free_spins("player-1")
        assert await redis_service_with_mock.get_free_spins("player-1") is None

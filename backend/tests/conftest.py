"""Pytest fixtures for backend tests."""
from collections import deque
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from bonanza.logic.models import Symbol
from bonanza.logic.paytable import BOMB_MULTIPLIER_WEIGHTS, weights_for
from bonanza.logic.rng import RandomSource
from bonanza.main import app
from bonanza.redis_service import RedisService


# Two-letter codes for writing grids in tests
CODES: dict[str, Symbol] = {
    "BA": Symbol.BANANA,
    "GR": Symbol.GRAPES,
    "WM": Symbol.WATERMELON,
    "PL": Symbol.PLUM,
    "AP": Symbol.APPLE,
    "BL": Symbol.BLUE_CANDY,
    "GN": Symbol.GREEN_CANDY,
    "PU": Symbol.PURPLE_CANDY,
    "HC": Symbol.HEART_CANDY,
    "SC": Symbol.SCATTER,
    "BO": Symbol.BOMB,
}


def parse_grid(rows: list[str]) -> list[list[Symbol]]:
    """Turn ["BA GR ...", ...] into a symbol grid."""
    return [[CODES[code] for code in row.split()] for row in rows]


def symbol_draw(code: str, free_spins: bool = False) -> int:
    """next_int value that makes a weighted draw return this symbol."""
    offset = 0
    for symbol, weight in weights_for(free_spins).items():
        if symbol == CODES[code]:
            return offset
        offset += weight
    raise KeyError(code)


def bomb_draw(multiplier: int) -> int:
    """next_int value that makes a bomb draw return this multiplier."""
    offset = 0
    for value, weight in BOMB_MULTIPLIER_WEIGHTS.items():
        if value == multiplier:
            return offset
        offset += weight
    raise KeyError(multiplier)


def grid_draws(rows: list[str], free_spins: bool = False) -> list[int]:
    """Draws that generate the given grid, row by row."""
    return [symbol_draw(code, free_spins) for row in rows for code in row.split()]


def refill_draws(codes: str, free_spins: bool = False) -> list[int]:
    """Draws for refilled cells, in refill order (columns left to right, bottom-up)."""
    return [symbol_draw(code, free_spins) for code in codes.split()]


class ScriptedRandom(RandomSource):
    """
    Random source that replays queued values.

    Fails loudly if a value is out of range or the script runs out, so a
    test also pins down exactly how many draws the engine made.
    """

    def __init__(self, values: list[int]):
        self._values = deque(values)
        self.calls: list[int] = []

    def next_int(self, n: int) -> int:
        self.calls.append(n)
        if not self._values:
            raise AssertionError(f"Scripted random source exhausted (draw #{len(self.calls)})")
        value = self._values.popleft()
        assert 0 <= value < n, f"Scripted value {value} out of range [0, {n})"
        return value

    @property
    def remaining(self) -> int:
        return len(self._values)


class ConstantRandom(RandomSource):
    """Random source that always returns the same value (clamped to range)."""

    def __init__(self, value: int = 0):
        self.value = value

    def next_int(self, n: int) -> int:
        return min(self.value, n - 1)


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._last_set_ex: int | None = None  # Track last SET EX value for TTL tests

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(
        self, key: str, value: str, nx: bool = False, ex: int | None = None
    ) -> bool | None:
        if nx and key in self._store:
            return None
        self._store[key] = value
        self._last_set_ex = ex
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._store[key] = value
        return True

    async def delete(self, key: str) -> int:
        if key in self._store:
            del self._store[key]
            return 1
        return 0

    async def eval(self, script: str, numkeys: int, *args) -> int:
        """
        Execute Lua script (simplified mock for compare-and-delete).

        - KEYS[1] = args[0] (key)
        - ARGV[1] = args[1] (expected value)
        Returns 1 if deleted, 0 if value didn't match.
        """
        key = args[0]
        expected_value = args[1]
        if self._store.get(key) == expected_value:
            del self._store[key]
            return 1
        return 0

    async def close(self) -> None:
        pass

    def clear(self) -> None:
        self._store.clear()
        self._last_set_ex = None


class RecordingTelemetrySink:
    """Telemetry sink that keeps every emitted event."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


@pytest.fixture
def mock_redis() -> MockRedis:
    """Create a fresh mock Redis for each test."""
    return MockRedis()


@pytest.fixture
def redis_service_with_mock(mock_redis: MockRedis) -> Generator[RedisService, None, None]:
    """Create RedisService with mock client."""
    service = RedisService()
    service._client = mock_redis
    yield service
    mock_redis.clear()


@pytest.fixture
def client_with_mock_redis(mock_redis: MockRedis) -> Generator[TestClient, None, None]:
    """Create TestClient with mocked Redis."""
    from bonanza.redis_service import redis_service

    # Patch the global redis_service client
    original_client = redis_service._client
    redis_service._client = mock_redis

    with TestClient(app) as client:
        yield client

    # Restore original
    redis_service._client = original_client
    mock_redis.clear()


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetrySink, None, None]:
    """Swap the global telemetry sink for a recording one."""
    from bonanza.telemetry import LoggingTelemetrySink, telemetry_service

    sink = RecordingTelemetrySink()
    telemetry_service.set_sink(sink)
    yield sink
    telemetry_service.set_sink(LoggingTelemetrySink())

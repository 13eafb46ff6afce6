"""Pytest fixtures for backend tests."""
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from plinko.logic.fairness import FairnessProtocol
from plinko.logic.rng import RandomSource
from plinko.main import app
from plinko.redis_service import RedisService


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (statistical simulations)"
    )


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._last_set_ex: int | None = None
        self._last_setex_ttl: int | None = None

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
        self._last_setex_ttl = ttl
        return True

    async def delete(self, key: str) -> int:
        if key in self._store:
            del self._store[key]
            return 1
        return 0

    async def eval(self, script: str, numkeys: int, *args) -> int:
        """
        Simplified compare-and-delete for RELEASE_LOCK_SCRIPT.

        KEYS[1] = args[0], ARGV[1] = args[1]. Returns 1 if deleted.
        """
        key = args[0]
        expected_value = args[1]
        if self._store.get(key) == expected_value:
            del self._store[key]
            return 1
        return 0

    async def close(self) -> None:
        pass

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [k for k in self._store if k.startswith(prefix)]

    def clear(self) -> None:
        self._store.clear()
        self._last_set_ex = None
        self._last_setex_ttl = None


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


class FixedRandomSource(RandomSource):
    """Commit-step source returning preset values, for reproducible rounds."""

    def __init__(self, server_seed: str, nonce: int = 42):
        self.server_seed = server_seed
        self.nonce = nonce
        self.token_calls: list[int] = []

    def token_hex(self, byte_length: int) -> str:
        self.token_calls.append(byte_length)
        return self.server_seed

    def randbelow(self, upper: int) -> int:
        return self.nonce % upper


SERVER_SEED = "b2a5f3f32a4d9c6ee7a8c1d33456677890abcdeffedcba0987654321ffeeddcc"


@pytest.fixture
def fixed_random_source() -> FixedRandomSource:
    return FixedRandomSource(SERVER_SEED, nonce=42)


@pytest.fixture
def protocol(fixed_random_source: FixedRandomSource) -> FairnessProtocol:
    """FairnessProtocol with a predictable commit step."""
    return FairnessProtocol(random_source=fixed_random_source)


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
    from plinko.redis_service import redis_service

    original_client = redis_service._client
    redis_service._client = mock_redis

    with TestClient(app) as client:
        yield client

    redis_service._client = original_client
    mock_redis.clear()


@pytest.fixture
def client_with_recording_telemetry(
    mock_redis: MockRedis,
) -> Generator[tuple[TestClient, RecordingTelemetrySink, MockRedis], None, None]:
    """TestClient with mocked Redis and a recording telemetry sink."""
    from plinko.redis_service import redis_service
    from plinko.telemetry import LoggingTelemetrySink, telemetry_service

    original_client = redis_service._client
    redis_service._client = mock_redis
    sink = RecordingTelemetrySink()
    telemetry_service.set_sink(sink)

    with TestClient(app) as client:
        yield client, sink, mock_redis

    telemetry_service.set_sink(LoggingTelemetrySink())
    redis_service._client = original_client
    mock_redis.clear()

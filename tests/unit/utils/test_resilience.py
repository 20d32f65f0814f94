"""Unit tests for resilience utilities."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from musicboxd_cache.utils.config import ResilienceConfig
from musicboxd_cache.utils.resilience import CircuitBreaker, CircuitBreakerConfig, CircuitState, with_retries


@pytest.mark.asyncio
class TestWithRetries:
    """Test with_retries around flaky store calls."""

    async def test_success_first_attempt(self):
        query = AsyncMock(return_value={"followers": 3})

        assert await with_retries(query, attempts=3) == {"followers": 3}
        assert query.call_count == 1

    async def test_transient_failures_then_success(self):
        query = AsyncMock(side_effect=[ConnectionError("reset"), ConnectionError("reset"), 12])

        assert await with_retries(query, attempts=3, backoff_ms=[1]) == 12
        assert query.call_count == 3

    async def test_gives_up_after_attempts(self):
        query = AsyncMock(side_effect=ConnectionError("db down"))

        with pytest.raises(ConnectionError, match="db down"):
            await with_retries(query, attempts=3, backoff_ms=[1, 1])

        assert query.call_count == 3

    async def test_single_attempt_does_not_sleep(self, monkeypatch):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr("musicboxd_cache.utils.resilience.anyio.sleep", fake_sleep)
        query = AsyncMock(side_effect=ConnectionError("db down"))

        with pytest.raises(ConnectionError):
            await with_retries(query, attempts=1)

        assert sleeps == []

    async def test_backoff_sequence_reuses_last_step(self, monkeypatch):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr("musicboxd_cache.utils.resilience.anyio.sleep", fake_sleep)
        query = AsyncMock(side_effect=TimeoutError("slow"))

        with pytest.raises(TimeoutError):
            await with_retries(query, attempts=4, backoff_ms=[50, 200])

        assert sleeps == [0.05, 0.2, 0.2]


@pytest.mark.asyncio
class TestCircuitBreaker:
    """Test CircuitBreaker state transitions."""

    async def test_initially_closed(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
        query = AsyncMock(return_value="row")

        assert await breaker.run(query) == "row"
        assert breaker.state == CircuitState.CLOSED

    async def test_opens_after_threshold_and_blocks(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=2, reset_timeout_seconds=10))
        failing = AsyncMock(side_effect=ConnectionError("db down"))

        for _ in range(2):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)
        assert breaker.state == CircuitState.OPEN

        healthy = AsyncMock(return_value="row")
        for _ in range(3):
            with pytest.raises(RuntimeError, match="circuit_open"):
                await breaker.run(healthy)
        healthy.assert_not_called()

    async def test_half_open_success_closes(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=1, reset_timeout_seconds=0.05))
        with pytest.raises(ConnectionError):
            await breaker.run(AsyncMock(side_effect=ConnectionError("db down")))

        await asyncio.sleep(0.08)

        assert await breaker.run(AsyncMock(return_value="row")) == "row"
        assert breaker.state == CircuitState.CLOSED

    async def test_half_open_failure_reopens(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3, reset_timeout_seconds=0.05))
        failing = AsyncMock(side_effect=ConnectionError("db down"))
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)

        await asyncio.sleep(0.08)

        with pytest.raises(ConnectionError):
            await breaker.run(failing)
        assert breaker.state == CircuitState.OPEN
        with pytest.raises(RuntimeError, match="circuit_open"):
            await breaker.run(failing)

    async def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
        failing = AsyncMock(side_effect=ConnectionError("db down"))
        healthy = AsyncMock(return_value="row")

        for _ in range(2):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)
        await breaker.run(healthy)
        for _ in range(2):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)

        assert breaker.state == CircuitState.CLOSED
        assert await breaker.run(healthy) == "row"


def test_breaker_config_from_resilience():
    config = CircuitBreakerConfig.from_resilience(ResilienceConfig(failure_threshold=9, reset_timeout_seconds=1.5))

    assert config.failure_threshold == 9
    assert config.reset_timeout_seconds == 1.5

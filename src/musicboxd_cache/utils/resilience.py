from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, TypeVar

import anyio

from .config import ResilienceConfig

T = TypeVar("T")

_logger = logging.getLogger(__name__)


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0

    @classmethod
    def from_resilience(cls, config: ResilienceConfig) -> "CircuitBreakerConfig":
        return cls(
            failure_threshold=config.failure_threshold,
            reset_timeout_seconds=config.reset_timeout_seconds,
        )


class CircuitState(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Stops calling the system of record after repeated failures.

    Opens after `failure_threshold` consecutive failures, lets one attempt
    through once `reset_timeout_seconds` have passed, and closes again on
    the first success.
    """

    def __init__(self, config: Optional[CircuitBreakerConfig] = None, name: str = "store") -> None:
        self._config = config or CircuitBreakerConfig()
        self._name = name
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def _can_attempt(self) -> bool:
        with self._lock:
            if self._state != CircuitState.OPEN:
                return True
            if (time.monotonic() - self._opened_at) >= self._config.reset_timeout_seconds:
                self._state = CircuitState.HALF_OPEN
                return True
            return False

    def _on_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                _logger.info("Circuit %s closed", self._name)
            self._state = CircuitState.CLOSED
            self._failures = 0

    def _on_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._state == CircuitState.HALF_OPEN or self._failures >= self._config.failure_threshold:
                if self._state != CircuitState.OPEN:
                    _logger.warning("Circuit %s opened after %d failures", self._name, self._failures)
                self._state = CircuitState.OPEN
                self._opened_at = time.monotonic()

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        if not self._can_attempt():
            raise RuntimeError("circuit_open")
        try:
            result = await fn()
        except Exception:
            self._on_failure()
            raise
        else:
            self._on_success()
            return result


async def with_retries(
    coro_factory: Callable[[], Awaitable[T]],
    attempts: int = 3,
    backoff_ms: Optional[Iterable[int]] = None,
) -> T:
    backoff_seq: List[int] = list(backoff_ms or [100, 500, 2000])
    last_exc: Exception | None = None
    for attempt in range(attempts):
        try:
            return await coro_factory()
        except Exception as exc:  # noqa: BLE001 - broad for retry wrapper
            last_exc = exc
            if attempt == attempts - 1:
                break
            delay_ms = backoff_seq[min(attempt, len(backoff_seq) - 1)]
            _logger.warning("Attempt %d/%d failed (%s); retrying in %d ms", attempt + 1, attempts, exc, delay_ms)
            await anyio.sleep(delay_ms / 1000.0)
    assert last_exc is not None
    raise last_exc

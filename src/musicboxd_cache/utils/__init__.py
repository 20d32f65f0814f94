"""Configuration and resilience helpers."""

from .config import AppConfig, CacheConfig, NamespaceConfig, ResilienceConfig
from .resilience import CircuitBreaker, CircuitBreakerConfig, CircuitState, with_retries

__all__ = [
    "AppConfig",
    "CacheConfig",
    "NamespaceConfig",
    "ResilienceConfig",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "with_retries",
]

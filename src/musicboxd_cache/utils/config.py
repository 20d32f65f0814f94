from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass
class NamespaceConfig:
    ttl_seconds: float
    max_size: int


@dataclass
class CacheConfig:
    enabled: bool = True
    sweep_interval_seconds: Optional[float] = 300.0
    single_flight: bool = True
    profile: NamespaceConfig = dataclasses.field(default_factory=lambda: NamespaceConfig(600.0, 500))
    social_stats: NamespaceConfig = dataclasses.field(default_factory=lambda: NamespaceConfig(300.0, 1000))
    top_reviews: NamespaceConfig = dataclasses.field(default_factory=lambda: NamespaceConfig(900.0, 300))
    notification_count: NamespaceConfig = dataclasses.field(default_factory=lambda: NamespaceConfig(60.0, 1000))

    NAMESPACES = ("profile", "social_stats", "top_reviews", "notification_count")

    def namespaces(self) -> Iterator[Tuple[str, NamespaceConfig]]:
        for name in self.NAMESPACES:
            yield name, getattr(self, name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        values = dict(data)
        for name in cls.NAMESPACES:
            if name in values and isinstance(values[name], dict):
                values[name] = NamespaceConfig(**values[name])
        return cls(**values)


@dataclass
class ResilienceConfig:
    circuit_breaker_enabled: bool = True
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0
    retry_max_attempts: int = 3
    retry_backoff_ms: List[int] = dataclasses.field(default_factory=lambda: [100, 500, 2000])


@dataclass
class AppConfig:
    cache: CacheConfig = dataclasses.field(default_factory=CacheConfig)
    resilience: ResilienceConfig = dataclasses.field(default_factory=ResilienceConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        return cls(
            cache=CacheConfig.from_dict(data.get("cache", {})),
            resilience=ResilienceConfig(**data.get("resilience", {})),
        )
